"""Secret Publisher - Main Entry Point.

Publishes locally defined secrets to AWS using Pulumi.

Stack configuration:
- secrets_map: secret name -> location (ARN, YAML/JSON file, credentials file)
- use_parameter_store: publish to SSM Parameter Store instead of Secrets Manager
- name_prefix: prepended to generated resource names
- kms_key_id: KMS key for Secrets Manager encryption (optional)
- resource_tags: tags applied to created resources
- recovery_window_in_days: Secrets Manager recovery window (optional)
"""

import pulumi

from common.config import configure_logging, get_settings
from components.secrets import SecretsComponent, generate_suffix

settings = get_settings()
configure_logging(settings)

# Get configuration
config = pulumi.Config()
environment = pulumi.get_stack()

secrets_map = config.require_object("secrets_map")
use_parameter_store = config.get_bool("use_parameter_store") or False
name_prefix = config.get("name_prefix") or ""
kms_key_id = config.get("kms_key_id")  # Optional: defaults to aws/secretsmanager
resource_tags = config.get_object("resource_tags") or {}
recovery_window_in_days = config.get_int("recovery_window_in_days")

# One suffix per run, shared by every published secret
suffix = generate_suffix()

# =============================================================================
# Secrets - Secrets Manager or SSM Parameter Store
# =============================================================================
secrets = SecretsComponent(
    f"{environment}-secrets",
    secrets_map=secrets_map,
    suffix=suffix,
    use_parameter_store=use_parameter_store,
    name_prefix=name_prefix,
    kms_key_id=kms_key_id,
    tags=resource_tags,
    recovery_window_in_days=recovery_window_in_days,
    base_dir=settings.resolved_base_dir,
)

# =============================================================================
# Stack Outputs (identifiers only, not values)
# =============================================================================
pulumi.export("secret_identifiers", secrets.identifiers)
pulumi.export("use_parameter_store", use_parameter_store)
pulumi.export("suffix", suffix)
