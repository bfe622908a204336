"""Secrets Component - Publish local secret files to AWS.

Takes a map of secret name -> location and:
- passes existing Secrets Manager / SSM ARNs through unchanged
- extracts values from YAML/JSON files and AWS credentials files
- publishes the extracted values to Secrets Manager (default) or to
  SSM Parameter Store, never both in one run

Resource names carry a short random suffix chosen once per run, so every
``pulumi up`` creates fresh resources rather than converging on old ones.
"""

import logging
import random
import string
from collections.abc import Mapping
from pathlib import Path

import pulumi
import pulumi_aws as aws

from components.errors import NamingConflictError
from components.extractors import extract_value
from components.locations import classify_secrets, partition

logger = logging.getLogger(__name__)

SUFFIX_LENGTH = 6


def generate_suffix(length: int = SUFFIX_LENGTH) -> str:
    """Generate the per-run random suffix shared by all resources of a run."""
    suffix_chars = string.ascii_lowercase + string.digits
    return "".join(random.choices(suffix_chars, k=length))


def secret_store_name(name_prefix: str, name: str, suffix: str) -> str:
    """Secrets Manager secret name: ``{prefix}{name}-{suffix}``."""
    return f"{name_prefix}{name}-{suffix}"


def parameter_store_name(name_prefix: str, name: str, suffix: str) -> str:
    """SSM parameter name: ``/{prefix}{suffix}/{name}``."""
    return f"/{name_prefix}{suffix}/{name}"


def sink_resource_names(
    names: list[str], use_parameter_store: bool, name_prefix: str, suffix: str
) -> dict[str, str]:
    """Map secret names to the resource names they are published under."""
    naming = parameter_store_name if use_parameter_store else secret_store_name
    return {name: naming(name_prefix, name, suffix) for name in names}


def check_resource_names(resource_names: Mapping[str, str], existing: Mapping[str, str]) -> None:
    """Reject generated names that collide with each other or with a pass-through.

    Args:
        resource_names: Secret name -> generated resource name.
        existing: Secret name -> existing reference (ARN).

    Raises:
        NamingConflictError: On any collision.
    """
    owners: dict[str, str] = {}
    for secret_name, resource_name in resource_names.items():
        if resource_name in owners:
            raise NamingConflictError(
                f"Secrets '{owners[resource_name]}' and '{secret_name}' "
                f"both map to resource name '{resource_name}'"
            )
        owners[resource_name] = secret_name

    for secret_name, location in existing.items():
        for resource_name, owner in owners.items():
            # Secrets Manager ARNs end in ":secret:<name>-XXXXXX"; SSM in ":parameter/<path>"
            if f":secret:{resource_name}-" in location or location.endswith(
                f":parameter{resource_name}"
            ):
                raise NamingConflictError(
                    f"Secret '{owner}' would be published as '{resource_name}', "
                    f"which secret '{secret_name}' already references"
                )


class SecretsComponent(pulumi.ComponentResource):
    """Secrets Manager or SSM Parameter Store entries from local secret files.

    Attributes:
        to_publish: Extracted values keyed by secret name (new entries only).
        existing: Pass-through references keyed by secret name.
        resource_names: Generated sink resource names keyed by secret name.
        secrets: Secrets Manager secrets keyed by secret name.
        secret_versions: Secret versions holding the values, keyed by name.
        parameters: SSM parameters keyed by secret name.
        identifiers: Output mapping every input name to its identifier.
    """

    def __init__(
        self,
        name: str,
        secrets_map: Mapping[str, str],
        suffix: str,
        use_parameter_store: bool = False,
        name_prefix: str = "",
        kms_key_id: pulumi.Input[str] | None = None,
        tags: dict | None = None,
        recovery_window_in_days: int | None = None,
        base_dir: str | Path | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ):
        """Initialize the secrets component.

        Classification, extraction and name checks all run before anything
        is registered, so any failure aborts the run with no resources.

        Args:
            name: Resource name prefix.
            secrets_map: Secret name -> location string.
            suffix: Per-run suffix from ``generate_suffix``.
            use_parameter_store: Publish to SSM instead of Secrets Manager.
            name_prefix: Prepended to every generated resource name.
            kms_key_id: KMS key for Secrets Manager encryption.
            tags: Tags applied to every created resource.
            recovery_window_in_days: Secrets Manager deletion recovery window.
            base_dir: Directory relative secret file paths are resolved against.
            opts: Pulumi resource options.

        Raises:
            SecretPublishError: If any entry cannot be classified or extracted,
                or two entries would share a resource name.
        """
        existing, structured, credentials = partition(classify_secrets(secrets_map))

        to_publish: dict[str, str] = {}
        for entry in {**structured, **credentials}.values():
            to_publish[entry.name] = extract_value(entry, base_dir)

        pass_through = {secret_name: entry.location for secret_name, entry in existing.items()}
        resource_names = sink_resource_names(
            list(to_publish), use_parameter_store, name_prefix, suffix
        )
        check_resource_names(resource_names, pass_through)

        super().__init__("secretpublisher:security:Secrets", name, None, opts)

        self.tags = tags or {}
        self.suffix = suffix
        self.use_parameter_store = use_parameter_store
        self.kms_key_id = kms_key_id
        self.recovery_window_in_days = recovery_window_in_days
        self.to_publish = to_publish
        self.existing = pass_through
        self.resource_names = resource_names

        self.secrets: dict[str, aws.secretsmanager.Secret] = {}
        self.secret_versions: dict[str, aws.secretsmanager.SecretVersion] = {}
        self.parameters: dict[str, aws.ssm.Parameter] = {}

        sink = "SSM Parameter Store" if use_parameter_store else "Secrets Manager"
        logger.info(
            "Publishing %d secret(s) to %s with suffix %s, passing through %d",
            len(to_publish),
            sink,
            suffix,
            len(pass_through),
        )

        published = {
            secret_name: self._publish(name, secret_name, value)
            for secret_name, value in to_publish.items()
        }

        # Keyed by the original secret names, in input order
        merged = {**pass_through, **published}
        ordered = {secret_name: merged[secret_name] for secret_name in secrets_map}
        self.identifiers: pulumi.Output[dict[str, str]] = (
            pulumi.Output.all(**ordered) if ordered else pulumi.Output.from_input({})
        )

        self.register_outputs(
            {
                "identifiers": self.identifiers,
                "suffix": self.suffix,
            }
        )

    def _publish(self, name: str, secret_name: str, value: str) -> pulumi.Output[str]:
        """Create the sink resource for one secret and return its identifier."""
        if self.use_parameter_store:
            return self._publish_parameter(name, secret_name, value)
        return self._publish_secret(name, secret_name, value)

    def _publish_secret(self, name: str, secret_name: str, value: str) -> pulumi.Output[str]:
        secret = aws.secretsmanager.Secret(
            f"{name}-{secret_name}",
            name=self.resource_names[secret_name],
            description=f"Secret {secret_name} published from local secret files",
            kms_key_id=self.kms_key_id,
            recovery_window_in_days=self.recovery_window_in_days,
            tags={**self.tags, "Name": secret_name},
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.secret_versions[secret_name] = aws.secretsmanager.SecretVersion(
            f"{name}-{secret_name}-version",
            secret_id=secret.id,
            secret_string=pulumi.Output.secret(value),
            opts=pulumi.ResourceOptions(parent=secret),
        )

        self.secrets[secret_name] = secret
        return secret.arn

    def _publish_parameter(self, name: str, secret_name: str, value: str) -> pulumi.Output[str]:
        parameter = aws.ssm.Parameter(
            f"{name}-{secret_name}",
            name=self.resource_names[secret_name],
            description=f"Secret {secret_name} published from local secret files",
            type="SecureString",
            value=pulumi.Output.secret(value),
            tags={**self.tags, "Name": secret_name},
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.parameters[secret_name] = parameter
        return parameter.name
