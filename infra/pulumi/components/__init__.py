"""Components package for the secret publisher.

- SecretsComponent: publishes local secret files to Secrets Manager or SSM
- locations: classification of secret location strings
- extractors: value extraction from YAML/JSON and AWS credentials files
"""

from components.locations import Classification, SecretLocation, classify, classify_secrets
from components.secrets import SecretsComponent, generate_suffix

__all__ = [
    "Classification",
    "SecretLocation",
    "SecretsComponent",
    "classify",
    "classify_secrets",
    "generate_suffix",
]
