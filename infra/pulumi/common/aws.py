"""Read published secrets back from AWS."""

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

import boto3
from botocore.exceptions import ClientError

from common.config import get_settings
from components.errors import SecretNotPublishedError

if TYPE_CHECKING:
    from mypy_boto3_secretsmanager import SecretsManagerClient
    from mypy_boto3_ssm import SSMClient

logger = logging.getLogger(__name__)


def _client_kwargs() -> dict[str, str]:
    region = get_settings().aws_region
    return {"region_name": region} if region else {}


@lru_cache
def _get_secretsmanager_client() -> "SecretsManagerClient":
    """Get cached Secrets Manager client."""
    return boto3.client("secretsmanager", **_client_kwargs())


@lru_cache
def _get_ssm_client() -> "SSMClient":
    """Get cached SSM client."""
    return boto3.client("ssm", **_client_kwargs())


def get_secret_value(secret_id: str, client: "SecretsManagerClient | None" = None) -> str:
    """Fetch a secret value from AWS Secrets Manager.

    Args:
        secret_id: The ARN or name of the secret.
        client: Optional Secrets Manager client (for testing).

    Returns:
        The secret string.

    Raises:
        SecretNotPublishedError: If the secret cannot be read or has no string value.
    """
    client = client or _get_secretsmanager_client()
    try:
        response = client.get_secret_value(SecretId=secret_id)
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code", "Unknown")
        logger.error("Failed to read secret %s: %s", secret_id, code)
        raise SecretNotPublishedError(f"Cannot read secret {secret_id}: {code}") from exc

    if "SecretString" not in response:
        raise SecretNotPublishedError(f"Secret {secret_id} has no string value")
    return response["SecretString"]


def get_parameter_value(name: str, client: "SSMClient | None" = None) -> str:
    """Fetch a decrypted parameter value from SSM Parameter Store.

    Raises:
        SecretNotPublishedError: If the parameter cannot be read.
    """
    client = client or _get_ssm_client()
    try:
        response = client.get_parameter(Name=name, WithDecryption=True)
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code", "Unknown")
        logger.error("Failed to read parameter %s: %s", name, code)
        raise SecretNotPublishedError(f"Cannot read parameter {name}: {code}") from exc
    return response["Parameter"]["Value"]


def read_published_value(identifier: str, use_parameter_store: bool) -> str:
    """Read a published value back from the sink it was published to."""
    if use_parameter_store:
        return get_parameter_value(identifier)
    return get_secret_value(identifier)
