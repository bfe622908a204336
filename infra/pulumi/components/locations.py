"""Secret location classification.

A secret location is one of:
- an existing store reference (Secrets Manager or SSM ARN), passed through
- ``<file>.(json|yml|yaml)[:<key>]``, a structured file holding the value
- ``<path>credentials:aws_access_key_id`` (or ``aws_secret_access_key``),
  a flat AWS credentials file

Classification only looks at the location text. Files are read later, during
extraction.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from components.errors import AmbiguousLocationError

logger = logging.getLogger(__name__)

STORE_REFERENCE_PREFIX = re.compile(r"^arn:aws[a-z-]*:(secretsmanager|ssm):")
STRUCTURED_FILE_SUFFIXES: tuple[str, ...] = (".json", ".yml", ".yaml")
CREDENTIALS_MARKER = "credentials:"
CREDENTIALS_FIELDS: tuple[str, ...] = ("aws_access_key_id", "aws_secret_access_key")


class Classification(str, Enum):
    """Kind of secret location."""

    EXISTING_REFERENCE = "existing_reference"
    STRUCTURED_FILE = "structured_file"
    CREDENTIALS_FILE = "credentials_file"


@dataclass(frozen=True)
class SecretLocation:
    """A classified secret entry."""

    name: str
    location: str
    classification: Classification

    @property
    def file_path(self) -> str | None:
        """Path of the source file, or None for existing references."""
        if self.classification is Classification.EXISTING_REFERENCE:
            return None
        if self.classification is Classification.CREDENTIALS_FILE:
            return self.location.rpartition(":")[0]
        return self.location.partition(":")[0]

    @property
    def key_path(self) -> str | None:
        """Key (structured) or field name (credentials) inside the file."""
        if self.classification is Classification.EXISTING_REFERENCE:
            return None
        if self.classification is Classification.CREDENTIALS_FILE:
            return self.location.rpartition(":")[2]
        _, sep, key = self.location.partition(":")
        return key if sep and key else None

    @property
    def is_new(self) -> bool:
        return self.classification is not Classification.EXISTING_REFERENCE


def _is_existing_reference(location: str) -> bool:
    return STORE_REFERENCE_PREFIX.sub("", location, count=1) != location


def _is_structured_file(location: str) -> bool:
    file_part = location.partition(":")[0]
    return file_part.lower().endswith(STRUCTURED_FILE_SUFFIXES)


def _is_credentials_file(location: str) -> bool:
    if CREDENTIALS_MARKER not in location or _is_structured_file(location):
        return False
    return any(f":{field}" in location for field in CREDENTIALS_FIELDS)


_RULES = (
    (Classification.EXISTING_REFERENCE, _is_existing_reference),
    (Classification.STRUCTURED_FILE, _is_structured_file),
    (Classification.CREDENTIALS_FILE, _is_credentials_file),
)


def classify(name: str, location: str) -> Classification:
    """Classify a secret location by its text.

    Args:
        name: Logical secret name (used in error messages).
        location: Location string from the secrets map.

    Returns:
        The single matching classification.

    Raises:
        AmbiguousLocationError: If the location matches no rule or several.
    """
    matched = [kind for kind, rule in _RULES if rule(location)]
    if len(matched) != 1:
        raise AmbiguousLocationError(name, location, [kind.value for kind in matched])
    return matched[0]


def classify_secrets(secrets_map: Mapping[str, str]) -> dict[str, SecretLocation]:
    """Classify every entry of a secrets map, failing on the first bad one."""
    classified = {}
    for name, location in secrets_map.items():
        if not isinstance(location, str) or not location:
            raise AmbiguousLocationError(name, str(location))
        kind = classify(name, location)
        logger.debug("Classified secret %s as %s", name, kind.value)
        classified[name] = SecretLocation(name=name, location=location, classification=kind)
    return classified


def partition(
    classified: Mapping[str, SecretLocation],
) -> tuple[dict[str, SecretLocation], dict[str, SecretLocation], dict[str, SecretLocation]]:
    """Split classified entries into (existing, structured, credentials)."""
    existing = {}
    structured = {}
    credentials = {}
    for name, entry in classified.items():
        if entry.classification is Classification.EXISTING_REFERENCE:
            existing[name] = entry
        elif entry.classification is Classification.STRUCTURED_FILE:
            structured[name] = entry
        else:
            credentials[name] = entry
    return existing, structured, credentials
