"""Secret value extraction from local files."""

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from components.errors import (
    PatternNotMatchedError,
    SecretFileNotFoundError,
    SecretFileReadError,
    SecretKeyNotFoundError,
    SecretParseError,
)
from components.locations import Classification, SecretLocation

logger = logging.getLogger(__name__)

# Implicit tags resolved from plain scalar text (YAML 1.1 rules)
TYPED_SCALAR_TAGS = frozenset(
    {
        "tag:yaml.org,2002:bool",
        "tag:yaml.org,2002:int",
        "tag:yaml.org,2002:float",
        "tag:yaml.org,2002:timestamp",
    }
)


class SecretFileLoader(yaml.SafeLoader):
    """SafeLoader that keeps plain scalars as written.

    ``0123``, ``yes`` and ``2024-01-01`` stay the strings they are in the
    file; only ``null``/``~``/empty resolve to None.
    """


SecretFileLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in TYPED_SCALAR_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def resolve_path(file_path: str, base_dir: str | Path | None = None) -> Path:
    """Resolve a secret file path relative to base_dir (default: cwd)."""
    path = Path(file_path).expanduser()
    if path.is_absolute():
        return path
    return Path(base_dir or Path.cwd()) / path


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (FileNotFoundError, IsADirectoryError) as exc:
        raise SecretFileNotFoundError(str(path)) from exc
    except UnicodeDecodeError as exc:
        raise SecretParseError(f"{path} is not valid UTF-8 text: {exc}") from exc
    except OSError as exc:
        raise SecretFileReadError(str(path), exc.strerror or str(exc)) from exc


def _render_scalar(value: Any, key: str, path: Path) -> str:
    # Only reachable for explicitly tagged values (e.g. !!int 5)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    raise SecretParseError(
        f"Value of '{key}' in {path} is a {type(value).__name__}, expected a scalar"
    )


def load_structured_file(path: Path) -> dict[str, Any]:
    """Parse a YAML or JSON file into a mapping, keeping scalars as text.

    Raises:
        SecretFileNotFoundError: If the file does not exist.
        SecretFileReadError: If the file cannot be read.
        SecretParseError: If the file is not valid YAML/JSON or not a mapping.
    """
    content = _read_text(path)
    try:
        data = yaml.load(content, Loader=SecretFileLoader)
    except yaml.YAMLError as exc:
        raise SecretParseError(f"Failed to parse {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SecretParseError(
            f"Expected a mapping at the top of {path}, got {type(data).__name__}"
        )
    return data


def read_structured_value(file_path: str, key: str, base_dir: str | Path | None = None) -> str:
    """Look up a top-level key in a structured file.

    Raises:
        SecretFileNotFoundError: If the file does not exist.
        SecretParseError: If the file is malformed or the value is not a scalar.
        SecretKeyNotFoundError: If the key is absent or null.
    """
    path = resolve_path(file_path, base_dir)
    data = load_structured_file(path)
    value = data.get(key)
    if value is None:
        raise SecretKeyNotFoundError(key, str(path))

    logger.debug("Extracted key %s from %s", key, path)
    return _render_scalar(value, key, path)


def read_credential_field(
    file_path: str, field_name: str, base_dir: str | Path | None = None
) -> str:
    """Scan a credentials file for ``<field_name> = <value>``.

    The first occurrence wins regardless of which ``[profile]`` section it
    sits in.

    Raises:
        SecretFileNotFoundError: If the file does not exist.
        PatternNotMatchedError: If no line assigns the field.
    """
    path = resolve_path(file_path, base_dir)
    content = _read_text(path)

    match = re.search(rf"{re.escape(field_name)}\s*=\s*(.*)", content)
    if match is None:
        raise PatternNotMatchedError(field_name, str(path))

    logger.debug("Extracted field %s from %s", field_name, path)
    return match.group(1)


def extract_value(entry: SecretLocation, base_dir: str | Path | None = None) -> str:
    """Extract the value of a new (file-sourced) secret entry."""
    if entry.classification is Classification.STRUCTURED_FILE:
        return read_structured_value(entry.file_path, entry.key_path or entry.name, base_dir)
    if entry.classification is Classification.CREDENTIALS_FILE:
        return read_credential_field(entry.file_path, entry.key_path, base_dir)
    raise ValueError(f"Secret '{entry.name}' is an existing reference and has no local value")


def extract_structured(location: str, name: str, base_dir: str | Path | None = None) -> str:
    """Extract a secret value from a structured (YAML/JSON) file.

    The location is ``<file_path>[:<key_path>]``. When no key is given the
    secret name is used as the key. Only top-level keys are supported.
    """
    entry = SecretLocation(
        name=name, location=location, classification=Classification.STRUCTURED_FILE
    )
    return extract_value(entry, base_dir)


def extract_credential(location: str, base_dir: str | Path | None = None) -> str:
    """Extract a field from an AWS credentials file at ``<file_path>:<field_name>``."""
    entry = SecretLocation(
        name=location, location=location, classification=Classification.CREDENTIALS_FILE
    )
    return extract_value(entry, base_dir)
