"""Compare published secrets with their local sources.

Usage (from ``infra/pulumi``):
    pulumi stack output --json > outputs.json
    python -m common.verify --secrets-map secrets_map.yaml --outputs outputs.json

    # Or read the stack output from stdin:
    pulumi stack output --json | python -m common.verify --secrets-map secrets_map.yaml
"""

import argparse
import json
import logging
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

import yaml

from common.aws import read_published_value
from common.config import configure_logging, get_settings
from components.errors import SecretPublishError
from components.extractors import extract_value
from components.locations import classify_secrets

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """Outcome of checking one secret."""

    name: str
    identifier: str | None
    ok: bool
    reason: str = ""


def verify_published(
    secrets_map: Mapping[str, str],
    identifiers: Mapping[str, str],
    use_parameter_store: bool,
    base_dir: str | Path | None = None,
    reader: Callable[[str, bool], str] | None = None,
) -> list[VerificationResult]:
    """Check that every secret in the map was published with its local value.

    Existing references must appear unchanged in ``identifiers``. File-sourced
    secrets are extracted locally and compared with the value read back from
    the sink. A secret that cannot be extracted or read back is reported as a
    failure; values never appear in the results.

    Args:
        secrets_map: Secret name -> location, as given to the stack.
        identifiers: The stack's ``secret_identifiers`` output.
        use_parameter_store: Sink the stack published to.
        base_dir: Directory relative secret file paths are resolved against.
        reader: Reads a value back given (identifier, use_parameter_store).
            Defaults to ``read_published_value``.

    Returns:
        One result per secret in ``secrets_map``, in map order.

    Raises:
        AmbiguousLocationError: If a location in the map cannot be classified.
    """
    reader = reader or read_published_value
    results = []
    for name, entry in classify_secrets(secrets_map).items():
        identifier = identifiers.get(name)
        if identifier is None:
            results.append(VerificationResult(name, None, False, "missing from stack output"))
            continue

        if not entry.is_new:
            ok = identifier == entry.location
            reason = "" if ok else "existing reference was not passed through"
            results.append(VerificationResult(name, identifier, ok, reason))
            continue

        try:
            local = extract_value(entry, base_dir)
            published = reader(identifier, use_parameter_store)
        except SecretPublishError as exc:
            results.append(VerificationResult(name, identifier, False, str(exc)))
            continue

        ok = published == local
        results.append(
            VerificationResult(name, identifier, ok, "" if ok else "published value differs")
        )
        logger.debug("Verified %s: %s", name, "ok" if ok else "mismatch")

    return results


def load_secrets_map(path: str) -> dict[str, str]:
    """Load a secret name -> location mapping from a YAML or JSON file."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of secret name to location")
    # Accept a bare map or a Pulumi-style {"secrets_map": {...}} document
    return data.get("secrets_map", data)


def main(argv: list[str] | None = None) -> int:
    """Verify published secrets; returns the process exit code."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Verify published secrets")
    parser.add_argument("--secrets-map", required=True, help="YAML/JSON secrets map file")
    parser.add_argument(
        "--outputs", default="-", help="JSON stack outputs file (default: stdin)"
    )
    parser.add_argument(
        "--base-dir",
        default=settings.resolved_base_dir,
        help="Directory relative secret file paths are resolved against",
    )
    args = parser.parse_args(argv)

    configure_logging(settings)

    secrets_map = load_secrets_map(args.secrets_map)
    if args.outputs == "-":
        outputs = json.load(sys.stdin)
    else:
        with open(args.outputs, encoding="utf-8") as f:
            outputs = json.load(f)

    try:
        results = verify_published(
            secrets_map,
            outputs.get("secret_identifiers", {}),
            bool(outputs.get("use_parameter_store", False)),
            base_dir=args.base_dir,
        )
    except SecretPublishError as e:
        print(f"Error: {e}")
        return 1

    failures = 0
    for result in results:
        status = "OK" if result.ok else "FAIL"
        line = f"  [{status}] {result.name} -> {result.identifier}"
        if result.reason:
            line += f" ({result.reason})"
        print(line)
        failures += not result.ok

    print(f"\n{len(results) - failures}/{len(results)} secrets verified")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
