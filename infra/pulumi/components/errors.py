"""Errors raised while classifying, extracting and publishing secrets.

Every error aborts the Pulumi program: secret provisioning is all-or-nothing,
so nothing here is recovered from locally.
"""


class SecretPublishError(Exception):
    """Base class for secret publishing errors."""


class AmbiguousLocationError(SecretPublishError, ValueError):
    """Raised when a location matches no classification rule, or several."""

    def __init__(self, name: str, location: str, matched: list[str] | None = None):
        self.name = name
        self.location = location
        self.matched = matched or []
        if self.matched:
            detail = f"matches several rules ({', '.join(self.matched)})"
        else:
            detail = "matches no classification rule"
        super().__init__(f"Secret '{name}' location '{location}' {detail}")


class SecretFileNotFoundError(SecretPublishError, FileNotFoundError):
    """Raised when a referenced secret file does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Secret file not found: {path}")


class SecretParseError(SecretPublishError):
    """Raised when a structured secret file is not valid YAML/JSON."""


class SecretKeyNotFoundError(SecretPublishError, KeyError):
    """Raised when a key is absent from a structured secret file."""

    def __init__(self, key: str, path: str):
        self.key = key
        self.path = path
        super().__init__(f"Key '{key}' not found in {path}")

    def __str__(self) -> str:
        return self.args[0]


class PatternNotMatchedError(SecretPublishError):
    """Raised when a credentials file has no `field = value` line."""

    def __init__(self, field: str, path: str):
        self.field = field
        self.path = path
        super().__init__(f"No '{field} = ...' line found in {path}")


class NamingConflictError(SecretPublishError):
    """Raised when two published entries would share a resource name."""


class SecretNotPublishedError(SecretPublishError):
    """Raised when a published secret cannot be read back from AWS."""


class SecretFileReadError(SecretPublishError, OSError):
    """Raised when a secret file exists but cannot be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Cannot read secret file {path}: {reason}")
