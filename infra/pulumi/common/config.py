"""Process configuration using Pydantic Settings.

Stack inputs (the secrets map, sink choice, prefix, tags) come from Pulumi
stack config in ``__main__.py``. The settings here cover the process the
program and scripts run in.
"""

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Directory relative secret file paths are resolved against (default: cwd)
    secrets_base_dir: str = ""

    # Logging
    log_level: str = "INFO"

    # AWS Configuration (read-back only; Pulumi uses aws:region)
    aws_region: str = ""

    @property
    def resolved_log_level(self) -> int:
        """Numeric log level.

        Raises:
            ValueError: If LOG_LEVEL is not a known level name.
        """
        level = logging.getLevelName(self.log_level.upper())
        if not isinstance(level, int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got '{self.log_level}'")
        return level

    @property
    def resolved_base_dir(self) -> str | None:
        """Base directory for secret files, or None for the working directory."""
        return self.secrets_base_dir or None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from settings."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.resolved_log_level, format="%(levelname)s: %(message)s")
    logging.getLogger("botocore").setLevel(logging.WARNING)
