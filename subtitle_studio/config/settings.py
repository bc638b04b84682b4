"""Cache configuration with validation.

Settings are loaded with Pydantic Settings from, in priority order:
- keyword arguments
- environment variables prefixed with ``SUBTITLE_CACHE_``
- a ``.env`` file (parsed by python-dotenv)
- the defaults below
"""
from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..cache.subtitle_cache import ExpiryPolicy

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""
    pass


class CacheSettings(BaseSettings):
    """Location, expiry windows and tuning of the result cache."""

    model_config = SettingsConfigDict(
        env_prefix="SUBTITLE_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    cache_dir: Path = Field(default_factory=lambda: Path.home() / ".subtitle_studio" / "cache")

    # Expiry windows
    transcription_max_age_days: float = 30
    translation_max_age_days: float = 30
    project_snapshot_max_age_minutes: float = 60

    # Tuning
    lock_timeout_seconds: float = 5.0
    hash_chunk_size: int = 8192

    log_level: str = "INFO"

    @field_validator(
        "transcription_max_age_days",
        "translation_max_age_days",
        "project_snapshot_max_age_minutes",
        "lock_timeout_seconds",
        "hash_chunk_size",
    )
    @classmethod
    def validate_positive(cls, v: Any) -> Any:
        """Reject zero and negative durations and sizes."""
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level '{v}', expected one of {sorted(_LOG_LEVELS)}")
        return level

    @field_validator("cache_dir", mode="before")
    @classmethod
    def expand_cache_dir(cls, v: Any) -> Any:
        """Expand ``~`` in configured cache directories."""
        if isinstance(v, (str, Path)):
            return Path(v).expanduser()
        return v

    def expiry_policy(self) -> ExpiryPolicy:
        """Expiry windows as used by the cache facade."""
        return ExpiryPolicy(
            transcription=timedelta(days=self.transcription_max_age_days),
            translation=timedelta(days=self.translation_max_age_days),
            project_snapshot=timedelta(minutes=self.project_snapshot_max_age_minutes),
        )


def load_settings(env_file: Optional[Path] = None, **overrides: Any) -> CacheSettings:
    """Load and validate cache settings.

    Args:
        env_file: Path to a .env file (defaults to .env in the working directory)
        **overrides: Explicit values that take precedence over the environment

    Raises:
        ConfigurationError: If any value fails validation
    """
    try:
        if env_file is not None:
            return CacheSettings(_env_file=str(env_file), **overrides)
        return CacheSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Cache configuration validation failed: {e}") from e
