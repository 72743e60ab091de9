import os
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from agentprobe.core.errors import ConfigurationError
from agentprobe.core.logging import get_logger


__all__ = [
    "DetectionSettings",
    "LoggingSettings",
    "Settings",
    "StoreSettings",
    "get_agentprobe_cache_dir",
]

ENV_PREFIX = "AGENTPROBE_"


def get_agentprobe_cache_dir() -> Path:
    """Return the per-user cache directory used for persisted statuses."""
    cache_home = os.environ.get("XDG_CACHE_HOME")
    base = Path(cache_home) if cache_home else Path.home() / ".cache"
    return base / "agentprobe"


class DetectionSettings(BaseModel):
    """Probe timing and retry configuration."""

    model_config = ConfigDict(validate_assignment=True)

    default_timeout_ms: int = Field(
        default=3000,
        gt=0,
        description="Timeout applied to each probe when the caller passes none",
    )

    retry_delay_ms: int = Field(
        default=1500,
        ge=0,
        description="Delay before a scheduled timeout retry runs",
    )

    retry_timeout_floor_ms: int = Field(
        default=12000,
        gt=0,
        description="Minimum timeout used by a timeout retry",
    )

    resolver_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for the which/where path lookup",
    )

    log_truncate_chars: int = Field(
        default=400,
        gt=0,
        description="Maximum characters of captured output included in log records",
    )


class StoreSettings(BaseModel):
    """Persisted provider status store configuration."""

    model_config = ConfigDict(validate_assignment=True)

    path: Path = Field(
        default_factory=lambda: get_agentprobe_cache_dir() / "provider-status.json",
        description="JSON file holding the last known status of each provider",
    )


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(validate_assignment=True)

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )

    json_logs: bool = Field(
        default=False,
        description="Render log records as JSON instead of console output",
    )


class Settings(BaseSettings):
    """
    Configuration settings for the provider detection engine.

    Values come from ``AGENTPROBE_`` environment variables (nested sections use
    ``__``, e.g. ``AGENTPROBE_DETECTION__DEFAULT_TIMEOUT_MS``) and optionally a
    TOML file. Environment variables take precedence over file values.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    detection: DetectionSettings = Field(
        default_factory=DetectionSettings,
        description="Probe timing and retry settings",
    )

    store: StoreSettings = Field(
        default_factory=StoreSettings,
        description="Status store settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}", cause=e
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(
                f"Invalid TOML syntax in {toml_path}: {e}", cause=e
            ) from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **kwargs: Any,
    ) -> "Settings":
        """Create a Settings instance from an optional TOML file.

        Args:
            config_path: TOML file to read; falls back to ``AGENTPROBE_CONFIG_FILE``
            **kwargs: Per-section overrides applied last, e.g.
                ``detection={"default_timeout_ms": 500}``

        Raises:
            ConfigurationError: If the file cannot be read or holds invalid values
        """
        if config_path is None:
            config_path_env = os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if not config_path.exists():
                raise ConfigurationError(f"Config file not found: {config_path}")
            config_data = cls.load_toml_config(config_path)
            get_logger(__name__).info(
                "config_file_loaded", path=str(config_path), category="config"
            )

        try:
            settings = cls()

            for section, values in config_data.items():
                if not isinstance(values, dict) or section not in cls.model_fields:
                    continue
                nested_obj = getattr(settings, section)
                for key, value in values.items():
                    env_key = f"{ENV_PREFIX}{section.upper()}__{key.upper()}"
                    if os.getenv(env_key) is None:
                        setattr(nested_obj, key, value)

            for section, overrides in kwargs.items():
                nested_obj = getattr(settings, section)
                for key, value in overrides.items():
                    setattr(nested_obj, key, value)
        except (ValidationError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}", cause=e) from e

        return settings
