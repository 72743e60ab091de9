"""Configuration module for the provider detection engine."""

from .settings import (
    DetectionSettings,
    LoggingSettings,
    Settings,
    StoreSettings,
    get_agentprobe_cache_dir,
)


__all__ = [
    "DetectionSettings",
    "LoggingSettings",
    "Settings",
    "StoreSettings",
    "get_agentprobe_cache_dir",
]
