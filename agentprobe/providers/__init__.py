"""Provider definitions and the registry consumed by detection."""

from .catalog import PROVIDER_CATALOG
from .models import (
    CheckReason,
    CliProviderStatus,
    CommandResult,
    ProviderDefinition,
    ProviderStatus,
    ProviderStatusEvent,
    StatusCode,
)
from .registry import ProviderRegistry, default_registry


__all__ = [
    "PROVIDER_CATALOG",
    "CheckReason",
    "CliProviderStatus",
    "CommandResult",
    "ProviderDefinition",
    "ProviderRegistry",
    "ProviderStatus",
    "ProviderStatusEvent",
    "StatusCode",
    "default_registry",
]
