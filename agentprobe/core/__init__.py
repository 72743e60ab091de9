"""Core building blocks shared across the detection engine."""

from .errors import (
    AgentProbeError,
    CommandNotFoundError,
    ConfigurationError,
    ProbeError,
    ProbeTimeoutError,
    StatusStoreError,
    is_not_found_error,
)
from .logging import get_logger, setup_logging


__all__ = [
    "AgentProbeError",
    "CommandNotFoundError",
    "ConfigurationError",
    "ProbeError",
    "ProbeTimeoutError",
    "StatusStoreError",
    "get_logger",
    "is_not_found_error",
    "setup_logging",
]
