"""agentprobe - connectivity detection for external AI agent CLIs."""

from .detection import ConnectionsService
from .providers import CliProviderStatus, ProviderStatus, StatusCode


__version__ = "0.1.0"

__all__ = [
    "CliProviderStatus",
    "ConnectionsService",
    "ProviderStatus",
    "StatusCode",
    "__version__",
]
