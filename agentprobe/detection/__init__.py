"""Provider connectivity detection: probing, classification and orchestration."""

from .broadcast import STATUS_UPDATED_CHANNEL, StatusBroadcaster, StatusWindow
from .cascade import ProviderProbe
from .classifier import resolve_message, resolve_status
from .probe import ProcessProbe, extract_version, quote_for_cmd_exe
from .resolver import lookup_utility, resolve_command_path
from .retry import TimeoutRetryScheduler
from .service import ConnectionsService
from .shell import ShellFallbackProbe
from .store import InMemoryStatusStore, JsonFileStatusStore, StatusStore


__all__ = [
    "STATUS_UPDATED_CHANNEL",
    "ConnectionsService",
    "InMemoryStatusStore",
    "JsonFileStatusStore",
    "ProcessProbe",
    "ProviderProbe",
    "ShellFallbackProbe",
    "StatusBroadcaster",
    "StatusStore",
    "StatusWindow",
    "TimeoutRetryScheduler",
    "extract_version",
    "lookup_utility",
    "quote_for_cmd_exe",
    "resolve_command_path",
    "resolve_message",
    "resolve_status",
]
