"""Provider definition, probe result and status models."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class StatusCode(str, Enum):
    CONNECTED = "connected"
    MISSING = "missing"
    NEEDS_KEY = "needs_key"
    ERROR = "error"


class CheckReason(str, Enum):
    BOOTSTRAP = "bootstrap"
    MANUAL = "manual"
    TIMEOUT_RETRY = "timeout-retry"


@dataclass
class CommandResult:
    """Outcome of one probe attempt.

    ``stdout``/``stderr`` hold everything the process wrote; only log records
    truncate them. ``status`` is ``None`` when the process never exited on
    its own terms (spawn failure, or a not-found verdict from the shell).
    """

    command: str
    success: bool
    stdout: str = ""
    stderr: str = ""
    status: int | None = None
    resolved_path: str | None = None
    version: str | None = None
    timed_out: bool = False
    timeout_ms: int | None = None
    error: BaseException | None = None


StatusResolver = Callable[[CommandResult], StatusCode]
MessageResolver = Callable[[CommandResult, StatusCode], str | None]


@dataclass(frozen=True)
class ProviderDefinition:
    """Static description of an agent CLI the host can drive."""

    id: str
    name: str
    commands: tuple[str, ...] = ()
    version_args: tuple[str, ...] = ("--version",)
    doc_url: str | None = None
    install_command: str | None = None
    detectable: bool = True
    status_resolver: StatusResolver | None = field(default=None, compare=False)
    message_resolver: MessageResolver | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        # Accept lists from callers while keeping the definition immutable
        object.__setattr__(self, "commands", tuple(self.commands))
        object.__setattr__(self, "version_args", tuple(self.version_args))


def now_ms() -> int:
    return int(time.time() * 1000)


class ProviderStatus(BaseModel):
    """Persisted availability record, one per provider id."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    installed: bool
    path: str | None = None
    version: str | None = None
    last_checked: int = Field(default_factory=now_ms, alias="lastChecked")


class CliProviderStatus(BaseModel):
    """Latest classification of a provider, as shown to the user."""

    id: str
    name: str
    status: StatusCode
    version: str | None = None
    message: str | None = None
    doc_url: str | None = None
    command: str | None = None
    install_command: str | None = None


class ProviderStatusEvent(BaseModel):
    """Payload broadcast to every open window after a completed check."""

    model_config = ConfigDict(populate_by_name=True)

    provider_id: str = Field(alias="providerId")
    status: ProviderStatus
