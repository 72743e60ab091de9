"""Fan-out of provider status updates to every open window."""

from __future__ import annotations

from typing import Any, Protocol

from agentprobe.core.logging import get_logger
from agentprobe.providers.models import ProviderStatus, ProviderStatusEvent


logger = get_logger(__name__)

STATUS_UPDATED_CHANNEL = "provider:status-updated"


class StatusWindow(Protocol):
    def is_destroyed(self) -> bool: ...

    def send(self, channel: str, payload: dict[str, Any]) -> None: ...


class StatusBroadcaster:
    """Best-effort publisher of ``provider:status-updated`` events.

    Delivery is fire-once: windows that are gone or fail to accept the event
    are skipped and never retried.
    """

    def __init__(self) -> None:
        self._windows: list[StatusWindow] = []

    def register(self, window: StatusWindow) -> None:
        if window not in self._windows:
            self._windows.append(window)

    def unregister(self, window: StatusWindow) -> None:
        if window in self._windows:
            self._windows.remove(window)

    @property
    def window_count(self) -> int:
        return len(self._windows)

    def emit(self, provider_id: str, status: ProviderStatus) -> int:
        """Send the update to every live window; returns how many accepted it."""
        payload = ProviderStatusEvent(provider_id=provider_id, status=status).model_dump(
            by_alias=True
        )
        delivered = 0
        for window in list(self._windows):
            try:
                if window.is_destroyed():
                    continue
                window.send(STATUS_UPDATED_CHANNEL, payload)
                delivered += 1
            except Exception as e:
                logger.debug(
                    "status_broadcast_send_failed",
                    provider_id=provider_id,
                    error=str(e),
                )
        return delivered
