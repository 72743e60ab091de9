"""Single-slot, cancellable timeout retries keyed by provider id."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from agentprobe.core import async_runtime
from agentprobe.core.logging import get_logger
from agentprobe.providers.models import CommandResult


logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]
RetryCallback = Callable[[], Awaitable[object]]


@dataclass
class _RetryHandle:
    task: async_runtime.Task[None]
    fired: bool = False


class TimeoutRetryScheduler:
    """Arms at most one deferred re-probe per provider.

    A provider is *pending* from the moment a retry is armed until the retried
    check finishes or the retry is cancelled. Once the delay has elapsed the
    handle is marked fired and cancelling it only clears the pending state; a
    retried check that is already running is left to complete.
    """

    def __init__(
        self,
        *,
        delay_ms: int = 1500,
        timeout_floor_ms: int = 12000,
        sleep: Sleep | None = None,
    ) -> None:
        self.delay_ms = delay_ms
        self.timeout_floor_ms = timeout_floor_ms
        self._sleep: Sleep = sleep or async_runtime.sleep
        self._handles: dict[str, _RetryHandle] = {}

    def is_pending(self, provider_id: str) -> bool:
        return provider_id in self._handles

    def pending_ids(self) -> list[str]:
        return list(self._handles)

    def retry_timeout_ms(self, timeout_ms: int) -> int:
        return max(timeout_ms * 2, self.timeout_floor_ms)

    def should_retry(
        self, provider_id: str, result: CommandResult, allow_retry: bool
    ) -> bool:
        """Whether a timed-out probe showed enough evidence to try again."""
        return (
            result.timed_out
            and bool(result.resolved_path or result.stdout)
            and allow_retry
            and not self.is_pending(provider_id)
        )

    def arm(self, provider_id: str, callback: RetryCallback) -> None:
        """Schedule ``callback`` after the retry delay.

        Any handle already held for ``provider_id`` is cancelled first, so the
        map never holds two timers for one provider.
        """
        self.cancel(provider_id)
        task = async_runtime.create_task(
            self._run(provider_id, callback), name=f"timeout_retry_{provider_id}"
        )
        self._handles[provider_id] = _RetryHandle(task=task)
        logger.debug(
            "timeout_retry_scheduled", provider_id=provider_id, delay_ms=self.delay_ms
        )

    def cancel(self, provider_id: str) -> bool:
        """Cancel the pending retry for ``provider_id``; True if one existed."""
        handle = self._handles.pop(provider_id, None)
        if handle is None:
            return False
        if not handle.fired:
            handle.task.cancel()
            logger.debug("timeout_retry_cancelled", provider_id=provider_id)
        return True

    def cancel_all(self) -> None:
        for provider_id in list(self._handles):
            self.cancel(provider_id)

    async def _run(self, provider_id: str, callback: RetryCallback) -> None:
        await self._sleep(self.delay_ms / 1000)
        handle = self._handles.get(provider_id)
        if handle is not None:
            handle.fired = True
        try:
            await callback()
        except Exception as e:
            logger.error(
                "timeout_retry_failed",
                provider_id=provider_id,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
        finally:
            if handle is not None and self._handles.get(provider_id) is handle:
                del self._handles[provider_id]
