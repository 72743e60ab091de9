"""Provider connectivity detection service."""

from __future__ import annotations

from collections.abc import Callable

from agentprobe.config.settings import Settings
from agentprobe.core import async_runtime
from agentprobe.core.errors import StatusStoreError
from agentprobe.core.logging import get_logger, truncate
from agentprobe.providers.models import (
    CheckReason,
    CliProviderStatus,
    CommandResult,
    ProviderDefinition,
    ProviderStatus,
    StatusCode,
    now_ms,
)
from agentprobe.providers.registry import ProviderRegistry, default_registry

from .broadcast import StatusBroadcaster
from .cascade import ProviderProbe
from .classifier import resolve_message, resolve_status
from .probe import ProcessProbe
from .retry import TimeoutRetryScheduler
from .store import InMemoryStatusStore, JsonFileStatusStore, StatusStore


logger = get_logger(__name__)


class ConnectionsService:
    """Keeps the installed/connected status of every provider up to date.

    Construct one instance at process start, call ``initialize()`` once, and
    ``shutdown()`` when the host exits. Checks for the same provider are not
    serialized; whichever finishes last owns the stored status.
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        store: StatusStore | None = None,
        broadcaster: StatusBroadcaster | None = None,
        probe: ProviderProbe | None = None,
        retry_scheduler: TimeoutRetryScheduler | None = None,
        settings: Settings | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.settings = settings or Settings()
        detection = self.settings.detection

        registry = registry or default_registry()
        self._definitions: dict[str, ProviderDefinition] = {
            d.id: d for d in registry.detectable()
        }
        self._store: StatusStore = store or InMemoryStatusStore()
        self.broadcaster = broadcaster or StatusBroadcaster()
        self._probe = probe or ProviderProbe(
            ProcessProbe(
                resolver_timeout=detection.resolver_timeout_seconds,
                log_truncate_chars=detection.log_truncate_chars,
            )
        )
        self._retry = retry_scheduler or TimeoutRetryScheduler(
            delay_ms=detection.retry_delay_ms,
            timeout_floor_ms=detection.retry_timeout_floor_ms,
        )
        self._clock = clock
        self._summaries: dict[str, CliProviderStatus] = {}
        self._initialized = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        registry: ProviderRegistry | None = None,
        broadcaster: StatusBroadcaster | None = None,
    ) -> ConnectionsService:
        """Build a service whose statuses persist to ``settings.store.path``."""
        return cls(
            registry=registry,
            store=JsonFileStatusStore(settings.store.path),
            broadcaster=broadcaster,
            settings=settings,
        )

    @property
    def definitions(self) -> list[ProviderDefinition]:
        return list(self._definitions.values())

    @property
    def retry_scheduler(self) -> TimeoutRetryScheduler:
        return self._retry

    async def initialize(self) -> None:
        """Load persisted statuses and check every provider once."""
        if self._initialized:
            return
        self._initialized = True

        await self.load_cached_statuses()
        await self._check_all(CheckReason.BOOTSTRAP)

        statuses = self._store.get_all()
        connected = [
            d.id for d in self.definitions if (s := statuses.get(d.id)) and s.installed
        ]
        not_installed = [d.id for d in self.definitions if d.id not in connected]
        logger.info(
            "providers_detected",
            connected=", ".join(connected) or "none",
            not_installed=", ".join(not_installed) or "none",
        )

    async def load_cached_statuses(self) -> dict[str, ProviderStatus]:
        """Read persisted statuses; an unreadable store starts out empty."""
        try:
            await self._store.load()
        except StatusStoreError as e:
            logger.warning("provider_status_store_load_failed", error=str(e))
        return self._store.get_all()

    async def shutdown(self) -> None:
        """Cancel pending retries; ``initialize()`` may be called again later."""
        self._retry.cancel_all()
        self._initialized = False

    def get_cached_provider_statuses(self) -> dict[str, ProviderStatus]:
        return self._store.get_all()

    def get_provider_summaries(self) -> dict[str, CliProviderStatus]:
        """Latest classification per provider checked in this process."""
        return dict(self._summaries)

    async def refresh_all_provider_statuses(self) -> dict[str, ProviderStatus]:
        logger.info("provider_refresh_all_start")
        await self._check_all(CheckReason.MANUAL)
        logger.info("provider_refresh_all_done")
        return self.get_cached_provider_statuses()

    async def check_provider(
        self,
        provider_id: str,
        reason: CheckReason | str = CheckReason.MANUAL,
        *,
        timeout_ms: int | None = None,
        allow_retry: bool = True,
    ) -> CliProviderStatus | None:
        """Probe one provider, persist and broadcast the outcome.

        Args:
            provider_id: Registry id; unknown ids are ignored
            reason: Why the check runs; anything but ``timeout-retry``
                cancels a pending retry for this provider first
            timeout_ms: Probe timeout, defaults to the configured value
            allow_retry: Whether a timeout may schedule a follow-up check

        Returns:
            The provider's classification, or None for an unknown id
        """
        definition = self._definitions.get(provider_id)
        if definition is None:
            return None

        reason = CheckReason(reason)
        if reason is not CheckReason.TIMEOUT_RETRY and self._retry.is_pending(
            provider_id
        ):
            self._retry.cancel(provider_id)

        if timeout_ms is None:
            timeout_ms = self.settings.detection.default_timeout_ms

        result = await self._probe.probe(definition, timeout_ms)
        status_code = resolve_status(definition, result)
        message = resolve_message(definition, result, status_code)
        self._cache_status(provider_id, result, status_code)

        summary = CliProviderStatus(
            id=definition.id,
            name=definition.name,
            status=status_code,
            version=result.version,
            message=message,
            doc_url=definition.doc_url,
            command=result.command or None,
            install_command=definition.install_command,
        )
        self._summaries[provider_id] = summary

        # Only binaries that were found on disk are worth a warning
        if (
            status_code in (StatusCode.ERROR, StatusCode.NEEDS_KEY)
            and result.resolved_path is not None
        ):
            self._log_provider_error(definition, result, status_code, reason)

        if self._retry.should_retry(provider_id, result, allow_retry):
            retry_timeout_ms = self._retry.retry_timeout_ms(timeout_ms)
            self._retry.arm(
                provider_id,
                lambda: self.check_provider(
                    provider_id,
                    CheckReason.TIMEOUT_RETRY,
                    timeout_ms=retry_timeout_ms,
                    allow_retry=False,
                ),
            )

        return summary

    async def _check_all(self, reason: CheckReason) -> None:
        ids = list(self._definitions)
        results = await async_runtime.gather(
            *(self.check_provider(provider_id, reason) for provider_id in ids),
            return_exceptions=True,
        )
        for provider_id, outcome in zip(ids, results, strict=True):
            if isinstance(outcome, BaseException):
                logger.error(
                    "provider_check_failed",
                    provider_id=provider_id,
                    reason=reason.value,
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )

    def _cache_status(
        self, provider_id: str, result: CommandResult, status_code: StatusCode
    ) -> None:
        status = ProviderStatus(
            installed=status_code is StatusCode.CONNECTED,
            path=result.resolved_path,
            version=result.version,
            last_checked=self._clock(),
        )
        try:
            self._store.set(provider_id, status)
        except StatusStoreError as e:
            logger.error(
                "provider_status_persist_failed", provider_id=provider_id, error=str(e)
            )
        self.broadcaster.emit(provider_id, status)

    def _log_provider_error(
        self,
        definition: ProviderDefinition,
        result: CommandResult,
        status_code: StatusCode,
        reason: CheckReason,
    ) -> None:
        limit = self.settings.detection.log_truncate_chars
        logger.warning(
            "provider_error",
            provider_id=definition.id,
            status=status_code.value,
            reason=reason.value,
            command=result.command,
            resolved_path=result.resolved_path,
            exit_status=result.status,
            stderr=truncate(result.stderr, limit) if result.stderr else None,
            stdout=truncate(result.stdout, limit) if result.stdout else None,
            error=str(result.error) if result.error else None,
        )
