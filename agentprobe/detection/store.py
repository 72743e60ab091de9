"""Persisted provider status stores."""

from __future__ import annotations

import contextlib
import json
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from agentprobe.core.errors import StatusStoreError
from agentprobe.core.logging import get_logger
from agentprobe.providers.models import ProviderStatus


logger = get_logger(__name__)


@runtime_checkable
class StatusStore(Protocol):
    """Key-value store of the last known status per provider id."""

    async def load(self) -> None: ...

    def get_all(self) -> dict[str, ProviderStatus]: ...

    def set(self, provider_id: str, status: ProviderStatus) -> None: ...


class InMemoryStatusStore:
    """Process-lifetime store, used by tests and one-shot CLI runs."""

    def __init__(self, initial: dict[str, ProviderStatus] | None = None) -> None:
        self._statuses: dict[str, ProviderStatus] = dict(initial or {})

    async def load(self) -> None:
        return None

    def get_all(self) -> dict[str, ProviderStatus]:
        return dict(self._statuses)

    def set(self, provider_id: str, status: ProviderStatus) -> None:
        self._statuses[provider_id] = status


class JsonFileStatusStore:
    """Status store backed by a JSON file, written atomically on every set."""

    def __init__(self, file_path: Path):
        """Initialize JSON file storage.

        Args:
            file_path: Path to the JSON status file
        """
        self.file_path = file_path
        self._statuses: dict[str, ProviderStatus] = {}

    async def load(self) -> None:
        """Load persisted statuses, replacing the in-memory map.

        A missing file is an empty store.

        Raises:
            StatusStoreError: If the file cannot be read or parsed
        """
        if not self.file_path.is_file():
            logger.debug("status_file_not_found", path=str(self.file_path))
            self._statuses = {}
            return

        try:
            with self.file_path.open() as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise StatusStoreError(
                    f"Expected a JSON object in {self.file_path}, "
                    f"got {type(data).__name__}"
                )
            self._statuses = {
                provider_id: ProviderStatus.model_validate(entry)
                for provider_id, entry in data.items()
            }
        except StatusStoreError:
            raise
        except (json.JSONDecodeError, ValidationError) as e:
            raise StatusStoreError(
                f"Failed to parse status file {self.file_path}: {e}", cause=e
            ) from e
        except OSError as e:
            raise StatusStoreError(
                f"Error loading statuses from {self.file_path}: {e}", cause=e
            ) from e

        logger.debug(
            "status_file_loaded",
            path=str(self.file_path),
            providers=len(self._statuses),
        )

    def get_all(self) -> dict[str, ProviderStatus]:
        return dict(self._statuses)

    def set(self, provider_id: str, status: ProviderStatus) -> None:
        """Replace the status of ``provider_id`` and persist the whole map.

        Raises:
            StatusStoreError: If the file cannot be written
        """
        self._statuses[provider_id] = status
        self._save()

    def _save(self) -> None:
        data = {
            provider_id: status.model_dump(by_alias=True)
            for provider_id, status in self._statuses.items()
        }
        temp_path = self.file_path.with_suffix(".tmp")
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                with temp_path.open("w") as f:
                    json.dump(data, f, indent=2)
                temp_path.chmod(0o600)
                temp_path.replace(self.file_path)
            except Exception:
                if temp_path.exists():
                    with contextlib.suppress(OSError):
                        temp_path.unlink()
                raise
        except OSError as e:
            raise StatusStoreError(f"Error saving provider statuses: {e}", cause=e) from e

    def get_location(self) -> str:
        return str(self.file_path)
