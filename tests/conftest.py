"""Shared test fixtures for agentprobe tests.

Fixtures here replace process spawning and timers with scripted fakes so the
detection engine can be exercised deterministically.
"""

import asyncio
import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from agentprobe.config.settings import Settings
from agentprobe.providers.models import CommandResult, ProviderDefinition
from agentprobe.providers.registry import ProviderRegistry


class FakeProviderProbe:
    """Stands in for ``ProviderProbe`` with scripted results per provider.

    Each provider id maps to a list of results consumed in order; the last one
    repeats. A gate (``asyncio.Event``) can hold a call open until released.
    """

    def __init__(self) -> None:
        self.results: dict[str, list[CommandResult]] = {}
        self.gates: dict[str, list[asyncio.Event]] = {}
        self.calls: list[tuple[str, int]] = []

    def script(self, provider_id: str, *results: CommandResult) -> None:
        self.results[provider_id] = list(results)

    def gate(self, provider_id: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates.setdefault(provider_id, []).append(event)
        return event

    async def probe(
        self, definition: ProviderDefinition, timeout_ms: int
    ) -> CommandResult:
        self.calls.append((definition.id, timeout_ms))
        scripted = self.results.get(definition.id)
        if not scripted:
            result = CommandResult(
                command=definition.commands[0] if definition.commands else "",
                success=False,
                error=FileNotFoundError(2, "No such file or directory"),
            )
        elif len(scripted) > 1:
            result = scripted.pop(0)
        else:
            result = scripted[0]

        gates = self.gates.get(definition.id)
        if gates:
            await gates.pop(0).wait()
        return result


class RecordingWindow:
    """Window double that records every message it is sent."""

    def __init__(self, destroyed: bool = False, fail: bool = False) -> None:
        self.destroyed = destroyed
        self.fail = fail
        self.messages: list[tuple[str, dict[str, Any]]] = []

    def is_destroyed(self) -> bool:
        return self.destroyed

    def send(self, channel: str, payload: dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("window closed mid-send")
        self.messages.append((channel, payload))


class ManualSleep:
    """Awaitable sleep that only returns once the test releases it."""

    def __init__(self) -> None:
        self.calls: list[float] = []
        self._release = asyncio.Event()

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await self._release.wait()

    def release(self) -> None:
        self._release.set()


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Keep host configuration out of the tests."""
    for key in list(os.environ):
        if key.startswith("AGENTPROBE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.chdir(tmp_path)
    yield


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings with a temporary store path and fast retries."""
    return Settings.from_config(
        detection={"retry_delay_ms": 10},
        store={"path": tmp_path / "provider-status.json"},
    )


@pytest.fixture
def fake_probe() -> FakeProviderProbe:
    return FakeProviderProbe()


@pytest.fixture
def manual_sleep() -> ManualSleep:
    return ManualSleep()


@pytest.fixture
def make_window() -> Callable[..., RecordingWindow]:
    return RecordingWindow


@pytest.fixture
def sample_registry() -> ProviderRegistry:
    """Small registry with one provider of every interesting shape."""
    return ProviderRegistry(
        [
            ProviderDefinition(id="alpha", name="Alpha", commands=("alpha",)),
            ProviderDefinition(
                id="beta", name="Beta", commands=("beta", "beta-cli")
            ),
            ProviderDefinition(id="empty", name="Empty", commands=()),
            ProviderDefinition(
                id="hidden", name="Hidden", commands=("hidden",), detectable=False
            ),
        ]
    )
