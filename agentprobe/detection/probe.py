"""Run one external command with a bounded lifetime and capture its outcome."""

from __future__ import annotations

import asyncio
import os
import re
import sys
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any, Protocol

from agentprobe.core import async_runtime
from agentprobe.core.errors import ProbeTimeoutError, is_not_found_error
from agentprobe.core.logging import get_logger, truncate
from agentprobe.providers.models import CommandResult

from .resolver import resolve_command_path


logger = get_logger(__name__)

VERSION_PATTERN = re.compile(r"\d+\.\d+(\.\d+)?")
CMD_SCRIPT_SUFFIXES = (".cmd", ".bat")
_CMD_NEEDS_QUOTING = re.compile(r'[\s"^&|<>()%!]')
_CMD_METACHARS = re.compile(r'(["^&|<>()])')
_READ_CHUNK = 4096


class ProcessLike(Protocol):
    stdout: asyncio.StreamReader | None
    stderr: asyncio.StreamReader | None
    returncode: int | None

    async def wait(self) -> int: ...

    def kill(self) -> None: ...


Spawner = Callable[..., Awaitable[ProcessLike]]
PathResolver = Callable[[str], str | None]


def quote_for_cmd_exe(token: str) -> str:
    """Quote one argument for a ``cmd.exe /d /s /c`` command line."""
    if not token:
        return '""'
    if not _CMD_NEEDS_QUOTING.search(token):
        return token
    escaped = token.replace("%", "%%").replace("!", "^!")
    escaped = _CMD_METACHARS.sub(r"^\1", escaped)
    return f'"{escaped}"'


def extract_version(output: str) -> str | None:
    """Return the first ``major.minor[.patch]`` token in ``output``."""
    if not output:
        return None
    match = VERSION_PATTERN.search(output)
    return match.group(0) if match else None


async def _drain(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    if stream is None:
        return
    while True:
        data = await stream.read(_READ_CHUNK)
        if not data:
            return
        chunks.append(data)


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


class ProcessProbe:
    """Spawns a command, enforces its timeout and normalizes the outcome.

    ``run`` never raises for process-level failures: a missing executable,
    a permission error or a timeout all come back as a ``CommandResult``.
    """

    def __init__(
        self,
        *,
        spawner: Spawner | None = None,
        path_resolver: PathResolver | None = None,
        platform: str | None = None,
        resolver_timeout: float = 5.0,
        kill_grace_seconds: float = 2.0,
        log_truncate_chars: int = 400,
    ) -> None:
        self._spawner: Spawner = spawner or async_runtime.create_subprocess_exec
        self._platform = platform or sys.platform
        self._path_resolver: PathResolver = path_resolver or partial(
            resolve_command_path, platform=self._platform, timeout=resolver_timeout
        )
        self._kill_grace = kill_grace_seconds
        self._truncate_at = log_truncate_chars

    @property
    def platform(self) -> str:
        return self._platform

    async def resolve_path(self, command: str) -> str | None:
        """Best-effort path lookup, run off the event loop."""
        try:
            return await async_runtime.to_thread(self._path_resolver, command)
        except Exception as e:
            logger.debug("command_path_lookup_failed", command=command, error=str(e))
            return None

    def build_argv(self, executable: str, args: list[str]) -> list[str]:
        """Build the argument vector handed to the spawner.

        Windows batch shims cannot be executed directly, so they go through the
        command interpreter with every token quoted. Everything else is spawned
        as a plain argument vector without a shell.
        """
        if self._platform == "win32" and executable.lower().endswith(
            CMD_SCRIPT_SUFFIXES
        ):
            comspec = os.environ.get("ComSpec") or "cmd.exe"
            line = " ".join(quote_for_cmd_exe(t) for t in [executable, *args])
            return [comspec, "/d", "/s", "/c", line]
        return [executable, *args]

    async def run(
        self, command: str, args: list[str], timeout_ms: int
    ) -> CommandResult:
        resolved_path = await self.resolve_path(command)
        executable = resolved_path or command
        argv = self.build_argv(executable, list(args))

        try:
            process = await self._spawner(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=async_runtime.PIPE,
                stderr=async_runtime.PIPE,
            )
        except Exception as e:
            log = logger.debug if is_not_found_error(e) else logger.warning
            log(
                "provider_command_spawn_error",
                command=command,
                executable=executable,
                resolved_path=resolved_path,
                error=str(e),
            )
            return CommandResult(
                command=command,
                success=False,
                status=None,
                resolved_path=resolved_path,
                timeout_ms=timeout_ms,
                error=e,
            )

        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        readers = [
            async_runtime.create_task(_drain(process.stdout, stdout_chunks)),
            async_runtime.create_task(_drain(process.stderr, stderr_chunks)),
        ]

        timed_out = False
        try:
            await async_runtime.wait_for(process.wait(), timeout_ms / 1000)
        except async_runtime.TimeoutError:
            timed_out = True
            self._kill(process)
            await self._reap(process)
        except async_runtime.CancelledError:
            self._kill(process)
            for reader in readers:
                reader.cancel()
            raise

        await self._collect(readers)

        stdout = _decode(stdout_chunks)
        stderr = _decode(stderr_chunks)
        status = self._exit_status(process, timed_out)
        success = not timed_out and status == 0
        version = extract_version(stdout) or extract_version(stderr)

        if not success:
            logger.warning(
                "provider_command_exit_failed",
                command=command,
                executable=executable,
                resolved_path=resolved_path,
                status=status,
                timed_out=timed_out,
                stderr=truncate(stderr, self._truncate_at) if stderr else None,
                stdout=truncate(stdout, self._truncate_at) if stdout else None,
            )

        return CommandResult(
            command=command,
            success=success,
            stdout=stdout,
            stderr=stderr,
            status=status,
            resolved_path=resolved_path,
            version=version,
            timed_out=timed_out,
            timeout_ms=timeout_ms,
            error=(
                ProbeTimeoutError(command=command, timeout_ms=timeout_ms)
                if timed_out
                else None
            ),
        )

    def _kill(self, process: ProcessLike) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            pass

    async def _reap(self, process: ProcessLike) -> None:
        # A killed child normally exits at once; don't hang on one that won't
        try:
            await async_runtime.wait_for(process.wait(), self._kill_grace)
        except async_runtime.TimeoutError:
            logger.warning("provider_command_kill_unconfirmed", pid=_pid(process))

    async def _collect(self, readers: list[asyncio.Task[None]]) -> None:
        # Grandchildren can keep the pipes open after the child is gone
        try:
            await async_runtime.wait_for(
                async_runtime.gather(*readers, return_exceptions=True), self._kill_grace
            )
        except async_runtime.TimeoutError:
            for reader in readers:
                reader.cancel()

    @staticmethod
    def _exit_status(process: ProcessLike, timed_out: bool) -> int | None:
        if timed_out:
            return None
        code = process.returncode
        # Negative codes mean the child was ended by a signal
        if code is None or code < 0:
            return None
        return code


def _pid(process: Any) -> int | None:
    return getattr(process, "pid", None)
