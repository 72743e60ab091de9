"""Async primitives used by the detection engine.

Sleeping, timeouts and worker threads go through ``anyio``; tasks and
subprocesses stay on ``asyncio``, the backend the engine runs on. Probes and
the retry scheduler import from here only, so tests can swap a single seam.
"""

from __future__ import annotations

import asyncio
import functools
from asyncio import subprocess as asyncio_subprocess
from builtins import TimeoutError as BuiltinTimeoutError
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, TypeVar

import anyio
import sniffio


_T = TypeVar("_T")

Task = asyncio.Task
PIPE = asyncio_subprocess.PIPE
TimeoutError = BuiltinTimeoutError


def _cancelled_error_type() -> type[BaseException]:
    try:
        return anyio.get_cancelled_exc_class()
    except (sniffio.AsyncLibraryNotFoundError, RuntimeError):
        # Imported outside a running loop
        return asyncio.CancelledError


CancelledError = _cancelled_error_type()


def create_task(
    coro: Coroutine[Any, Any, _T], *, name: str | None = None
) -> asyncio.Task[_T]:
    return asyncio.create_task(coro, name=name)


async def gather(*aws: Awaitable[Any], return_exceptions: bool = False) -> list[Any]:
    return list(await asyncio.gather(*aws, return_exceptions=return_exceptions))


async def wait_for(awaitable: Awaitable[_T], timeout: float | None) -> _T:
    """Await ``awaitable``, raising ``TimeoutError`` once ``timeout`` elapses."""
    if timeout is None:
        return await awaitable
    with anyio.fail_after(timeout):
        return await awaitable


async def sleep(delay: float) -> None:
    await anyio.sleep(delay)


async def to_thread(func: Callable[..., _T], /, *args: Any, **kwargs: Any) -> _T:
    """Run a blocking callable in anyio's worker thread pool."""
    if kwargs:
        func = functools.partial(func, **kwargs)
    return await anyio.to_thread.run_sync(func, *args)


async def create_subprocess_exec(
    *cmd: Any, **kwargs: Any
) -> asyncio_subprocess.Process:
    return await asyncio.create_subprocess_exec(*cmd, **kwargs)
