"""Re-run a probe through the user's login shell."""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import PureWindowsPath

from agentprobe.core.errors import CommandNotFoundError
from agentprobe.core.logging import get_logger
from agentprobe.providers.models import CommandResult

from .probe import ProcessProbe


logger = get_logger(__name__)

POSIX_NOT_FOUND_EXIT = 127
CMD_NOT_FOUND_EXIT = 9009


class ShellFallbackProbe:
    """Surface tools that only exist on the PATH a login shell builds.

    Version managers (nvm, asdf, volta, ...) often add their shims from shell
    rc files, which a desktop application launched from a GUI never sees.
    """

    def __init__(self, probe: ProcessProbe, *, shell: str | None = None) -> None:
        self._probe = probe
        self._shell = shell

    @property
    def is_windows(self) -> bool:
        return self._probe.platform == "win32"

    def shell_executable(self) -> str:
        if self._shell:
            return self._shell
        return os.environ.get("SHELL") or ("cmd.exe" if self.is_windows else "/bin/sh")

    def _uses_cmd(self, shell: str) -> bool:
        return PureWindowsPath(shell).name.lower() in ("cmd", "cmd.exe")

    def build_shell_args(self, command: str, args: list[str]) -> tuple[str, list[str]]:
        shell = self.shell_executable()
        line = " ".join([command, *args])
        if self._uses_cmd(shell):
            return shell, ["/c", line]
        return shell, ["-lc", line]

    async def run(
        self, command: str, args: list[str], timeout_ms: int
    ) -> CommandResult:
        shell, shell_args = self.build_shell_args(command, args)
        result = await self._probe.run(shell, shell_args, timeout_ms)

        not_found_exit = (
            CMD_NOT_FOUND_EXIT if self._uses_cmd(shell) else POSIX_NOT_FOUND_EXIT
        )
        if result.status == not_found_exit:
            logger.debug("shell_fallback_not_found", command=command, shell=shell)
            return replace(
                result,
                command=command,
                success=False,
                status=None,
                resolved_path=None,
                error=CommandNotFoundError(
                    f"{command}: command not found (shell fallback)",
                    command=command,
                ),
            )

        # The resolved path belongs to the shell, not to the probed tool
        return replace(result, command=command, resolved_path=None)
