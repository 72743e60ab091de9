"""Resolve a command name to an absolute path with the platform lookup utility."""

import subprocess
import sys

from agentprobe.core.logging import get_logger


logger = get_logger(__name__)


def lookup_utility(platform: str | None = None) -> str:
    """Return ``where`` on Windows and ``which`` everywhere else."""
    platform = platform or sys.platform
    return "where" if platform == "win32" else "which"


def resolve_command_path(
    command: str,
    *,
    platform: str | None = None,
    timeout: float = 5.0,
) -> str | None:
    """Locate ``command`` on the PATH.

    Args:
        command: Bare command name, e.g. ``codex``
        platform: Override for ``sys.platform``
        timeout: Seconds to wait for the lookup utility

    Returns:
        First non-empty line printed by the lookup utility, or None when the
        command is not found or the lookup itself fails.
    """
    if not command:
        return None

    resolver = lookup_utility(platform)
    try:
        completed = subprocess.run(
            [resolver, command],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except (subprocess.SubprocessError, OSError) as e:
        logger.debug(
            "command_path_unresolved",
            command=command,
            resolver=resolver,
            error=str(e),
        )
        return None

    for line in completed.stdout.splitlines():
        line = line.strip()
        if line:
            return line
    return None
