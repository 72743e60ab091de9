"""Provider-level probing across the ordered candidate commands."""

from __future__ import annotations

from dataclasses import replace

from agentprobe.core.errors import is_not_found_error
from agentprobe.providers.models import CommandResult, ProviderDefinition

from .probe import ProcessProbe
from .shell import ShellFallbackProbe


class ProviderProbe:
    """Try each candidate command of a provider, then the login shell."""

    def __init__(
        self,
        process_probe: ProcessProbe | None = None,
        shell_probe: ShellFallbackProbe | None = None,
    ) -> None:
        self.process_probe = process_probe or ProcessProbe()
        self.shell_probe = shell_probe or ShellFallbackProbe(self.process_probe)

    async def probe(
        self, definition: ProviderDefinition, timeout_ms: int
    ) -> CommandResult:
        """Probe ``definition`` and return the most informative result.

        The first successful candidate wins. A candidate that exists but fails
        for any reason other than "not found" is returned as is, since it
        explains more than the next candidate would. When every candidate is
        simply missing, the last one is retried through the login shell.
        A candidate located on PATH keeps its path when the shell cannot
        do better.
        """
        if not definition.commands:
            return CommandResult(command="", success=False, timeout_ms=timeout_ms)

        args = list(definition.version_args)
        found_on_path: CommandResult | None = None
        for command in definition.commands:
            result = await self.process_probe.run(command, args, timeout_ms)
            if result.success:
                return result
            if result.error is not None and not is_not_found_error(result.error):
                return result
            if result.resolved_path is not None:
                found_on_path = result

        fallback = await self.shell_probe.run(
            definition.commands[-1], args, timeout_ms
        )
        if found_on_path is None:
            return fallback
        if fallback.success:
            if fallback.command == found_on_path.command:
                return replace(fallback, resolved_path=found_on_path.resolved_path)
            return fallback
        # The shell never reports a path, the direct attempt located the binary
        return found_on_path
