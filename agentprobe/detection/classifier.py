"""Map probe results to provider status codes and user-facing messages."""

from agentprobe.core.errors import is_not_found_error
from agentprobe.providers.models import CommandResult, ProviderDefinition, StatusCode


def resolve_status(definition: ProviderDefinition, result: CommandResult) -> StatusCode:
    """Classify a probe result.

    A provider's own ``status_resolver`` always wins. The generic policy
    treats any sign of life as ``connected`` and never yields ``needs_key``.
    """
    if definition.status_resolver is not None:
        return definition.status_resolver(result)

    if result.success:
        return StatusCode.CONNECTED

    if result.resolved_path:
        return StatusCode.CONNECTED

    # Slow-starting tools still count as present
    if result.timed_out and result.stdout:
        return StatusCode.CONNECTED

    if (
        result.status is not None
        and not result.timed_out
        and (result.stdout or result.stderr)
    ):
        return StatusCode.CONNECTED

    if result.error is not None and not is_not_found_error(result.error):
        return StatusCode.ERROR
    return StatusCode.MISSING


def resolve_message(
    definition: ProviderDefinition, result: CommandResult, status: StatusCode
) -> str | None:
    if definition.message_resolver is not None:
        return definition.message_resolver(result, status)

    if status is StatusCode.MISSING:
        return f"{definition.name} was not found in PATH."

    if status is StatusCode.ERROR:
        for text in (result.stderr.strip(), result.stdout.strip()):
            if text:
                return text
        if result.error is not None:
            return str(result.error)

    return None
