"""Core error types for the detection engine."""

import errno


class AgentProbeError(Exception):
    """Base exception for all agentprobe errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        """Initialize with a message and optional cause.

        Args:
            message: The error message
            cause: The underlying exception that caused this error
        """
        super().__init__(message)
        self.cause = cause
        if cause:
            # Use Python's exception chaining
            self.__cause__ = cause


class ProbeError(AgentProbeError):
    """Error attached to a probe result that did not complete normally."""

    def __init__(
        self,
        message: str,
        command: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.command = command


class ProbeTimeoutError(ProbeError):
    """The probed process exceeded its time budget and was killed."""

    def __init__(
        self,
        message: str = "Command timeout",
        command: str | None = None,
        timeout_ms: int | None = None,
    ):
        """Initialize with a message, the command and the timeout in effect.

        Args:
            message: The error message
            command: The command that was running
            timeout_ms: The timeout value in milliseconds
        """
        super().__init__(message, command)
        self.timeout_ms = timeout_ms


class CommandNotFoundError(ProbeError):
    """The login shell reported that the command does not exist."""


class StatusStoreError(AgentProbeError):
    """Error raised when the provider status store cannot be read or written."""


class ConfigurationError(AgentProbeError):
    """Raised when configuration loading or validation fails."""


def is_not_found_error(error: BaseException | None) -> bool:
    """Return True when ``error`` means the executable does not exist."""
    if error is None:
        return False
    if isinstance(error, (FileNotFoundError, CommandNotFoundError)):
        return True
    return getattr(error, "errno", None) == errno.ENOENT
