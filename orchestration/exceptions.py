"""
Exception types raised by the orchestration layer.

Every public operation either returns a fully populated result or raises
exactly one of the subclasses of OrchestrationError defined here.
"""

from typing import Optional


class OrchestrationError(Exception):
    """Base class for all orchestration errors."""


class ConfigurationError(OrchestrationError):
    """Raised when the adapter cannot be built from the given settings."""

    def __init__(self, message: str):
        super().__init__(f"Orchestration configuration error: {message}")


class ValidationError(OrchestrationError):
    """Raised when caller-supplied input cannot be satisfied locally."""


class ProtocolError(OrchestrationError):
    """
    Raised when a backend response does not follow its wire or text format.

    Typical causes:
    - A multiplexed exec stream ends in the middle of a frame
    - A frame carries an unknown stream type
    - Tabular CLI output has a record without an id or an unparseable number
    """


class BackendError(OrchestrationError):
    """
    Raised when the backend reports a failure.

    For the API driver this is any unexpected HTTP status code, for the CLI
    driver any non-zero exit code other than the timeout code.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        exit_code: Optional[int] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.exit_code = exit_code
        super().__init__(f"Docker Error: {message}")


class CommandTimeoutError(OrchestrationError, TimeoutError):
    """Raised when a command exceeds the caller's time budget."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        message = "Command timed out"
        if timeout is not None:
            message += f" after {timeout}s"
        super().__init__(message)
