"""
SourceSafe error types.

Every failure raised by the provider derives from SourceSafeError. Most
kinds are classified from the text ss.exe writes rather than from its exit
code, which the tool does not set reliably.
"""

from typing import Optional


class SourceSafeError(Exception):
    """Base class for all SourceSafe provider errors."""


class NotAvailableError(SourceSafeError):
    """The SourceSafe client executable could not be located."""


class ArgumentError(SourceSafeError, ValueError):
    """A command or its inputs are malformed (missing command, missing database file...)."""


class DatabasePermissionError(SourceSafeError, PermissionError):
    """Read or write access to the database file is denied."""


class AuthenticationError(SourceSafeError):
    """ss.exe stopped at its Username: prompt."""


class InvalidPathError(SourceSafeError, ValueError):
    """The path does not exist in the database."""


class ToolError(SourceSafeError):
    """ss.exe wrote something unexpected to stderr."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class NotFoundError(SourceSafeError, FileNotFoundError):
    """A file expected on local disk after a retrieval is missing."""


class CommandTimeoutError(SourceSafeError, TimeoutError):
    """ss.exe ran past the configured timeout and was killed.

    The partially captured output is kept on ``result`` for diagnosis.
    """

    def __init__(self, message: str, result: Optional[object] = None):
        super().__init__(message)
        self.result = result
