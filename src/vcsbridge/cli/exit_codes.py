"""
Exit codes for the vcsbridge CLI.
"""

from enum import IntEnum

from vcsbridge.core.exceptions import (
    AuthenticationError,
    CanceledError,
    ConfigError,
    ConnectionError,
    NotFoundError,
    UnsupportedOperationError,
)


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    CONNECTION_ERROR = 3
    NOT_FOUND = 4
    UNSUPPORTED = 5
    CANCELLED = 130  # 128 + SIGINT

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ExitCode":
        """Map an exception to the exit code reported for it."""
        if isinstance(exc, ConfigError):
            return cls.CONFIG_ERROR
        if isinstance(exc, ConnectionError | AuthenticationError):
            return cls.CONNECTION_ERROR
        if isinstance(exc, NotFoundError):
            return cls.NOT_FOUND
        if isinstance(exc, UnsupportedOperationError):
            return cls.UNSUPPORTED
        if isinstance(exc, CanceledError | KeyboardInterrupt):
            return cls.CANCELLED
        return cls.ERROR
