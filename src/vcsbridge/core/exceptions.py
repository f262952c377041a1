"""
Exception hierarchy for vcsbridge.

Every failure a backend reports is re-expressed as exactly one of the kinds
below before it crosses the VcsClientPort boundary. Provider-native errors
(requests exceptions, JSON decode errors, zipfile errors) are kept only as
the ``cause`` of the translated exception.

Hierarchy:
    VcsError
    ├── ConnectionError            endpoint unreachable, TLS failure
    ├── AuthenticationError        credential rejected by the provider
    ├── NotFoundError              project/repository/branch/PR/commit missing
    ├── ValidationError            arguments violate provider constraints
    ├── UnsupportedOperationError  no equivalent on this provider
    ├── TransientError             retryable network/5xx condition
    │   └── RateLimitError
    └── CanceledError              caller cancellation or deadline

    ConfigError
    ├── ConfigFileError
    └── ConfigValidationError
"""

from __future__ import annotations


__all__ = [
    "AuthError",
    "AuthenticationError",
    "CanceledError",
    "ConfigError",
    "ConfigFileError",
    "ConfigValidationError",
    "ConnectionError",
    "NotFoundError",
    "RateLimitError",
    "TransientError",
    "UnsupportedOperationError",
    "ValidationError",
    "VcsError",
    "unsupported",
]


# =============================================================================
# Base
# =============================================================================


class VcsError(Exception):
    """
    Base class for all errors raised through the VCS client interface.

    Attributes:
        message: Human readable description.
        cause: The underlying exception, if any.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (caused by {type(self.cause).__name__}: {self.cause})"
        return self.message


# =============================================================================
# Taxonomy
# =============================================================================


class ConnectionError(VcsError):  # noqa: A001
    """The endpoint could not be reached or the TLS handshake failed."""


class AuthenticationError(VcsError):
    """The provider rejected the credential."""


AuthError = AuthenticationError


class NotFoundError(VcsError):
    """A referenced project, repository, branch, pull request or commit does not exist."""

    def __init__(
        self,
        message: str,
        *,
        resource: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.resource = resource


class ValidationError(VcsError):
    """Caller-supplied arguments violate a provider constraint."""


class UnsupportedOperationError(VcsError):
    """The operation has no equivalent on the provider."""

    def __init__(self, operation: str, provider: str) -> None:
        super().__init__(f"{operation} is currently not supported for {provider}")
        self.operation = operation
        self.provider = provider


class TransientError(VcsError):
    """
    A retryable failure (network hiccup, 5xx, throttling).

    The interface never retries on its own; ``retry_after`` is a hint in
    seconds when the provider sent one.
    """

    def __init__(
        self,
        message: str,
        *,
        retry_after: float | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.retry_after = retry_after


class RateLimitError(TransientError):
    """The provider throttled the request."""


class CanceledError(VcsError):
    """The call was canceled by the caller or its deadline passed."""


def unsupported(operation: str, provider: str) -> UnsupportedOperationError:
    """Build the error a backend raises for a capability its provider lacks."""
    return UnsupportedOperationError(operation, provider)


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(Exception):
    """Configuration could not be loaded or is unusable."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class ConfigFileError(ConfigError):
    """A configuration file is missing or malformed."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.path = path


class ConfigValidationError(ConfigError):
    """Configuration loaded but failed validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("Invalid configuration: " + "; ".join(errors))
        self.errors = list(errors)
