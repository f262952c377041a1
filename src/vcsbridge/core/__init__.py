"""
Core layer - domain types, ports, call context and the error taxonomy.

Nothing in here depends on a specific provider.
"""

from .context import CallContext
from .exceptions import (
    AuthenticationError,
    AuthError,
    CanceledError,
    ConnectionError,
    NotFoundError,
    RateLimitError,
    TransientError,
    UnsupportedOperationError,
    ValidationError,
    VcsError,
)


__all__ = [
    "AuthError",
    "AuthenticationError",
    "CallContext",
    "CanceledError",
    "ConnectionError",
    "NotFoundError",
    "RateLimitError",
    "TransientError",
    "UnsupportedOperationError",
    "ValidationError",
    "VcsError",
]
