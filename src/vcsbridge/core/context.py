"""
Call Context - cancellation and deadlines for interface calls.

Every VcsClientPort method takes a CallContext as its first argument.
A context can be canceled explicitly from any thread, or expire when its
deadline passes. Backends poll ``raise_if_cancelled()`` between steps and
register ``on_cancel`` callbacks to abort in-flight I/O.

Usage:
    ctx = CallContext.with_timeout(30)
    branches = client.list_branches(ctx, "", "my-repo")

    # From another thread
    ctx.cancel()
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from .exceptions import CanceledError


logger = logging.getLogger("CallContext")


class CallContext:
    """
    Cancellation token with an optional deadline.

    Contexts form a tree: a child created with ``child()`` is canceled when
    its parent is, and its deadline never extends past the parent's.
    """

    def __init__(self, deadline: float | None = None) -> None:
        """
        Args:
            deadline: Absolute ``time.monotonic()`` value after which the
                context counts as canceled, or None for no deadline.
        """
        self._deadline = deadline
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._reason = "operation canceled"

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def background(cls) -> CallContext:
        """A context that is never canceled unless ``cancel()`` is called."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> CallContext:
        """A context whose deadline is ``seconds`` from now."""
        return cls(deadline=time.monotonic() + seconds)

    def child(self, timeout: float | None = None) -> CallContext:
        """Derive a context canceled together with this one."""
        deadline = self._deadline
        if timeout is not None:
            own = time.monotonic() + timeout
            deadline = own if deadline is None else min(deadline, own)
        child = CallContext(deadline=deadline)
        unregister = self.on_cancel(child.cancel)
        child.on_cancel(unregister)
        return child

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def expired(self) -> bool:
        """True when the deadline has passed."""
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        """True when canceled explicitly or by deadline."""
        return self._event.is_set() or self.expired

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or None."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self, reason: str = "operation canceled") -> None:
        """Cancel the context and run registered callbacks once."""
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Cancel callback {callback!r} failed: {e}")

    def raise_if_cancelled(self) -> None:
        """
        Raise CanceledError if the context is done.

        Raises:
            CanceledError: If canceled or past the deadline.
        """
        if self._event.is_set():
            raise CanceledError(self._reason)
        if self.expired:
            raise CanceledError("deadline exceeded")

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until canceled, the deadline passes, or ``timeout`` elapses.

        Returns:
            True if the context is done.
        """
        remaining = self.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._event.wait(timeout)
        return self.cancelled

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback to run when ``cancel()`` is called.

        The callback runs immediately if the context is already canceled.
        Deadline expiry alone does not trigger callbacks; callers bound
        blocking work by ``remaining()`` instead.

        Returns:
            A function that unregisters the callback.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                registered = True
            else:
                registered = False
        if not registered:
            callback()

        def unregister() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unregister

    def __repr__(self) -> str:
        return f"CallContext(cancelled={self.cancelled}, remaining={self.remaining()})"
