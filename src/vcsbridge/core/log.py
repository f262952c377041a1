"""
Logger collaborator wrapper.

Backends accept any logger exposing ``debug``/``info``/``warning``
(a ``logging.Logger`` or a caller-supplied object). Wrapping it in
SafeLogger guarantees a failing logger never aborts an interface call.
"""

import logging
from typing import Any


class SafeLogger:
    """Forwards to a logger and drops any exception the logger raises."""

    def __init__(self, logger: Any | None = None, name: str = "vcsbridge") -> None:
        if isinstance(logger, SafeLogger):
            logger = logger.wrapped
        self.wrapped = logger if logger is not None else logging.getLogger(name)

    def debug(self, msg: str, *args: Any) -> None:
        self._emit("debug", msg, *args)

    def info(self, msg: str, *args: Any) -> None:
        self._emit("info", msg, *args)

    def warning(self, msg: str, *args: Any) -> None:
        self._emit("warning", msg, *args)

    def _emit(self, method: str, msg: str, *args: Any) -> None:
        try:
            getattr(self.wrapped, method)(msg, *args)
        except Exception:  # logging must never abort a call
            return
