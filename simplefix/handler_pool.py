"""Registries of message handler callbacks keyed by FIX message type."""

from __future__ import annotations

import threading
from typing import Any, Callable

Handler = Callable[[Any], bool]


class HandlerNotFoundError(LookupError):
    """Raised when no handler is registered for a message type."""

    def __init__(self, msg_type: str) -> None:
        super().__init__(f"handler not found: {msg_type}")
        self.msg_type = msg_type


class HandlerPool:
    """Thread-safe pool of handlers grouped by message type."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._handlers: dict[str, list[Handler]] = {}

    def add(self, msg_type: str, handler: Handler) -> int:
        """Register a handler and return its identifier."""
        with self._lock:
            self._handlers.setdefault(msg_type, []).append(handler)
            return len(self._handlers) - 1

    def remove(self, msg_type: str, handler_id: int) -> None:
        """Drop the handlers registered for a message type.

        All handlers of the type are removed; the identifier is accepted for
        symmetry with :meth:`add`.
        """
        with self._lock:
            if msg_type not in self._handlers:
                raise HandlerNotFoundError(msg_type)
            del self._handlers[msg_type]

    def handlers(self, msg_type: str) -> list[Handler]:
        """Return a snapshot of the handlers for a message type."""
        with self._lock:
            return list(self._handlers.get(msg_type, ()))


class IncomingHandlerPool(HandlerPool):
    """Handlers for incoming raw messages."""

    def for_each(self, msg_type: str, func: Callable[[Handler], bool]) -> None:
        """Call ``func`` on each handler until one call returns false."""
        for handler in self.handlers(msg_type):
            if not func(handler):
                break


class OutgoingHandlerPool(HandlerPool):
    """Handlers for outgoing message objects."""

    def for_each(self, msg_type: str, func: Callable[[Handler], bool]) -> bool:
        """Call ``func`` on each handler; return False if any call refuses."""
        return all(func(handler) for handler in self.handlers(msg_type))