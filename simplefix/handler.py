"""Session message handler: queues, dispatch to callbacks and lifecycle events."""

from __future__ import annotations

import enum
import threading
from collections import deque
from typing import Any, Callable, Iterable, Iterator, Optional, Protocol, runtime_checkable

from simplefix.handler_pool import HandlerPool, IncomingHandlerPool, OutgoingHandlerPool

ALL_MSG_TYPES = "ALL"
SOH = b"\x01"

_PARENT_POLL_INTERVAL = 0.05


class ConnectionClosedError(ConnectionError):
    """The connection behind a session was closed."""

    def __init__(self, message: str = "the connection was closed") -> None:
        super().__init__(message)


class HandlerStoppedError(RuntimeError):
    """The handler no longer accepts work."""


class MessageRejectedError(RuntimeError):
    """An outgoing handler refused a message."""


class HandlerEvent(enum.Enum):
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    STOPPED = "stopped"


@runtime_checkable
class SendingMessage(Protocol):
    """What a message must provide to be sent through a handler."""

    def header_builder(self) -> Any: ...

    def msg_type(self) -> str: ...

    def to_bytes(self) -> bytes: ...


def value_by_tag(msg: bytes, tag: str) -> bytes:
    """Return the value of the first field with ``tag`` in a raw FIX message."""
    wanted = str(tag).encode()
    for field in msg.split(SOH):
        key, sep, value = field.partition(b"=")
        if sep and key == wanted:
            return value
    raise ValueError(f"tag {tag} not found")


class DefaultHandler:
    """Standard handler used by acceptor and initiator sessions."""

    def __init__(
        self,
        msg_type_tag: str,
        buffer_size: int = 0,
        parent_stopped: Optional[threading.Event] = None,
    ) -> None:
        self._msg_type_tag = msg_type_tag
        self._capacity = max(buffer_size, 1)
        self._parent_stopped = parent_stopped

        self._send_lock = threading.Lock()
        self._cond = threading.Condition()
        self._out: deque[bytes] = deque()
        self._incoming: deque[bytes] = deque()
        self._errors: deque[Optional[BaseException]] = deque()
        self._errors_closed = False
        self._cancelled = False
        self._finished = False

        self._incoming_handlers = IncomingHandlerPool()
        self._outgoing_handlers = OutgoingHandlerPool()
        self._events: dict[HandlerEvent, list[Callable[[], Any]]] = {e: [] for e in HandlerEvent}

    # state helpers

    def _is_done(self) -> bool:
        return self._cancelled or (
            self._parent_stopped is not None and self._parent_stopped.is_set()
        )

    def _wait(self) -> None:
        timeout = _PARENT_POLL_INTERVAL if self._parent_stopped is not None else None
        self._cond.wait(timeout)

    def _trigger(self, event: HandlerEvent) -> None:
        for callback in list(self._events[event]):
            callback()

    # sending

    def send_raw(self, data: bytes) -> None:
        """Queue raw bytes for sending, bypassing outgoing handlers."""
        with self._cond:
            while len(self._out) >= self._capacity and not self._is_done():
                self._wait()
            if self._is_done():
                raise HandlerStoppedError("the handler is stopped")
            self._out.append(data)
            self._cond.notify_all()

    def _send(self, message: SendingMessage) -> None:
        if not self._outgoing_handlers.for_each(ALL_MSG_TYPES, lambda h: h(message)):
            raise MessageRejectedError(
                "the handler for all message types has refused the message and returned false"
            )
        if not self._outgoing_handlers.for_each(message.msg_type(), lambda h: h(message)):
            raise MessageRejectedError(
                "the handler for the current type has refused the message and returned false"
            )
        self.send_raw(message.to_bytes())

    def send(self, message: SendingMessage) -> None:
        """Pass a message through outgoing handlers and queue it."""
        with self._send_lock:
            self._send(message)

    def send_batch(self, messages: Iterable[SendingMessage]) -> None:
        """Send messages in order, stopping at the first failure."""
        with self._send_lock:
            for message in messages:
                self._send(message)

    # handler registration

    def remove_incoming_handler(self, msg_type: str, handler_id: int) -> None:
        self._incoming_handlers.remove(msg_type, handler_id)

    def remove_outgoing_handler(self, msg_type: str, handler_id: int) -> None:
        self._outgoing_handlers.remove(msg_type, handler_id)

    def handle_incoming(self, msg_type: str, handler: Callable[[bytes], bool]) -> int:
        """Subscribe to incoming messages of a type, or of all types with ``ALL``."""
        return self._incoming_handlers.add(msg_type, handler)

    def handle_outgoing(self, msg_type: str, handler: Callable[[Any], bool]) -> int:
        """Subscribe to outgoing messages of a type, or of all types with ``ALL``."""
        return self._outgoing_handlers.add(msg_type, handler)

    # receiving

    def serve_incoming(self, msg: bytes) -> None:
        """Queue a raw incoming message for processing by :meth:`run`."""
        with self._cond:
            while len(self._incoming) >= self._capacity and not self._is_done():
                self._wait()
            if len(self._incoming) >= self._capacity:
                raise HandlerStoppedError("the handler is stopped")
            self._incoming.append(msg)
            self._cond.notify_all()

    def _serve(self, msg: bytes) -> None:
        try:
            msg_type = value_by_tag(msg, self._msg_type_tag).decode()
        except ValueError as exc:
            raise ValueError(f"msg type: {exc}") from exc
        self._incoming_handlers.for_each(ALL_MSG_TYPES, lambda h: h(msg))
        self._incoming_handlers.for_each(msg_type, lambda h: h(msg))

    def _process_remaining_incoming(self) -> None:
        with self._cond:
            remaining = list(self._incoming)
            self._incoming.clear()
            self._cond.notify_all()
        for msg in remaining:
            try:
                self._serve(msg)
            except ValueError:
                pass

    def run(self) -> None:
        """Dispatch incoming messages until the handler is stopped.

        Raises the error passed to :meth:`stop_with_error`, or a ``ValueError``
        for an incoming message without a message type.
        """
        self._trigger(HandlerEvent.CONNECT)
        try:
            while True:
                error: Optional[BaseException] = None
                msg: Optional[bytes] = None
                with self._cond:
                    while not (
                        self._incoming
                        or self._is_done()
                        or self._errors
                        or self._errors_closed
                    ):
                        self._wait()
                    if self._is_done():
                        kind = "stop"
                    elif self._errors or self._errors_closed:
                        kind = "error"
                        if self._errors:
                            error = self._errors.popleft()
                    else:
                        kind = "message"
                        msg = self._incoming.popleft()
                        self._cond.notify_all()

                if kind == "message":
                    self._serve(msg)
                elif kind == "stop":
                    self._process_remaining_incoming()
                    self._trigger(HandlerEvent.STOPPED)
                    return
                else:
                    self._process_remaining_incoming()
                    if isinstance(error, ConnectionClosedError):
                        self._trigger(HandlerEvent.DISCONNECT)
                    if error is not None:
                        raise error
                    return
        finally:
            with self._cond:
                self._finished = True
                self._errors.clear()

    def outgoing(self) -> Iterator[bytes]:
        """Yield queued outgoing messages until the handler stops and the queue empties."""
        while True:
            with self._cond:
                while not self._out and not self._is_done():
                    self._wait()
                if not self._out:
                    return
                data = self._out.popleft()
                self._cond.notify_all()
            yield data

    # lifecycle

    def stop(self) -> None:
        """Terminate the session gracefully."""
        with self._cond:
            self._cancelled = True
            self._cond.notify_all()

    def stop_with_error(self, error: Optional[BaseException]) -> None:
        """Terminate the session, making :meth:`run` raise ``error``."""
        with self._cond:
            if self._errors_closed:
                raise HandlerStoppedError("the error channel is closed")
            if not self._finished:
                self._errors.append(error)
                self._cond.notify_all()

    def close_error_chan(self) -> None:
        """Close the error channel; :meth:`run` then returns without error."""
        with self._cond:
            if self._errors_closed:
                raise HandlerStoppedError("the error channel is already closed")
            self._errors_closed = True
            self._cond.notify_all()

    def on_connect(self, handler: Callable[[], Any]) -> None:
        self._events[HandlerEvent.CONNECT].append(handler)

    def on_disconnect(self, handler: Callable[[], Any]) -> None:
        self._events[HandlerEvent.DISCONNECT].append(handler)

    def on_stopped(self, handler: Callable[[], Any]) -> None:
        self._events[HandlerEvent.STOPPED].append(handler)


class AcceptorHandlerFactory:
    """Creates handlers for accepted connections."""

    def __init__(self, msg_type_tag: str, buffer_size: int) -> None:
        self.msg_type_tag = msg_type_tag
        self.buffer_size = buffer_size

    def make_handler(self, parent_stopped: Optional[threading.Event] = None) -> DefaultHandler:
        return DefaultHandler(self.msg_type_tag, self.buffer_size, parent_stopped)


__all__ = [
    "ALL_MSG_TYPES",
    "AcceptorHandlerFactory",
    "ConnectionClosedError",
    "DefaultHandler",
    "HandlerEvent",
    "HandlerPool",
    "HandlerStoppedError",
    "MessageRejectedError",
    "SendingMessage",
    "value_by_tag",
]