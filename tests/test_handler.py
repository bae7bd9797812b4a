import threading
from dataclasses import dataclass

import pytest

from simplefix.handler import (
    ALL_MSG_TYPES,
    AcceptorHandlerFactory,
    ConnectionClosedError,
    DefaultHandler,
    HandlerEvent,
    HandlerStoppedError,
    MessageRejectedError,
    SendingMessage,
    value_by_tag,
)
from simplefix.handler_pool import HandlerNotFoundError

LOGON = b"8=FIX.4.4\x019=5\x0135=A\x0149=S\x0110=000\x01"
HEARTBEAT = b"8=FIX.4.4\x019=5\x0135=0\x0149=S\x0110=000\x01"


@dataclass
class FakeMessage:
    kind: str
    payload: bytes

    def header_builder(self):
        return None

    def msg_type(self):
        return self.kind

    def to_bytes(self):
        return self.payload


def test_fake_message_is_accepted_as_sending_message():
    message = FakeMessage("A", b"x")
    assert isinstance(message, SendingMessage)
    handler = DefaultHandler("35", 10)
    handler.send(message)
    handler.stop()
    assert list(handler.outgoing()) == [b"x"]


def test_value_by_tag_finds_field():
    assert value_by_tag(LOGON, "35") == b"A"
    assert value_by_tag(LOGON, "8") == b"FIX.4.4"


def test_value_by_tag_missing_raises():
    with pytest.raises(ValueError):
        value_by_tag(LOGON, "999")


def test_send_queues_bytes():
    handler = DefaultHandler("35", 10)
    handler.send(FakeMessage("A", LOGON))
    handler.stop()
    assert list(handler.outgoing()) == [LOGON]


def test_send_calls_outgoing_handlers_in_priority_order():
    handler = DefaultHandler("35", 10)
    order = []
    handler.handle_outgoing("A", lambda m: order.append(("A", m.kind)) or True)
    handler.handle_outgoing(ALL_MSG_TYPES, lambda m: order.append(("ALL", m.kind)) or True)
    handler.send(FakeMessage("A", LOGON))
    assert order == [("ALL", "A"), ("A", "A")]


def test_send_rejected_by_all_handler():
    handler = DefaultHandler("35", 10)
    handler.handle_outgoing(ALL_MSG_TYPES, lambda m: False)
    with pytest.raises(MessageRejectedError, match="all message types"):
        handler.send(FakeMessage("A", LOGON))
    handler.stop()
    assert list(handler.outgoing()) == []


def test_send_rejected_by_type_handler():
    handler = DefaultHandler("35", 10)
    handler.handle_outgoing("A", lambda m: False)
    with pytest.raises(MessageRejectedError, match="current type"):
        handler.send(FakeMessage("A", LOGON))
    handler.send(FakeMessage("0", HEARTBEAT))
    handler.stop()
    assert list(handler.outgoing()) == [HEARTBEAT]


def test_send_batch_stops_at_first_rejection():
    handler = DefaultHandler("35", 10)
    handler.handle_outgoing("A", lambda m: False)
    messages = [FakeMessage("0", HEARTBEAT), FakeMessage("A", LOGON), FakeMessage("0", HEARTBEAT)]
    with pytest.raises(MessageRejectedError):
        handler.send_batch(messages)
    handler.stop()
    assert list(handler.outgoing()) == [HEARTBEAT]


def test_send_raw_after_stop_raises():
    handler = DefaultHandler("35", 10)
    handler.stop()
    with pytest.raises(HandlerStoppedError):
        handler.send_raw(LOGON)


def test_send_raw_after_parent_stopped_raises():
    parent = threading.Event()
    handler = DefaultHandler("35", 10, parent)
    handler.send_raw(LOGON)
    parent.set()
    with pytest.raises(HandlerStoppedError):
        handler.send_raw(HEARTBEAT)
    assert list(handler.outgoing()) == [LOGON]


def test_run_dispatches_remaining_messages_on_stop():
    handler = DefaultHandler("35", 10)
    received = []
    handler.handle_incoming(ALL_MSG_TYPES, lambda m: received.append(("ALL", m)) or True)
    handler.handle_incoming("A", lambda m: received.append(("A", m)) or True)
    events = []
    handler.on_connect(lambda: events.append(HandlerEvent.CONNECT))
    handler.on_stopped(lambda: events.append(HandlerEvent.STOPPED))

    handler.serve_incoming(LOGON)
    handler.serve_incoming(HEARTBEAT)
    handler.stop()
    assert handler.run() is None

    assert received == [("ALL", LOGON), ("A", LOGON), ("ALL", HEARTBEAT)]
    assert events == [HandlerEvent.CONNECT, HandlerEvent.STOPPED]


def test_run_raises_for_message_without_type():
    handler = DefaultHandler("35", 10)
    handler.serve_incoming(b"8=FIX.4.4\x0149=S\x01")
    with pytest.raises(ValueError, match="msg type"):
        handler.run()


def test_run_raises_connection_closed_and_triggers_disconnect():
    handler = DefaultHandler("35", 10)
    events = []
    handler.on_disconnect(lambda: events.append(HandlerEvent.DISCONNECT))
    handler.on_stopped(lambda: events.append(HandlerEvent.STOPPED))
    handler.stop_with_error(ConnectionClosedError())
    with pytest.raises(ConnectionClosedError):
        handler.run()
    assert events == [HandlerEvent.DISCONNECT]


def test_run_raises_other_error_without_disconnect():
    handler = DefaultHandler("35", 10)
    events = []
    handler.on_disconnect(lambda: events.append(HandlerEvent.DISCONNECT))
    handler.stop_with_error(RuntimeError("boom"))
    with pytest.raises(RuntimeError, match="boom"):
        handler.run()
    assert events == []


def test_stop_with_none_returns_without_stopped_event():
    handler = DefaultHandler("35", 10)
    events = []
    handler.on_stopped(lambda: events.append(HandlerEvent.STOPPED))
    handler.stop_with_error(None)
    assert handler.run() is None
    assert events == []


def test_closed_error_chan_ends_run_and_refuses_errors():
    handler = DefaultHandler("35", 10)
    handler.close_error_chan()
    assert handler.run() is None
    with pytest.raises(HandlerStoppedError):
        handler.stop_with_error(RuntimeError("late"))


def test_run_in_thread_serves_until_stopped():
    handler = DefaultHandler("35", 10)
    got = threading.Event()
    received = []

    def on_logon(msg):
        received.append(msg)
        got.set()
        return True

    handler.handle_incoming("A", on_logon)
    outcome = []
    worker = threading.Thread(target=lambda: outcome.append(handler.run()))
    worker.start()
    handler.serve_incoming(LOGON)
    assert got.wait(5)
    handler.stop()
    worker.join(5)
    assert not worker.is_alive()
    assert received == [LOGON]
    assert outcome == [None]


def test_remove_incoming_handler_stops_dispatch():
    handler = DefaultHandler("35", 10)
    received = []
    handler_id = handler.handle_incoming("A", lambda m: received.append(m) or True)
    handler.remove_incoming_handler("A", handler_id)
    handler.serve_incoming(LOGON)
    handler.stop()
    handler.run()
    assert received == []


def test_remove_unknown_handlers_raise():
    handler = DefaultHandler("35", 10)
    with pytest.raises(HandlerNotFoundError):
        handler.remove_incoming_handler("A", 0)
    with pytest.raises(HandlerNotFoundError):
        handler.remove_outgoing_handler("A", 0)


def test_remove_outgoing_handler_allows_sending():
    handler = DefaultHandler("35", 10)
    handler_id = handler.handle_outgoing("A", lambda m: False)
    handler.remove_outgoing_handler("A", handler_id)
    handler.send(FakeMessage("A", LOGON))
    handler.stop()
    assert list(handler.outgoing()) == [LOGON]


def test_factory_makes_handler_with_tag():
    factory = AcceptorHandlerFactory("35", 10)
    handler = factory.make_handler(threading.Event())
    received = []
    handler.handle_incoming("0", lambda m: received.append(m) or True)
    handler.serve_incoming(HEARTBEAT)
    handler.stop()
    handler.run()
    assert received == [HEARTBEAT]


def test_factory_handler_follows_parent_stop():
    parent = threading.Event()
    handler = AcceptorHandlerFactory("35", 10).make_handler(parent)
    events = []
    handler.on_stopped(lambda: events.append(HandlerEvent.STOPPED))
    parent.set()
    assert handler.run() is None
    assert events == [HandlerEvent.STOPPED]