# simplefix

Building blocks for FIX (Financial Information eXchange) sessions: a
message handler that queues and dispatches raw messages to callbacks, and
tools for reading FIX XML dictionaries and filling message-definition
templates. The package has no third-party dependencies. The `test` extra
installs pytest for the test suite.

## Message handling

`simplefix.handler.DefaultHandler(msg_type_tag, buffer_size=0, parent_stopped=None)`
routes messages through handler pools.

- `handle_incoming(msg_type, handler)` subscribes a callable to raw incoming
  messages of one type. Handlers registered under `"ALL"` (`ALL_MSG_TYPES`)
  run first for every message. A handler that returns a false value stops
  the remaining handlers of its pool for that message.
- `handle_outgoing(msg_type, handler)` subscribes a callable that sees each
  message before it is sent. If it returns a false value, `send` raises
  `MessageRejectedError`.
- `send(message)` and `send_batch(messages)` pass messages through the
  outgoing handlers. A message must provide `msg_type()`, `to_bytes()` and
  `header_builder()` (the `SendingMessage` protocol). The bytes are then
  queued.
- `send_raw(data)` queues bytes without involving any handlers. Once the
  handler is stopped it raises `HandlerStoppedError`.
- `outgoing()` yields queued outgoing bytes until the handler stops and the
  queue is empty.
- `serve_incoming(msg)` queues a raw message, and `run()` dispatches the
  queue. `run()` ends in one of these ways:
  - After `stop()`, or when `parent_stopped` is set, it processes what is
    left in the queue and fires the stopped event.
  - After `stop_with_error(error)`, it processes what is left and raises
    `error`. When `error` is a `ConnectionClosedError`, it fires the
    disconnect event first.
  - After `close_error_chan()`, it returns quietly.
  - If a message has no message-type tag, it raises `ValueError`.
- `on_connect`, `on_disconnect` and `on_stopped` register callbacks for the
  `HandlerEvent` values. The connect event fires when `run()` starts.
- `remove_incoming_handler(msg_type, handler_id)` and
  `remove_outgoing_handler(msg_type, handler_id)` drop every handler of the
  type. If none is registered they raise `HandlerNotFoundError`.

`AcceptorHandlerFactory(msg_type_tag, buffer_size).make_handler(parent_stopped)`
creates a fresh handler for each connection.

`value_by_tag(msg, tag)` returns the value of the first field with `tag` in
a SOH-separated raw message. If the tag is absent it raises `ValueError`.

The pools themselves live in `simplefix.handler_pool`:

- `HandlerPool` provides `add`, `remove` and `handlers`.
- `IncomingHandlerPool.for_each` stops at the first false result.
- `OutgoingHandlerPool.for_each` returns whether every handler accepted.

## FIX dictionaries

`simplefix.fixgen.schema` reads dictionaries into dataclasses (`Doc`,
`Component`, `ComponentMember`, `Field`, `Value`):

```python
from simplefix.fixgen.schema import parse_doc, parse_config
from simplefix.fixgen.casting import build_type_cast, fix_type_to_go

doc = parse_doc("fix44.xml")          # a path, XML text, bytes or a file object
config = parse_config("types.xml")    # <types><type name=".." cast=".."/></types>
type_cast = build_type_cast(config)   # e.g. {"PRICE": "Float", ...}
fix_type_to_go("Float")               # "float64"
```

`build_type_cast` raises `TypeCastError` in two cases:

- a `cast` attribute is empty;
- a `cast` attribute is not one of `Float`, `Int`, `Raw`, `Bool`, `String`
  or `Time`.

`simplefix.fixgen.rules` holds the fixed field rules:

- `EXCLUDED_FIELDS`
- `REQUIRED_HEADER_FIELDS`
- `REQUIRED_TRAILER_FIELDS`
- `DEFAULT_FLOW_FIELDS`
- `is_field_excluded(name)`
- `missing_required_fields(members, required_fields)`, which returns the
  missing names sorted.

`simplefix.fixgen.templates` holds the message-definition templates. Its
`render(template, values)` fills `{{.Name}}` placeholders. It also handles
`{{if ...}}`/`{{else}}`/`{{end}}` blocks whose condition is `.Name`,
`eq .Name "x"` or `ne .Name "x"`. A missing value raises `KeyError`, and a
malformed template raises `ValueError`.

## What is not included

- The package does not open network connections. Nothing here listens for
  or dials FIX counterparties. The handler only queues bytes and dispatches
  them, and moving them over a socket is left to the caller.
- There is no session layer: no logon, heartbeat or sequence-number
  management.
- There is no step that walks a whole dictionary and writes out source
  files. The schema, rules, casting and templates are the pieces such a
  step would use.