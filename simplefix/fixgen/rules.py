"""Fixed rules about which fields are required or handled by the base message."""

from __future__ import annotations

from typing import Iterable

from simplefix.fixgen.schema import ComponentMember

# Fields already carried by the base message structure, so omitted from generated code.
EXCLUDED_FIELDS = frozenset({"BeginString", "BodyLength", "MsgType", "CheckSum"})

# Fields a header must contain for a message to be properly structured.
REQUIRED_HEADER_FIELDS = frozenset(
    {
        "BeginString",
        "BodyLength",
        "MsgType",
        "SenderCompID",
        "TargetCompID",
        "MsgSeqNum",
        "SendingTime",
    }
)

# Fields a trailer must contain.
REQUIRED_TRAILER_FIELDS = frozenset({"CheckSum"})

# Fields the session pipeline needs on each of its standard messages.
DEFAULT_FLOW_FIELDS: dict[str, tuple[str, ...]] = {
    "Logon": ("HeartBtInt", "EncryptMethod", "Password", "Username", "ResetSeqNumFlag"),
    "Logout": (),
    "Heartbeat": ("TestReqID",),
    "TestRequest": ("TestReqID",),
    "ResendRequest": ("BeginSeqNo", "EndSeqNo"),
    "SequenceReset": ("NewSeqNo", "GapFillFlag"),
    "Reject": ("SessionRejectReason", "RefSeqNum", "RefTagID"),
    "ExecutionReport": (),
    "NewOrderSingle": (),
    "MarketDataRequest": (),
    "OrderCancelRequest": (),
}


def missing_required_fields(
    members: Iterable[ComponentMember], required_fields: Iterable[str]
) -> list[str]:
    """Return, sorted, the required field names that no member carries."""
    present = {member.name for member in members}
    return sorted(set(required_fields) - present)


def is_field_excluded(name: str) -> bool:
    """Tell whether a field is left out of generated containers."""
    return name in EXCLUDED_FIELDS


__all__ = [
    "DEFAULT_FLOW_FIELDS",
    "EXCLUDED_FIELDS",
    "REQUIRED_HEADER_FIELDS",
    "REQUIRED_TRAILER_FIELDS",
    "is_field_excluded",
    "missing_required_fields",
]