"""Mapping of dictionary types onto the supported value types."""

from __future__ import annotations

from simplefix.fixgen.schema import Config

FIX_FLOAT = "Float"
FIX_INT = "Int"
FIX_RAW = "Raw"
FIX_BOOL = "Bool"
FIX_STRING = "String"
FIX_TIME = "Time"

ALLOWED_TYPES: dict[str, str] = {
    FIX_FLOAT: "float64",
    FIX_INT: "int",
    FIX_RAW: "[]byte",
    FIX_BOOL: "bool",
    FIX_STRING: "string",
    FIX_TIME: "time.Time",
}


class TypeCastError(ValueError):
    """A type-cast configuration entry is empty or names an unknown type."""


def build_type_cast(config: Config) -> dict[str, str]:
    """Return the dictionary-type to value-type mapping of a configuration."""
    type_cast: dict[str, str] = {}
    for entry in config.types:
        if not entry.cast:
            raise TypeCastError(f"empty type attribute for type {entry.name}")
        if entry.cast not in ALLOWED_TYPES:
            raise TypeCastError(
                f"unexpected type attribute {entry.cast} for type {entry.name}, "
                f"should be of the [{', '.join(ALLOWED_TYPES)}] type"
            )
        type_cast[entry.name] = entry.cast
    return type_cast


def fix_type_to_go(fix_type: str) -> str:
    """Return the generated-code type for a value type; unknown ones become strings."""
    return ALLOWED_TYPES.get(fix_type, "string")


__all__ = [
    "ALLOWED_TYPES",
    "FIX_BOOL",
    "FIX_FLOAT",
    "FIX_INT",
    "FIX_RAW",
    "FIX_STRING",
    "FIX_TIME",
    "TypeCastError",
    "build_type_cast",
    "fix_type_to_go",
]