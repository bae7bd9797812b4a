"""Data model of FIX dictionary files and type-cast configuration files."""

from __future__ import annotations

import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from dataclasses import field as _field
from typing import IO, Iterator, Optional, Union

FIELD_ITEM = "field"
GROUP_ITEM = "group"
COMPONENT_ITEM = "component"

Source = Union[str, bytes, "os.PathLike[str]", IO]

_INT_RE = re.compile(r"[+-]?\d+")


@dataclass
class Value:
    """One allowed value of an enumeration-like field."""

    enum: str = ""
    description: str = ""


@dataclass
class Field:
    """A field definition: tag number, name, type and optional enum values."""

    number: str = ""
    name: str = ""
    type: str = ""
    values: list[Value] = _field(default_factory=list)


@dataclass
class ComponentMember:
    """A field, group or component reference inside a container.

    ``kind`` is the element name it was read from: ``field``, ``group`` or
    ``component``.
    """

    kind: str = ""
    name: str = ""
    required: str = ""
    members: list[ComponentMember] = _field(default_factory=list)


@dataclass
class Component:
    """A header, trailer, message or reusable component."""

    name: str = ""
    msg_cat: str = ""
    msg_type: str = ""
    members: list[ComponentMember] = _field(default_factory=list)


@dataclass
class Doc:
    """A complete FIX dictionary."""

    type: str = ""
    major: str = ""
    minor: str = ""
    service_pack: int = 0
    header: Component = _field(default_factory=Component)
    trailer: Component = _field(default_factory=Component)
    messages: list[Component] = _field(default_factory=list)
    components: list[Component] = _field(default_factory=list)
    fields: list[Field] = _field(default_factory=list)


@dataclass
class TypeCast:
    """Maps a dictionary type name onto one of the supported value types."""

    name: str = ""
    cast: str = ""


@dataclass
class Config:
    """Type-cast configuration."""

    types: list[TypeCast] = _field(default_factory=list)


def _local(tag: object) -> str:
    return tag.rpartition("}")[2] if isinstance(tag, str) else ""


def _elements(elem: ET.Element) -> Iterator[ET.Element]:
    return (child for child in elem if isinstance(child.tag, str))


def _children(elem: ET.Element, name: str) -> Iterator[ET.Element]:
    return (child for child in _elements(elem) if _local(child.tag) == name)


def _nested(elem: ET.Element, outer: str, inner: str) -> Iterator[ET.Element]:
    for container in _children(elem, outer):
        yield from _children(container, inner)


def _first(elem: ET.Element, name: str) -> Optional[ET.Element]:
    return next(_children(elem, name), None)


def _int_attr(elem: ET.Element, name: str) -> int:
    raw = elem.get(name)
    if raw is None or not raw.strip():
        return 0
    text = raw.strip()
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid {name} attribute: {raw!r}")
    return int(text)


def _root(source: Source) -> ET.Element:
    if isinstance(source, bytes):
        return ET.fromstring(source)
    if isinstance(source, str) and source.lstrip().startswith("<"):
        return ET.fromstring(source)
    return ET.parse(source).getroot()


def _member(elem: ET.Element) -> ComponentMember:
    return ComponentMember(
        kind=_local(elem.tag),
        name=elem.get("name", ""),
        required=elem.get("required", ""),
        members=[_member(child) for child in _elements(elem)],
    )


def _component(elem: Optional[ET.Element]) -> Component:
    if elem is None:
        return Component()
    return Component(
        name=elem.get("name", ""),
        msg_cat=elem.get("msgcat", ""),
        msg_type=elem.get("msgtype", ""),
        members=[_member(child) for child in _elements(elem)],
    )


def _field_def(elem: ET.Element) -> Field:
    return Field(
        number=elem.get("number", ""),
        name=elem.get("name", ""),
        type=elem.get("type", ""),
        values=[
            Value(enum=v.get("enum", ""), description=v.get("description", ""))
            for v in _children(elem, "value")
        ],
    )


def parse_doc(source: Source) -> Doc:
    """Read a FIX dictionary from XML text, bytes, a path or a file object.

    A string that starts with ``<`` is taken as XML text, any other string
    as a path.
    """
    root = _root(source)
    return Doc(
        type=root.get("type", ""),
        major=root.get("major", ""),
        minor=root.get("minor", ""),
        service_pack=_int_attr(root, "servicepack"),
        header=_component(_first(root, "header")),
        trailer=_component(_first(root, "trailer")),
        messages=[_component(e) for e in _nested(root, "messages", "message")],
        components=[_component(e) for e in _nested(root, "components", "component")],
        fields=[_field_def(e) for e in _nested(root, "fields", "field")],
    )


def parse_config(source: Source) -> Config:
    """Read a type-cast configuration; accepts the same sources as :func:`parse_doc`."""
    root = _root(source)
    return Config(
        types=[
            TypeCast(name=e.get("name", ""), cast=e.get("cast", ""))
            for e in _nested(root, "types", "type")
        ]
    )


__all__ = [
    "COMPONENT_ITEM",
    "FIELD_ITEM",
    "GROUP_ITEM",
    "Component",
    "ComponentMember",
    "Config",
    "Doc",
    "Field",
    "TypeCast",
    "Value",
    "parse_config",
    "parse_doc",
]