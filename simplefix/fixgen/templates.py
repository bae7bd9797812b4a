"""Code templates and a small renderer for ``{{.Name}}`` placeholders."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Union

_ACTION_RE = re.compile(r"\{\{(.*?)\}\}", re.S)
_FIELD_RE = re.compile(r"\.(\w+)")
_COMPARE_RE = re.compile(r'(eq|ne)\s+\.(\w+)\s+"((?:[^"\\]|\\.)*)"')


@dataclass
class _If:
    condition: str
    then: list
    otherwise: list


@dataclass
class _Placeholder:
    name: str


_Node = Union[str, _If, _Placeholder]


def _tokenize(template: str) -> list[tuple[bool, str]]:
    tokens: list[tuple[bool, str]] = []
    pos = 0
    for match in _ACTION_RE.finditer(template):
        if match.start() > pos:
            tokens.append((False, template[pos:match.start()]))
        tokens.append((True, match.group(1).strip()))
        pos = match.end()
    if pos < len(template):
        tokens.append((False, template[pos:]))
    return tokens


def _parse(tokens, pos, nested):
    nodes: list[_Node] = []
    while pos < len(tokens):
        is_action, text = tokens[pos]
        pos += 1
        if not is_action:
            nodes.append(text)
        elif text.startswith("if "):
            then, pos, closer = _parse(tokens, pos, True)
            otherwise: list[_Node] = []
            if closer == "else":
                otherwise, pos, closer = _parse(tokens, pos, True)
                if closer != "end":
                    raise ValueError("unexpected {{else}} after {{else}}")
            nodes.append(_If(text[3:].strip(), then, otherwise))
        elif text in ("else", "end"):
            if not nested:
                raise ValueError(f"unexpected {{{{{text}}}}}")
            return nodes, pos, text
        else:
            match = _FIELD_RE.fullmatch(text)
            if not match:
                raise ValueError(f"unsupported template action: {text!r}")
            nodes.append(_Placeholder(match.group(1)))
    if nested:
        raise ValueError("unclosed {{if}}")
    return nodes, pos, None


def _lookup(values: Mapping[str, object], name: str) -> object:
    if name not in values:
        raise KeyError(name)
    return values[name]


def _format(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _test(condition: str, values: Mapping[str, object]) -> bool:
    match = _FIELD_RE.fullmatch(condition)
    if match:
        return bool(_lookup(values, match.group(1)))
    match = _COMPARE_RE.fullmatch(condition)
    if match:
        op, name, literal = match.groups()
        literal = literal.replace('\\"', '"').replace("\\\\", "\\")
        equal = _format(_lookup(values, name)) == literal
        return equal if op == "eq" else not equal
    raise ValueError(f"unsupported condition: {condition!r}")


def _emit(nodes: list[_Node], values: Mapping[str, object], out: list[str]) -> None:
    for node in nodes:
        if isinstance(node, str):
            out.append(node)
        elif isinstance(node, _Placeholder):
            out.append(_format(_lookup(values, node.name)))
        else:
            branch = node.then if _test(node.condition, values) else node.otherwise
            _emit(branch, values, out)


def render(template: str, values: Mapping[str, object]) -> str:
    """Fill a template with values.

    Supports ``{{.Name}}`` placeholders and ``{{if ...}}``/``{{else}}``/``{{end}}``
    blocks whose condition is ``.Name``, ``eq .Name "x"`` or ``ne .Name "x"``.
    Raises ``KeyError`` for a missing value and ``ValueError`` for a malformed
    template.
    """
    nodes, _, _ = _parse(_tokenize(template), 0, False)
    out: list[str] = []
    _emit(nodes, values, out)
    return "".join(out)


ARG_TEMPLATE = "{{.Name}} {{.Type}}"

CONSTANTS_TEMPLATE = """const(
{{.Constants}}
)"""

CONSTANT_TEMPLATE = '\t{{.Name}} = "{{.Value}}"'

COMPONENT_TEMPLATE = """
type {{.Name}} struct {
\t*fix.Component
}

func make{{.Name}}() *{{.Name}} {
\treturn &{{.Name}}{fix.NewComponent(
\t\t{{.Fields}}
\t)}
}

func New{{.Name}}({{.Args}}) *{{.Name}} {
\treturn make{{.Name}}(){{.Setters}}
}

{{.GetterSetters}}
"""

MESSAGE_TEMPLATE = """
const MsgType{{.Name}} = "{{.MsgType}}"

type {{.Name}} struct {
\t*fix.Message
}

func make{{.Name}}() *{{.Name}} {
\tmsg := &{{.Name}}{
\t\tMessage: fix.NewMessage(FieldBeginString, FieldBodyLength, FieldCheckSum, FieldMsgType, beginString, MsgType{{.Name}}).
\t\t\tSetBody(
\t\t\t\t{{.Fields}}
\t\t\t),
\t}

\tmsg.SetHeader(makeHeader().AsComponent())
\tmsg.SetTrailer(makeTrailer().AsComponent())

\treturn msg
}

func Create{{.Name}}({{.Args}}) *{{.Name}} {
\tmsg := make{{.Name}}(){{.Setters}}

\treturn msg
}


func New{{.Name}}() *{{.Name}} {
\tm := make{{.Name}}()
\treturn &{{.Name}}{
\t\tfix.NewMessage(FieldBeginString, FieldBodyLength, FieldCheckSum, FieldMsgType, beginString, MsgType{{.Name}}).
\t\t\tSetBody(m.Body()...).
\t\t\tSetHeader(m.Header().AsComponent()).
\t\t\tSetTrailer(m.Trailer().AsComponent()),
\t}
}

func ({{.LocalName}} *{{.Name}}) Header() *Header {
\theader := {{.LocalName}}.Message.Header()

\treturn &Header{header}
}

func ({{.LocalName}} *{{.Name}}) HeaderBuilder() messages.HeaderBuilder {
\treturn {{.LocalName}}.Header()
}

func ({{.LocalName}} *{{.Name}}) Trailer() *Trailer {
\ttrailer := {{.LocalName}}.Message.Trailer()

\treturn &Trailer{trailer}
}

{{.GetterSetters}}
"""

HEADER_BUILDER_TEMPLATE = """
func (Header) New() messages.HeaderBuilder {
\treturn makeHeader()
}
"""

TRAILER_BUILDER_TEMPLATE = """
func (Trailer) New() messages.TrailerBuilder {
\treturn makeTrailer()
}
"""

DEFAULT_FLOW_MESSAGE_TEMPLATE = """
// New is a plane message constructor
func ({{.Name}}) New() messages.{{.Name}}Builder {
\treturn make{{.Name}}()
}

// Build provides an opportunity to customize message during building outgoing message
func ({{.Name}}) Build() messages.{{.Name}}Builder {
\treturn make{{.Name}}()
}

{{.FieldSetters}}
"""

FIELD_CALL_CONSTRUCTOR_TEMPLATE = "fix.NewKeyValue({{.FieldName}}, {{.FixType}}),"

ENUM_VARIANT_TEMPLATE = '{{.Name}} string = "{{.Value}}"'

ENUM_TEMPLATE = """
// Enum type {{.Name}}
const (
 {{.Variants}}
)
"""

FIELD_GETTER_SETTER_TEMPLATE = """
func ({{.ComponentName}} *{{.ComponentType}}) {{.Name}}() {{.Type}} {
\tkv := {{.ComponentName}}.Get({{.Index}})
\tv := kv.(*fix.KeyValue).Load().Value()
\treturn v.({{.Type}})
}

func ({{.ComponentName}} *{{.ComponentType}}) Set{{.Name}}({{.LocalName}} {{.Type}}) *{{.ComponentType}} {
\tkv := {{.ComponentName}}.Get({{.Index}}).(*fix.KeyValue)
\t_ = kv.Load().Set({{.LocalName}})
\treturn {{.ComponentName}}
}
"""

DEFAULT_FIELD_SETTER_TEMPLATE = """
func ({{.ComponentName}} *{{.ComponentType}}) SetField{{.Name}}({{.LocalName}} {{.Type}}) messages.{{.ComponentType}}Builder {
\treturn {{.ComponentName}}.Set{{.Name}}({{.LocalName}})
}
"""

GROUP_GETTER_SETTER_TEMPLATE = """
func ({{.ComponentName}} *{{.ComponentType}}) {{.Name}}() *{{.Type}} {
\tgroup := {{.ComponentName}}.Get({{.Index}}).(*fix.Group)

\treturn &{{.Type}}{group}
}

func ({{.ComponentName}} *{{.ComponentType}}) Set{{.Name}}({{.LocalName}} *{{.Type}}) *{{.ComponentType}} {
\t{{.ComponentName}}.Set({{.Index}}, {{.LocalName}}.Group)

\treturn {{.ComponentName}}
}
"""

COMPONENT_GETTER_SETTER_TEMPLATE = """
func ({{.ComponentName}} *{{.ComponentType}}) {{.Name}}() *{{.Type}} {
\tcomponent := {{.ComponentName}}.Get({{.Index}}).(*fix.Component)

\treturn &{{.Type}}{component}
}

func ({{.ComponentName}} *{{.ComponentType}}) Set{{.Name}}({{.LocalName}} *{{.Type}}) *{{.ComponentType}} {
\t{{.ComponentName}}.Set({{.Index}}, {{.LocalName}}.Component)

\treturn {{.ComponentName}}
}
"""

SETTER_CALL_TEMPLATE = "Set{{.Name}}({{.Value}})"

COMPONENT_CALL_CONSTRUCTOR_TEMPLATE = "make{{.Name}}().Component,"

GROUP_CALL_CONSTRUCTOR_TEMPLATE = "New{{.Name}}().Group,"

GROUP_CONSTRUCTOR_TEMPLATE = """
type {{.Name}} struct {
\t*fix.Group
}

func New{{.Name}}() *{{.Name}} {
\treturn &{{.Name}}{
\t\tfix.NewGroup({{.NoTag}},
\t\t\t{{.Fields}}
\t\t),
\t}
}

func (group *{{.Name}}) AddEntry(entry *{{.EntryName}}) *{{.Name}} {
\tgroup.Group.AddEntry(entry.Items())

\treturn group
}

func (group *{{.Name}}) Entries() []*{{.EntryName}} {
\titems := make([]*{{.EntryName}}, len(group.Group.Entries()))

\tfor i, item := range group.Group.Entries() {
\t\titems[i] = &{{.EntryName}}{fix.NewComponent(item...)}
\t}

\treturn items
}
"""

FILE_TEMPLATE = """
// Code generated by fixgen. DO NOT EDIT.

package {{.Pkg}}

{{if ne .Imports ""}}
import (
\t{{.Imports}}
)
{{end}}

{{.Data}}
"""


__all__ = [
    "ARG_TEMPLATE",
    "COMPONENT_CALL_CONSTRUCTOR_TEMPLATE",
    "COMPONENT_GETTER_SETTER_TEMPLATE",
    "COMPONENT_TEMPLATE",
    "CONSTANTS_TEMPLATE",
    "CONSTANT_TEMPLATE",
    "DEFAULT_FIELD_SETTER_TEMPLATE",
    "DEFAULT_FLOW_MESSAGE_TEMPLATE",
    "ENUM_TEMPLATE",
    "ENUM_VARIANT_TEMPLATE",
    "FIELD_CALL_CONSTRUCTOR_TEMPLATE",
    "FIELD_GETTER_SETTER_TEMPLATE",
    "FILE_TEMPLATE",
    "GROUP_CALL_CONSTRUCTOR_TEMPLATE",
    "GROUP_CONSTRUCTOR_TEMPLATE",
    "GROUP_GETTER_SETTER_TEMPLATE",
    "HEADER_BUILDER_TEMPLATE",
    "MESSAGE_TEMPLATE",
    "SETTER_CALL_TEMPLATE",
    "TRAILER_BUILDER_TEMPLATE",
    "render",
]