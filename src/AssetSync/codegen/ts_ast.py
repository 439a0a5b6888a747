"""A small TypeScript AST, just large enough for declaration files.

Every node writes itself to a `CodeStream` via ``write_to``; ``str(node)``
renders it on a fresh stream. Nodes embedded inside another node's line
(a type literal used as a property type, for instance) are rendered with
``str`` and written back through the outer stream, which re-indents each
of their lines.
"""

import enum
import json
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .stream import CodeStream


class Modifier(enum.Enum):
    EXPORT = "export"
    DECLARE = "declare"
    READONLY = "readonly"


def _write_modifiers(out: CodeStream, modifiers: Sequence[Modifier]) -> None:
    for modifier in modifiers:
        out.write(f"{modifier.value} ")


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def format_number(value: Union[int, float]) -> str:
    """Render ``2.0`` as ``2`` and ``1.5`` as ``1.5``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_plain_property_name(name: str) -> bool:
    """Names that can be written without quoting: alphanumeric, starting with a letter."""
    return bool(name) and name.isalnum() and name[0].isalpha()


class Node:
    """Base class for every TypeScript node."""

    def write_to(self, out: CodeStream) -> None:
        raise NotImplementedError

    def __str__(self) -> str:
        out = CodeStream()
        self.write_to(out)
        return out.getvalue()


# Expressions and types


@dataclass
class Identifier(Node):
    name: str

    def write_to(self, out):
        out.write(self.name)


@dataclass
class StringLiteral(Node):
    value: str

    def write_to(self, out):
        out.write(_quote(self.value))


@dataclass
class NumericLiteral(Node):
    value: Union[int, float]

    def write_to(self, out):
        out.write(format_number(self.value))


@dataclass
class TemplateSpan:
    """``${expression}literal`` following the head of a template literal."""

    expression: Node
    literal: str = ""


@dataclass
class TemplateLiteral(Node):
    """`` `head${a}middle${b}tail` ``"""

    head: str
    spans: List[TemplateSpan] = field(default_factory=list)

    @staticmethod
    def _escape(text: str) -> str:
        return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")

    def write_to(self, out):
        out.write("`" + self._escape(self.head))
        for span in self.spans:
            out.write("${")
            out.write(str(span.expression))
            out.write("}" + self._escape(span.literal))
        out.write("`")


@dataclass
class PropertySignature(Node):
    """``name: type;`` inside a type literal or interface.

    Names that are not plain identifiers are written as ``["name"]``.
    """

    name: str
    type: Node
    modifiers: Sequence[Modifier] = ()

    def write_to(self, out):
        _write_modifiers(out, self.modifiers)
        key = self.name if is_plain_property_name(self.name) else f"[{_quote(self.name)}]"
        out.write(f"{key}: {self.type};\n")


@dataclass
class TypeLiteral(Node):
    members: List[PropertySignature] = field(default_factory=list)

    def write_to(self, out):
        if not self.members:
            out.write("{}")
            return
        out.write("{\n")
        out.indent()
        for member in self.members:
            member.write_to(out)
        out.unindent()
        out.write("}")


@dataclass
class Parameter:
    name: str
    type: Node


@dataclass
class FunctionType(Node):
    """``(a: A, b: B) => R``"""

    parameters: List[Parameter]
    return_type: Node

    def write_to(self, out):
        params = ", ".join(f"{p.name}: {p.type}" for p in self.parameters)
        out.write(f"({params}) => {self.return_type}")


@dataclass
class UnionType(Node):
    types: List[Node]

    def write_to(self, out):
        if not self.types:
            raise ValueError("UnionType needs at least one member")
        out.write(" | ".join(str(t) for t in self.types))


# Statements


@dataclass
class VariableDeclaration(Node):
    """``[modifiers] const name[: type][ = value];``"""

    name: str
    type: Optional[Node] = None
    value: Optional[Node] = None
    modifiers: Sequence[Modifier] = ()

    def write_to(self, out):
        _write_modifiers(out, self.modifiers)
        out.write(f"const {self.name}")
        if self.type is not None:
            out.write(f": {self.type}")
        if self.value is not None:
            out.write(f" = {self.value}")
        out.write(";\n")


@dataclass
class InterfaceDeclaration(Node):
    name: str
    members: List[PropertySignature] = field(default_factory=list)
    modifiers: Sequence[Modifier] = ()

    def write_to(self, out):
        _write_modifiers(out, self.modifiers)
        out.write(f"interface {self.name} {{\n")
        out.indent()
        for member in self.members:
            member.write_to(out)
        out.unindent()
        out.write("}\n")


@dataclass
class TypeAliasDeclaration(Node):
    name: str
    type: Node
    modifiers: Sequence[Modifier] = ()

    def write_to(self, out):
        _write_modifiers(out, self.modifiers)
        out.write(f"type {self.name} = {self.type};\n")


@dataclass
class ExportAssignment(Node):
    """``export = expression;``"""

    expression: Node

    def write_to(self, out):
        out.write(f"export = {self.expression};\n")


@dataclass
class Comment(Node):
    text: str
    multiline: bool = False

    def write_to(self, out):
        if self.multiline:
            out.write(f"/*{self.text}*/\n")
        else:
            out.write(f"// {self.text}\n")


@dataclass
class StatementList(Node):
    statements: List[Node] = field(default_factory=list)

    def write_to(self, out):
        for statement in self.statements:
            statement.write_to(out)
