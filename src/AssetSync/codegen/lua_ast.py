"""A small Lua AST for generated asset modules."""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from .stream import CodeStream
from .ts_ast import format_number

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

LUA_KEYWORDS = frozenset({
    "and", "break", "do", "else", "elseif", "end", "false", "for", "function",
    "goto", "if", "in", "local", "nil", "not", "or", "repeat", "return", "then",
    "true", "until", "while",
})

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def is_lua_identifier(name: str) -> bool:
    return bool(_IDENTIFIER_RE.match(name)) and name not in LUA_KEYWORDS


def quote_lua_string(value: str) -> str:
    out = []
    for ch in value:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ord(ch) < 32 or ord(ch) == 127:
            out.append(f"\\{ord(ch):03d}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


class LuaNode:
    """Base class for every Lua node."""

    def write_to(self, out: CodeStream) -> None:
        raise NotImplementedError

    def __str__(self) -> str:
        out = CodeStream()
        self.write_to(out)
        return out.getvalue()


@dataclass
class LuaString(LuaNode):
    value: str

    def write_to(self, out):
        out.write(quote_lua_string(self.value))


@dataclass
class LuaNumber(LuaNode):
    value: Union[int, float]

    def write_to(self, out):
        out.write(format_number(self.value))


@dataclass
class TableEntry:
    """One table field. ``key=None`` makes a positional entry."""

    key: Optional[Union[str, int, float]]
    value: LuaNode

    def key_text(self) -> Optional[str]:
        if self.key is None:
            return None
        if isinstance(self.key, str):
            return self.key if is_lua_identifier(self.key) else f"[{quote_lua_string(self.key)}]"
        return f"[{format_number(self.key)}]"


@dataclass
class LuaTable(LuaNode):
    entries: List[TableEntry] = field(default_factory=list)

    def write_to(self, out):
        if not self.entries:
            out.write("{}")
            return
        out.write("{\n")
        out.indent()
        for entry in self.entries:
            key = entry.key_text()
            if key is not None:
                out.write(f"{key} = ")
            out.write(f"{entry.value},\n")
        out.unindent()
        out.write("}")


@dataclass
class ReturnStatement(LuaNode):
    value: LuaNode

    def write_to(self, out):
        out.write(f"return {self.value}\n")


@dataclass
class LuaComment(LuaNode):
    text: str

    def write_to(self, out):
        for line in self.text.split("\n"):
            out.write(f"-- {line}\n" if line else "--\n")


@dataclass
class LuaBlock(LuaNode):
    statements: List[LuaNode] = field(default_factory=list)

    def write_to(self, out):
        for statement in self.statements:
            statement.write_to(out)
