"""Indentation-aware text stream shared by the Lua and TypeScript emitters."""

from typing import List


class CodeStream:
    """Accumulate generated source, indenting each physical line once.

    ``write`` accepts text containing newlines. Indentation is inserted the
    first time something is written on a line and never on empty lines, so
    a multi-line string rendered elsewhere can be written into a nested
    scope and comes out correctly indented.
    """

    def __init__(self, indent: str = "\t"):
        self.indent_str = indent
        self.indent_level = 0
        self.is_start_of_line = True
        self._parts: List[str] = []

    def indent(self) -> None:
        self.indent_level += 1

    def unindent(self) -> None:
        if self.indent_level == 0:
            raise ValueError("CodeStream.unindent() called at indent level 0")
        self.indent_level -= 1

    def line(self) -> None:
        self.is_start_of_line = True
        self._parts.append("\n")

    def write(self, text: str) -> None:
        for i, segment in enumerate(text.split("\n")):
            if i:
                self.line()
            if not segment:
                continue
            if self.is_start_of_line:
                self.is_start_of_line = False
                self._parts.append(self.indent_str * self.indent_level)
            self._parts.append(segment)

    def writeln(self, text: str = "") -> None:
        self.write(text + "\n")

    def getvalue(self) -> str:
        return "".join(self._parts)
