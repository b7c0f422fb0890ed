"""Variable expansion of command words and here-document lines."""

from __future__ import annotations

import string

from .state import ShellState

_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")


def is_name_char(char: str) -> bool:
    """True for characters allowed in a variable name."""
    return len(char) == 1 and char in _NAME_CHARS


class _Reader:
    def __init__(self, text: str, state: ShellState) -> None:
        self.text = text
        self.pos = 0
        self.state = state

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return "" if self.at_end() else self.text[self.pos]

    def take_until(self, stops: str) -> str:
        start = self.pos
        while not self.at_end() and self.text[self.pos] not in stops:
            self.pos += 1
        return self.text[start:self.pos]

    def take_while_name(self) -> str:
        start = self.pos
        while is_name_char(self.peek()):
            self.pos += 1
        return self.text[start:self.pos]

    def plain(self) -> str:
        return self.take_until("'\"$")

    def dollar(self) -> str:
        self.pos += 1
        char = self.peek()
        if char == "?":
            self.pos += 1
            return str(self.state.status)
        if char != "" and char in string.digits:
            self.pos += 1
            return self.plain()
        if char == "$":
            self.pos += 1
            return "$$"
        if char == "":
            return "$"
        if not is_name_char(char):
            return ""
        value = self.state.env.get(self.take_while_name())
        return value or ""

    def single_quoted(self) -> str:
        start = self.pos
        end = self.text.find("'", start + 1)
        self.pos = len(self.text) if end == -1 else end + 1
        return self.text[start:self.pos]

    def _quoted_body(self, quote: str) -> list[str]:
        parts = []
        while not self.at_end() and self.peek() != quote:
            if self.peek() == "$":
                parts.append(self.dollar())
            else:
                parts.append(self.take_until(quote + "$"))
        return parts

    def double_quoted(self) -> str:
        quote = self.peek()
        self.pos += 1
        body = self._quoted_body(quote)
        if not self.at_end():
            self.pos += 1
        return '"' + "".join(body) + '"'

    def heredoc_quoted(self) -> str:
        quote = self.peek()
        self.pos += 1
        body = self._quoted_body(quote)
        if self.at_end():
            return quote + "".join(body)
        self.pos += 1
        return quote + "".join(body) + quote


def expand(text: str | None, state: ShellState) -> str | None:
    """Expand ``$`` references outside single quotes; quotes are kept in the result."""
    if text is None:
        return None
    reader = _Reader(text, state)
    parts = []
    while not reader.at_end():
        char = reader.peek()
        if char == "'":
            parts.append(reader.single_quoted())
        elif char in ('"', "`"):
            parts.append(reader.double_quoted())
        elif char == "$":
            parts.append(reader.dollar())
        else:
            parts.append(reader.plain())
    return "".join(parts)


def expand_heredoc(text: str | None, state: ShellState) -> str | None:
    """Expand a here-document line: ``$`` references are replaced inside any quotes too."""
    if text is None:
        return None
    reader = _Reader(text, state)
    parts = []
    while not reader.at_end():
        char = reader.peek()
        if char in ('"', "`", "'"):
            parts.append(reader.heredoc_quoted())
        elif char == "$":
            parts.append(reader.dollar())
        else:
            parts.append(reader.plain())
    return "".join(parts)