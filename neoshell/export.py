"""The ``export`` builtin."""

from __future__ import annotations

import string
import sys
from typing import TextIO

from .lexer import QUOTES
from .state import Environment, ShellState

_SPACES = "\t\n\v\f\r "
_KEY_START = frozenset(string.ascii_letters + "_")
_KEY_CHARS = frozenset(string.ascii_letters + string.digits + "_")


def parse_key(text: str) -> bool:
    """True if ``text`` starts with a valid variable name (up to ``=``, ``+=``, a blank or a quote)."""
    if not text or text[0] not in _KEY_START:
        return False
    for pos in range(1, len(text)):
        char = text[pos]
        if char in "= \"'":
            break
        if char == "+" and text[pos + 1:pos + 2] == "=":
            return True
        if char not in _KEY_CHARS:
            return False
    return True


def split_key(text: str) -> tuple[str, bool, int]:
    """Return the key, whether it is an append (``+=``) and how many characters were read."""
    for pos, char in enumerate(text):
        if text.startswith("+=", pos):
            return text[:pos], True, pos + 2
        if char in "= ":
            return text[:pos], False, pos + 1
    return text, False, len(text)


def unquote_value(line: str, start: int) -> tuple[str, int]:
    """Read the value that starts at ``start``, dropping its quotes.

    Returns the value and the position after it (and after one following space).
    """

    def at(k: int) -> str:
        return line[k] if k < len(line) else ""

    parts = []
    pos = start
    while at(pos) and at(pos) not in _SPACES:
        if at(pos) in QUOTES:
            parts.append(line[start:pos])
            quote = line[pos]
            pos += 1
            start = pos
            while at(pos) and at(pos) != quote:
                pos += 1
            if at(pos) == quote:
                pos += 1
            parts.append(line[start:max(pos - 1, start)])
            start = pos
            if not at(pos):
                break
        pos += 1
        if not at(pos) or at(pos) in _SPACES:
            parts.append(line[start:pos])
    if at(pos) == " ":
        pos += 1
    return "".join(parts), pos


def _sub_value(text: str) -> tuple[str | None, int | None]:
    for pos, char in enumerate(text):
        if char == " ":
            break
        if char == "=":
            if pos + 1 >= len(text):
                return "", None
            return unquote_value(text, pos + 1)
    return None, None


def export_listing(env: Environment) -> list[str]:
    """The ``declare -x`` lines for every variable, sorted by name."""
    lines = []
    for var in sorted(env, key=lambda v: v.key):
        if var.value:
            lines.append(f'declare -x {var.key}="{var.value}"')
        else:
            lines.append(f"declare -x {var.key}")
    return lines


def _set_var(state: ShellState, text: str) -> int:
    key, append, count = split_key(text)
    value, consumed = _sub_value(text)
    if consumed is not None:
        count = consumed
    env = state.env
    if env.contains(key):
        if append:
            current = env.get(key)
            env.update(key, None if value is None else current + value)
        else:
            env.update(key, value)
    else:
        env.add(key, value)
    return count


def export(state: ShellState, text: str, out: TextIO) -> int:
    """Run ``export`` on the text after the command name; return the exit status."""
    pos = len(text) - len(text.lstrip(" "))
    if pos == len(text):
        pos = 0
    if pos >= len(text):
        for line in export_listing(state.env):
            out.write(line + "\n")
        return 1
    while pos < len(text):
        if text[pos] in QUOTES:
            pos += 1
        rest = text[pos:]
        if not parse_key(rest):
            sys.stderr.write(f"bash: export: `{rest}': not a valid identifier\n")
            return 1
        pos += _set_var(state, rest)
    return 0