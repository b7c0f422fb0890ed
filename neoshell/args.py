"""Splitting command strings into arguments and expanding ``*`` wildcards."""

from __future__ import annotations

import os
from collections.abc import Iterable

from .lexer import QUOTES

_SPACES = "\t\n\v\f\r "


def _quoted(line: str, pos: int, keep_quotes: bool) -> tuple[str, int]:
    quote = line[pos]
    end = line.find(quote, pos + 1)
    if end == -1:
        text = line[pos:] if keep_quotes else line[pos + 1:]
        return text, len(line)
    text = line[pos:end + 1] if keep_quotes else line[pos + 1:end]
    return text, end + 1


def _run_end(line: str, pos: int) -> int:
    while pos < len(line) and line[pos] not in _SPACES and line[pos] not in QUOTES:
        pos += 1
    return pos


def _quoted_word(line: str, pos: int, keep_quotes: bool) -> tuple[str, int]:
    parts = []
    while pos < len(line) and line[pos] in QUOTES:
        part, pos = _quoted(line, pos, keep_quotes)
        parts.append(part)
        if pos < len(line) and line[pos] != " ":
            end = _run_end(line, pos)
            parts.append(line[pos:end])
            pos = end
    return "".join(parts), pos


def _plain_word(line: str, pos: int, keep_quotes: bool) -> tuple[str, int]:
    parts = []
    while pos < len(line) and line[pos] not in _SPACES:
        end = _run_end(line, pos)
        parts.append(line[pos:end])
        pos = end
        if pos < len(line) and line[pos] in QUOTES:
            part, pos = _quoted(line, pos, keep_quotes)
            parts.append(part)
    return "".join(parts), pos


def _split(line: str | None, keep_quotes: bool) -> list[str]:
    if not line:
        return []
    words = []
    pos = 0
    size = len(line)
    while pos < size:
        while pos < size and line[pos] in _SPACES:
            pos += 1
        if pos >= size:
            break
        if line[pos] in QUOTES:
            word, pos = _quoted_word(line, pos, keep_quotes)
        else:
            word, pos = _plain_word(line, pos, keep_quotes)
        words.append(word)
    return words


def split_args(line: str | None) -> list[str]:
    """Split a command string into arguments, removing the quotes around quoted parts."""
    return _split(line, keep_quotes=False)


def split_keep_quotes(line: str | None) -> list[str]:
    """Split a command string into words the same way, but keep the quote characters."""
    return _split(line, keep_quotes=True)


def join_args(args: Iterable[str]) -> str | None:
    """Join arguments with single spaces, skipping empty ones.

    Returns None when there are no arguments or the first one is empty.
    """
    items = list(args)
    if not items or not items[0]:
        return None
    result = ""
    for item in items:
        if result and item:
            result = f"{result} {item}"
        else:
            result += item
    return result


def has_unquoted_star(text: str | None) -> bool:
    """True if ``text`` holds a ``*`` before any quoted section that contains one."""
    if not text:
        return False
    pos = 0
    size = len(text)
    while pos < size:
        if text[pos] in QUOTES:
            quote = text[pos]
            pos += 1
            while pos < size and text[pos] != quote:
                if text[pos] == "*":
                    return False
                pos += 1
        if pos >= size:
            return False
        if text[pos] == "*":
            return True
        pos += 1
    return False


def match_pattern(pattern: str, filename: str) -> bool:
    """Match ``filename`` against a pattern in which ``*`` stands for one or more characters."""
    p = f = 0
    while p < len(pattern) and f < len(filename):
        if pattern[p] == "*":
            if p + 1 == len(pattern):
                return True
            rest = pattern[p + 1:]
            return any(match_pattern(rest, filename[k:]) for k in range(f, len(filename)))
        if pattern[p] != filename[f]:
            return False
        p += 1
        f += 1
    return p == len(pattern) and f == len(filename)


def expand_wildcard(word: str, directory: str | os.PathLike = ".") -> str | None:
    """Replace a word holding an unquoted ``*`` by the matching names in ``directory``.

    The word comes back unchanged when it has no wildcard or nothing matches;
    None is returned when the directory cannot be read.
    """
    if not has_unquoted_star(word):
        return word
    try:
        names = sorted(os.listdir(directory))
    except OSError:
        return None
    pattern = join_args(split_args(word))
    if pattern is None:
        return word
    matches = [name for name in names if not name.startswith(".") and match_pattern(pattern, name)]
    return " ".join(matches) if matches else word


def expand_wildcards(line: str | None, directory: str | os.PathLike = ".") -> str | None:
    """Expand the wildcards of every word in a command string and join the result."""
    words = split_keep_quotes(line)
    if not words:
        return line
    expanded = []
    for word in words:
        result = expand_wildcard(word, directory)
        if result is None:
            break
        expanded.append(result)
    return join_args(expanded)