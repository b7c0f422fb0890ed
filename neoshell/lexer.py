"""Splitting a command line into pieces and classifying them as tokens."""

from __future__ import annotations

import string
from dataclasses import dataclass
from enum import Enum, auto

QUOTES = "\"'"
_BLANKS = " \t\v"
_SPACES = " \t\n\v\f\r"
_WORD_CHARS = frozenset(string.ascii_letters + string.digits + "-./$_?=*\"+'^")
_PAIRS = (">>", "<<", "||", "&&")
_SINGLE_OPERATORS = "><|()"


class TokenType(Enum):
    WORD = auto()
    INPUT = auto()
    APPEND = auto()
    HEREDOC = auto()
    REDIRECT = auto()
    LPAREN = auto()
    RPAREN = auto()
    AND = auto()
    OR = auto()
    PIPE = auto()
    SYNTAX = auto()


_OPERATORS = {
    ">": TokenType.REDIRECT,
    "<": TokenType.INPUT,
    ">>": TokenType.APPEND,
    "<<": TokenType.HEREDOC,
    "&&": TokenType.AND,
    "||": TokenType.OR,
    "|": TokenType.PIPE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
}


@dataclass(frozen=True)
class Token:
    value: str
    type: TokenType


class ShellSyntaxError(Exception):
    """A command line the shell refuses to run; ``near`` is the offending token."""

    status = 2

    def __init__(self, near: str | None) -> None:
        self.near = near
        if near is None:
            message = "neobash: syntax error"
        else:
            message = f"neobash: syntax error near unexpected token `{near}'"
        super().__init__(message)


def check_quotes(line: str) -> None:
    """Raise ShellSyntaxError if the line ends inside a quoted section."""
    pos = 0
    quote = None
    unclosed = False
    while pos < len(line):
        if line[pos] in QUOTES:
            quote = line[pos]
            end = line.find(quote, pos + 1)
            if end == -1:
                unclosed = True
                break
            unclosed = False
            pos = end
        pos += 1
    if unclosed:
        raise ShellSyntaxError(quote)


def _starts_operator(line: str, pos: int) -> bool:
    return line.startswith(_PAIRS, pos) or line[pos] in _SINGLE_OPERATORS


def _quoted_end(line: str, pos: int) -> int:
    size = len(line)
    while pos < size and line[pos] in QUOTES:
        quote = line[pos]
        pos += 1
        while pos < size and line[pos] != quote:
            pos += 1
        if pos < size:
            pos += 1
        if pos < size and line[pos] != " " and not _starts_operator(line, pos):
            while pos < size and line[pos] not in _SPACES:
                pos += 1
        else:
            break
    return pos


def _run_end(line: str, pos: int, chars) -> int:
    while pos < len(line) and line[pos] in chars:
        pos += 1
    return pos


def split_line(line: str) -> list[str]:
    """Cut a line into words, operators and runs of blanks; joined they give the line back."""
    pieces = []
    pos = 0
    while pos < len(line):
        char = line[pos]
        if char in QUOTES:
            end = _quoted_end(line, pos)
        elif char not in _WORD_CHARS:
            if char in _BLANKS:
                end = _run_end(line, pos, _BLANKS)
            elif line.startswith(_PAIRS, pos):
                end = pos + 2
            else:
                end = pos + 1
        else:
            end = _run_end(line, pos, _WORD_CHARS)
        pieces.append(line[pos:end])
        pos = end
    return pieces


def _is_bad(piece: str) -> bool:
    return piece[:1] in (";", "`", "\\") or piece == "&"


def classify(piece: str) -> TokenType:
    """The token type of one piece of a line."""
    if piece in _OPERATORS:
        return _OPERATORS[piece]
    if _is_bad(piece):
        return TokenType.SYNTAX
    return TokenType.WORD


def tokenize(line: str) -> list[Token]:
    """Split a line and classify every piece that is not blank space."""
    return [
        Token(piece, classify(piece))
        for piece in split_line(line)
        if piece[0] not in _BLANKS
    ]