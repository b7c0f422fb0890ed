"""Building the command tree from tokens."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from .lexer import ShellSyntaxError, Token, TokenType


class NodeType(Enum):
    AND = auto()
    OR = auto()
    PIPE = auto()
    CMD = auto()


class IOType(Enum):
    OUT = auto()
    IN = auto()
    HEREDOC = auto()
    APPEND = auto()


@dataclass
class Redirection:
    kind: IOType
    value: str
    expanded: str | None = None
    heredoc: str | None = None


@dataclass
class Node:
    type: NodeType
    args: str | None = None
    redirections: list[Redirection] = field(default_factory=list)
    left: Node | None = None
    right: Node | None = None
    is_block: bool = False


class ParseError(ShellSyntaxError):
    """The tokens do not form a command; ``near`` is None when nothing is to be reported."""


_PRECEDENCE = {TokenType.PIPE: 2, TokenType.OR: 1, TokenType.AND: 0}
_PAIR_NODES = {
    TokenType.PIPE: NodeType.PIPE,
    TokenType.AND: NodeType.AND,
    TokenType.OR: NodeType.OR,
}
_IO_TYPES = {
    TokenType.APPEND: IOType.APPEND,
    TokenType.HEREDOC: IOType.HEREDOC,
    TokenType.INPUT: IOType.IN,
    TokenType.REDIRECT: IOType.OUT,
}

_OK = 0
_SYNTAX = 1
_FAILURE = 2


def precedence(token_type: TokenType) -> int:
    """Binding strength of an operator token; -1 for anything else."""
    return _PRECEDENCE.get(token_type, -1)


class Parser:
    """Precedence-climbing parser over a token list."""

    def __init__(self, tokens) -> None:
        self._tokens: list[Token] = list(tokens)
        self._pos = 0
        self._state = _OK

    @property
    def _current(self) -> Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _advance(self) -> None:
        self._pos += 1

    def _at(self, types) -> bool:
        current = self._current
        return current is not None and current.type in types

    def _at_pair(self) -> bool:
        return self._at(_PAIR_NODES)

    def _at_io(self) -> bool:
        return self._at(_IO_TYPES)

    def parse(self) -> Node | None:
        """Return the tree for all tokens, None for no tokens; raise ParseError otherwise."""
        self._pos = 0
        self._state = _OK
        tree = self._binary(0)
        current = self._current
        if current is not None:
            self._state = _SYNTAX
        if self._state == _SYNTAX:
            raise ParseError(current.value if current is not None else "newline")
        if self._state == _FAILURE:
            raise ParseError(None)
        return tree

    def _binary(self, minimum: int) -> Node | None:
        if self._state:
            return None
        left = self._primary()
        if left is None:
            return None
        while self._at_pair() and precedence(self._current.type) >= minimum:
            operator = self._current.type
            self._advance()
            if self._current is None:
                self._state = _SYNTAX
                return left
            right = self._binary(precedence(operator) + 1)
            if right is None:
                return left
            left = Node(_PAIR_NODES[operator], left=left, right=right)
        return left

    def _primary(self) -> Node | None:
        if self._state or self._current is None:
            return None
        if self._at_pair():
            self._state = _SYNTAX
            return None
        if self._current.type is not TokenType.LPAREN:
            return self._simple_command()
        self._advance()
        result = self._binary(0)
        if result is None:
            self._state = _FAILURE
            return None
        if not self._at((TokenType.RPAREN,)):
            self._state = _SYNTAX
            return None
        self._advance()
        if self._current is not None and not self._at_pair():
            trailing = self._binary(5)
            if trailing is not None:
                result.redirections = trailing.redirections
        result.is_block = True
        return result

    def _simple_command(self) -> Node | None:
        if self._state:
            return None
        node = Node(NodeType.CMD)
        while self._at((TokenType.WORD,)) or self._at_io():
            if self._current.type is TokenType.WORD:
                self._words(node)
            elif not self._redirections(node):
                return None
        return node

    def _words(self, node: Node) -> None:
        while self._at((TokenType.WORD,)):
            word = self._current.value
            node.args = f"{node.args} {word}" if node.args and word else (node.args or "") + word
            self._advance()

    def _redirections(self, node: Node) -> bool:
        if self._state:
            return False
        while self._at_io():
            kind = _IO_TYPES[self._current.type]
            self._advance()
            if not self._at((TokenType.WORD,)):
                self._state = _SYNTAX
                return False
            node.redirections.append(Redirection(kind, self._current.value))
            self._advance()
        return True


def parse(tokens) -> Node | None:
    """Parse a token list into a command tree."""
    return Parser(tokens).parse()