import pytest

from neoshell.lexer import ShellSyntaxError, TokenType, tokenize
from neoshell.parser import (
    IOType,
    Node,
    NodeType,
    ParseError,
    Parser,
    Redirection,
    parse,
    precedence,
)


def tree(line):
    return parse(tokenize(line))


def cmd(args):
    return Node(NodeType.CMD, args=args)


def test_simple_command():
    assert tree("echo hi there") == cmd("echo hi there")


def test_empty_tokens():
    assert parse([]) is None


def test_precedence_values():
    assert precedence(TokenType.PIPE) > precedence(TokenType.OR) > precedence(TokenType.AND)
    assert precedence(TokenType.WORD) == -1


def test_pipe():
    assert tree("a | b") == Node(NodeType.PIPE, left=cmd("a"), right=cmd("b"))


def test_pipes_left_associative():
    expected = Node(
        NodeType.PIPE,
        left=Node(NodeType.PIPE, left=cmd("a"), right=cmd("b")),
        right=cmd("c"),
    )
    assert tree("a | b | c") == expected


def test_and_binds_loosest():
    expected = Node(
        NodeType.AND,
        left=cmd("a"),
        right=Node(NodeType.PIPE, left=cmd("b"), right=cmd("c")),
    )
    assert tree("a && b | c") == expected


def test_or_binds_tighter_than_and():
    expected = Node(
        NodeType.AND,
        left=cmd("a"),
        right=Node(NodeType.OR, left=cmd("b"), right=cmd("c")),
    )
    assert tree("a && b || c") == expected


def test_pipe_then_and():
    expected = Node(
        NodeType.AND,
        left=Node(NodeType.PIPE, left=cmd("a"), right=cmd("b")),
        right=cmd("c"),
    )
    assert tree("a | b && c") == expected


def test_redirections_collected():
    node = tree("cat < in > out")
    assert node.args == "cat"
    assert node.redirections == [
        Redirection(IOType.IN, "in"),
        Redirection(IOType.OUT, "out"),
    ]


def test_words_after_redirection_join_args():
    node = tree("echo a > f b")
    assert node.args == "echo a b"
    assert node.redirections == [Redirection(IOType.OUT, "f")]


def test_heredoc_only():
    node = tree("<< EOF")
    assert node.args is None
    assert node.redirections == [Redirection(IOType.HEREDOC, "EOF")]


def test_append():
    assert tree("echo x >> log").redirections == [Redirection(IOType.APPEND, "log")]


def test_block_with_redirection():
    node = tree("(a && b) > out")
    assert node.type is NodeType.AND
    assert node.is_block is True
    assert node.redirections == [Redirection(IOType.OUT, "out")]


def test_trailing_pipe_reports_newline():
    with pytest.raises(ParseError) as info:
        tree("a |")
    assert info.value.near == "newline"


def test_missing_redirection_target():
    with pytest.raises(ParseError) as info:
        tree("cat >")
    assert info.value.near == "newline"


def test_double_pipe_operator():
    with pytest.raises(ParseError) as info:
        tree("a | | b")
    assert info.value.near == "|"


def test_error_reports_current_token():
    with pytest.raises(ParseError) as info:
        tree("a && b | | c")
    assert info.value.near == "c"


def test_stray_close_paren():
    with pytest.raises(ShellSyntaxError) as info:
        tree("a )")
    assert info.value.near == ")"
    assert info.value.status == 2


def test_unclosed_paren():
    with pytest.raises(ParseError) as info:
        tree("(a")
    assert info.value.near == "newline"


def test_lone_open_paren_is_silent():
    with pytest.raises(ParseError) as info:
        tree("(")
    assert info.value.near is None


def test_parser_reusable():
    parser = Parser(tokenize("x | y"))
    assert parser.parse() == parser.parse()
    assert parser.parse().type is NodeType.PIPE