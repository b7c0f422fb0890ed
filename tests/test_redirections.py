import pytest

from neoshell.parser import IOType, Node, NodeType, Redirection
from neoshell.redirections import (
    RedirectionError,
    format_error,
    is_delimiter,
    open_redirections,
    prepare_redirections,
    read_heredoc,
)
from neoshell.state import Environment, ShellState


def make_state(*entries):
    return ShellState(env=Environment.from_strings(entries))


def command(*redirections):
    return Node(NodeType.CMD, args="cat", redirections=list(redirections))


def _interrupted_lines():
    yield "first"
    raise KeyboardInterrupt


def test_format_error_replaces_dollar():
    message = format_error("neobash: $ : ambiguous redirect", "$x")
    assert message == "neobash: $x : ambiguous redirect"


def test_format_error_without_subject():
    assert format_error("a $ b", None) == "a  b"


def test_is_delimiter():
    assert is_delimiter("EOF", "EOF") is True
    assert is_delimiter("'EOF'", "EOF") is True
    assert is_delimiter("EOF", "EOFX") is False
    assert is_delimiter("EOF", "EO") is False


def test_read_heredoc_expands_and_stops_at_delimiter():
    state = make_state("HOME=/h")
    redirection = Redirection(IOType.HEREDOC, "EOF")
    lines = iter(["a $HOME", "EOF", "b"])
    content = read_heredoc(redirection, state, lines)
    assert content == "a /h\n"
    assert redirection.heredoc == content
    assert list(lines) == ["b"]
    assert state.status == 0


def test_read_heredoc_quoted_delimiter_disables_expansion():
    state = make_state("HOME=/h")
    redirection = Redirection(IOType.HEREDOC, '"EOF"')
    assert read_heredoc(redirection, state, ["$HOME", "EOF"]) == "$HOME\n"
    assert state.heredoc_expand is False


def test_read_heredoc_ends_at_end_of_input():
    state = make_state()
    redirection = Redirection(IOType.HEREDOC, "EOF")
    assert read_heredoc(redirection, state, ["x", "y"]) == "x\ny\n"


def test_read_heredoc_interrupted():
    state = make_state()
    redirection = Redirection(IOType.HEREDOC, "EOF")
    content = read_heredoc(redirection, state, _interrupted_lines())
    assert state.status == 130
    assert state.heredoc_interrupted is True
    assert content == "first\n"


def test_prepare_redirections_expands_names():
    state = make_state("F=out.txt")
    node = command(Redirection(IOType.OUT, "$F"), Redirection(IOType.IN, '"a b"'))
    prepare_redirections(node, state)
    assert node.redirections[0].expanded == "out.txt"
    assert node.redirections[1].expanded == "a b"


def test_prepare_redirections_reads_heredocs_in_order():
    state = make_state()
    first = Redirection(IOType.HEREDOC, "A")
    second = Redirection(IOType.HEREDOC, "B")
    prepare_redirections(command(first, second), state, ["one", "A", "two", "B"])
    assert first.heredoc == "one\n"
    assert second.heredoc == "two\n"


def test_open_output_and_append(tmp_path):
    target = tmp_path / "out.txt"
    node = command(Redirection(IOType.OUT, "out", expanded=str(target)))
    with open_redirections(node) as streams:
        streams.stdout.write(b"hello\n")
    node = command(Redirection(IOType.APPEND, "out", expanded=str(target)))
    with open_redirections(node) as streams:
        streams.stdout.write(b"again\n")
    assert target.read_bytes() == b"hello\nagain\n"


def test_open_output_truncates(tmp_path):
    target = tmp_path / "out.txt"
    target.write_bytes(b"old content")
    node = command(Redirection(IOType.OUT, "out", expanded=str(target)))
    with open_redirections(node) as streams:
        assert streams.stdin is None
    assert target.read_bytes() == b""


def test_open_input(tmp_path):
    source = tmp_path / "in.txt"
    source.write_bytes(b"data")
    node = command(Redirection(IOType.IN, "in", expanded=str(source)))
    with open_redirections(node) as streams:
        assert streams.stdin.read() == b"data"
        assert streams.stdout is None


def test_open_missing_input(tmp_path):
    missing = str(tmp_path / "missing.txt")
    node = command(Redirection(IOType.IN, "missing.txt", expanded=missing))
    with pytest.raises(RedirectionError) as info:
        open_redirections(node)
    assert info.value.message == f"neobash: {missing}: No such file or directory"
    assert info.value.status == 1


def test_open_ambiguous_redirect():
    node = command(Redirection(IOType.OUT, "$x", expanded=""))
    with pytest.raises(RedirectionError) as info:
        open_redirections(node)
    assert info.value.message == "neobash: $x : ambiguous redirect"


def test_open_ambiguous_multiple_words():
    node = command(Redirection(IOType.IN, "$x", expanded="a b"))
    with pytest.raises(RedirectionError) as info:
        open_redirections(node)
    assert "ambiguous redirect" in info.value.message


def test_open_heredoc_stream():
    redirection = Redirection(IOType.HEREDOC, "EOF", heredoc="hello\n")
    with open_redirections(command(redirection)) as streams:
        assert streams.stdin.read() == b"hello\n"


def test_later_redirection_wins(tmp_path):
    first = tmp_path / "a.txt"
    second = tmp_path / "b.txt"
    node = command(
        Redirection(IOType.OUT, "a", expanded=str(first)),
        Redirection(IOType.OUT, "b", expanded=str(second)),
    )
    with open_redirections(node) as streams:
        streams.stdout.write(b"x")
    assert first.read_bytes() == b""
    assert second.read_bytes() == b"x"


def test_error_after_open_closes_earlier_files(tmp_path):
    target = tmp_path / "out.txt"
    node = command(
        Redirection(IOType.OUT, "out", expanded=str(target)),
        Redirection(IOType.IN, "$x", expanded=""),
    )
    with pytest.raises(RedirectionError):
        open_redirections(node)
    assert target.exists()