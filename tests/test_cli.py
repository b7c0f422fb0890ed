import io

import pytest

from neoshell.builtins import ShellExit
from neoshell.cli import (
    check_bad_tokens,
    check_parentheses,
    init_state,
    main,
    run_line,
)
from neoshell.lexer import ShellSyntaxError, tokenize
from neoshell.state import ShellState


@pytest.fixture
def state():
    return ShellState.from_environ({"HOME": "/tmp", "SHLVL": "1"})


def test_init_state_increments_level():
    st = init_state({"SHLVL": "1"})
    assert st.level == 2
    assert st.env.get("SHLVL") == "2"


def test_init_state_too_high_level_resets(capsys):
    st = init_state({"SHLVL": "999"})
    assert st.level == 1
    assert st.env.get("SHLVL") == "1"
    assert "shell level (1000) too high" in capsys.readouterr().err


def test_init_state_negative_level():
    st = init_state({"SHLVL": "-5"})
    assert st.level == 0
    assert st.env.get("SHLVL") == "0"


def test_init_state_without_shlvl_does_not_add_it():
    st = init_state({"HOME": "/tmp"})
    assert st.level == 1
    assert not st.env.contains("SHLVL")


def test_check_bad_tokens_reports_semicolon():
    with pytest.raises(ShellSyntaxError) as info:
        check_bad_tokens(tokenize("ls ; pwd"))
    assert info.value.near == ";"
    assert info.value.status == 2


def test_check_bad_tokens_accepts_plain_words():
    tokens = tokenize("echo a b")
    assert check_bad_tokens(tokens) is None
    assert len(tokens) == 3


def test_check_parentheses_open_at_end():
    with pytest.raises(ShellSyntaxError) as info:
        check_parentheses(tokenize("echo ("))
    assert info.value.near == "("


def test_check_parentheses_empty_pair():
    with pytest.raises(ShellSyntaxError) as info:
        check_parentheses(tokenize("( )"))
    assert info.value.near == ")"


def test_run_line_echo(state, capsys):
    assert run_line(state, "echo hello") == 0
    assert capsys.readouterr().out == "hello\n"


def test_run_line_unclosed_quote(state, capsys):
    assert run_line(state, "echo 'unclosed") == 2
    assert state.status == 2
    assert "syntax error" in capsys.readouterr().err


def test_run_line_bad_token(state, capsys):
    assert run_line(state, "ls ; pwd") == 2
    assert "`;'" in capsys.readouterr().err


def test_run_line_leading_pipe(state, capsys):
    assert run_line(state, "| echo") == 2
    assert "`|'" in capsys.readouterr().err


def test_run_line_dangling_operator(state, capsys):
    assert run_line(state, "echo a &&") == 2
    assert "`newline'" in capsys.readouterr().err


def test_run_line_blank_keeps_status(state):
    state.status = 7
    assert run_line(state, "   ") == 7
    assert run_line(state, "") == 7


def test_run_line_export_sets_variable(state):
    assert run_line(state, "export FOO=bar") == 0
    assert state.env.get("FOO") == "bar"


def test_run_line_unknown_command_then_status(state, capsys):
    assert run_line(state, "no_such_command_xyz") == 127
    assert "command not found" in capsys.readouterr().err
    run_line(state, "echo $?")
    assert capsys.readouterr().out == "127\n"


def test_run_line_exit_raises(state):
    with pytest.raises(ShellExit) as info:
        run_line(state, "exit 3")
    assert info.value.status == 3


def test_main_exit_status(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("echo hi\nexit 5\n"))
    assert main() == 5
    assert "hi\n" in capsys.readouterr().out


def test_main_end_of_input(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("echo hi\n"))
    assert main() == 0
    out = capsys.readouterr().out
    assert out.endswith("exit\n")
    assert "neoshell->$ " in out