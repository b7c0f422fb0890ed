"""Interactive entry point: prompt, syntax checks and running each command line."""

from __future__ import annotations

import signal
import sys
from collections.abc import Iterable, Mapping

from .builtins import ShellExit
from .executor import Executor
from .lexer import ShellSyntaxError, Token, TokenType, check_quotes, tokenize
from .parser import ParseError, parse
from .state import ShellState

PROMPT = "neoshell->$ "
_SPACES = "\t\n\v\f\r "
_LEVEL_LIMIT = 1000


def _atoi(text: str | None) -> int:
    """Leading integer of ``text`` (blanks and one sign allowed), wrapped to 32 bits."""
    if not text:
        return 0
    rest = text.lstrip(_SPACES)
    sign = 1
    if rest[:1] in ("-", "+"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    digits = ""
    for char in rest:
        if not ("0" <= char <= "9"):
            break
        digits += char
    value = sign * int(digits) if digits else 0
    return ((value + 2**31) % 2**32) - 2**31


def _report(message: str) -> None:
    sys.stderr.write(message + "\n")
    sys.stderr.flush()


def init_state(environ: Mapping[str, str] | None = None) -> ShellState:
    """Create the shell state from ``environ`` and raise the shell level by one."""
    state = ShellState.from_environ(environ)
    level = _atoi(state.env.get("SHLVL"))
    if level + 1 < 0:
        level = -1
    elif level + 1 >= _LEVEL_LIMIT:
        _report(f"bash: warning: shell level ({level + 1}) too high, resetting to 1")
        level = 0
    level += 1
    state.level = level
    state.env.update("SHLVL", str(level))
    state.heredoc_expand = True
    return state


def check_bad_tokens(tokens: Iterable[Token]) -> None:
    """Raise ShellSyntaxError at the first token the shell does not support."""
    for token in tokens:
        if token.type is TokenType.SYNTAX:
            raise ShellSyntaxError(token.value)


def check_parentheses(tokens: Iterable[Token]) -> None:
    """Raise ShellSyntaxError for a ``(`` at the end of the line or directly before ``)``."""
    items = list(tokens)
    for current, following in zip(items, items[1:] + [None]):
        if current.type is not TokenType.LPAREN:
            continue
        if following is None:
            raise ShellSyntaxError(current.value)
        if following.type is TokenType.RPAREN:
            raise ShellSyntaxError(following.value)


def run_line(state: ShellState, line: str) -> int:
    """Check, parse and execute one command line; return the resulting status.

    ShellExit raised by the ``exit`` builtin is left to the caller.
    """
    try:
        check_quotes(line)
        tokens = tokenize(line)
        check_parentheses(tokens)
        if not tokens:
            return state.status
        check_bad_tokens(tokens)
        tree = parse(tokens)
    except ParseError as exc:
        if exc.near is not None:
            _report(str(exc))
            state.status = exc.status
        return state.status
    except ShellSyntaxError as exc:
        _report(str(exc))
        state.status = exc.status
        return state.status
    return Executor(state).run(tree)


def _install_signals() -> dict[int, object]:
    previous = {}
    if hasattr(signal, "SIGQUIT"):
        previous[signal.SIGQUIT] = signal.signal(signal.SIGQUIT, signal.SIG_IGN)
    return previous


def _restore_signals(previous: dict[int, object]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def main(argv: list[str] | None = None) -> int:
    """Run the interactive shell until end of input or ``exit``; return the exit status."""
    del argv
    state = init_state(None)
    if sys.stdin.isatty():
        try:
            import readline  # noqa: F401  (enables line editing and history for input())
        except ImportError:
            pass
    previous = _install_signals()
    try:
        while True:
            try:
                line = input(PROMPT)
            except EOFError:
                sys.stdout.write("exit\n")
                sys.stdout.flush()
                return state.status
            except KeyboardInterrupt:
                sys.stdout.write("\n")
                sys.stdout.flush()
                state.status = 130
                continue
            try:
                run_line(state, line)
            except ShellExit as exc:
                return exc.status
            except KeyboardInterrupt:
                sys.stdout.write("\n")
                sys.stdout.flush()
                state.status = 130
    finally:
        _restore_signals(previous)


if __name__ == "__main__":
    sys.exit(main())