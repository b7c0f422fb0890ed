"""Builtin commands: cd, echo, exit, pwd, unset and env."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import TextIO

from .expander import expand
from .state import ShellState

_SPACES = "\t\n\v\f\r "
_LONG_MAX = "9223372036854775807"
_LONG_MIN = "-9223372036854775808"


class ShellExit(Exception):
    """Raised by ``exit``: the shell should stop with ``status``."""

    def __init__(self, status: int) -> None:
        self.status = status & 0xFF
        super().__init__(f"exit {self.status}")


def _skip_blanks(text: str) -> int:
    """Number of leading spaces, or 0 when the text is only spaces."""
    count = len(text) - len(text.lstrip(" "))
    return 0 if count == len(text) else count


def _update_pwd(state: ShellState) -> None:
    try:
        cwd = os.getcwd()
    except OSError:
        return
    state.env.update("PWD", cwd)


def cd(state: ShellState, args: Sequence[str], err: TextIO) -> int:
    """Change the working directory; ``args`` starts with the command name."""
    env = state.env
    if len(args) > 2:
        err.write("neobash: cd: too many arguments\n")
        return 1
    if len(args) < 2:
        home = expand("$HOME", state) or ""
        if len(home) <= 1:
            err.write("cd: HOME not set\n")
            return 1
        try:
            os.chdir(home)
        except OSError:
            pass
        env.update("OLDPWD", env.get("PWD"))
        _update_pwd(state)
        return 0
    try:
        os.chdir(args[1])
    except OSError:
        err.write("cd: No such file or directory\n")
        return 1
    previous = env.get("PWD")
    env.update("OLDPWD", " " if previous is None else previous)
    _update_pwd(state)
    return 0


def echo_option_length(text: str) -> int:
    """Length of a leading ``-n`` style option (quotes allowed), or 0 if there is none."""
    pos = 0
    size = len(text)
    while pos < size and text[pos] in "'\"":
        pos += 1
    if pos >= size or text[pos] != "-":
        return 0
    pos += 1
    while pos < size and text[pos] in "n\"'":
        pos += 1
    if pos >= size or text[pos] == " ":
        return pos
    return 0


def echo(text: str, out: TextIO) -> int:
    """Print the text after ``echo``, dropping quotes; ``-n`` suppresses the newline."""
    pos = 0
    while pos < len(text) and text[pos] in _SPACES:
        pos += 1
    if pos >= len(text):
        out.write("\n")
        return 0
    newline = True
    while True:
        length = echo_option_length(text[pos:])
        if not length:
            break
        newline = False
        pos += length
        pos += _skip_blanks(text[pos:])
    if pos == 0:
        return 0
    single = double = False
    chars = []
    for char in text[pos:]:
        if char == '"' and not single:
            double = not double
        elif char == "'" and not double:
            single = not single
        else:
            chars.append(char)
    out.write("".join(chars))
    if newline:
        out.write("\n")
    return 0


def out_of_range(text: str) -> bool:
    """True if a numeric argument does not fit in a signed 64-bit integer."""
    if text.startswith("-"):
        digits = len(text) - 1
        if digits > 19:
            return True
        return digits == 19 and text > _LONG_MIN
    if text.startswith("+"):
        text = text[1:]
    if len(text) > 19:
        return True
    return len(text) == 19 and text > _LONG_MAX


def _atoi(text: str) -> int:
    sign = -1 if text.startswith("-") else 1
    digits = text[1:] if text[:1] in "+-" else text
    value = sign * int(digits) if digits else 0
    return ((value + 2**31) % 2**32) - 2**31


def exit_shell(state: ShellState, args: Sequence[str], out: TextIO, err: TextIO) -> int:
    """Run ``exit``: raise ShellExit, or return 1 when given too many arguments."""
    if state.level > 1:
        state.level -= 1
        state.env.update("SHLVL", str(state.level))
    if len(args) <= 1:
        out.write("exit\n")
        raise ShellExit(state.status)
    if len(args) > 2:
        err.write("exit\nneobash: exit: too many arguments\n")
        state.status = 1
        return 1
    word = args[1]
    start = 1 if word[:1] in "+-" else 0
    numeric = all(char.isascii() and char.isdigit() for char in word[start:])
    if not numeric:
        err.write("exit: numeric argument required\n")
        state.status = 2
    else:
        state.status = _atoi(word)
    if out_of_range(word):
        out.write("exit\n")
        raise ShellExit(2)
    raise ShellExit(state.status)


def pwd(state: ShellState, args: Sequence[str], out: TextIO) -> int:
    """Print the working directory; any option is rejected with status 2."""
    if len(args) > 1:
        option = args[1]
        dash = option.find("-")
        if dash != -1:
            out.write(f"bash: pwd: '{option[dash:]}': invalid option\n")
            state.status = 2
            return 2
    out.write(os.getcwd() + "\n")
    return 0


def unset(state: ShellState, args: Sequence[str]) -> int:
    """Remove the named variables from the environment."""
    if len(args) > 1:
        state.env.unset(args[1:])
    return 0


def env_command(state: ShellState, out: TextIO) -> int:
    """Print the visible environment variables."""
    for line in state.env.visible_lines():
        out.write(line + "\n")
    return 0