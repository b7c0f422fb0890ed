"""Redirections: here-documents, expansion of file names and opening the files."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import IO

from .args import expand_wildcard, join_args, split_args
from .expander import expand, expand_heredoc
from .parser import IOType, Node, Redirection
from .state import ShellState

_AMBIGUOUS = "neobash: $ : ambiguous redirect"
_NO_SUCH_FILE = "neobash: $: No such file or directory"
_PERMISSION = "neobash: $: Permission denied"


class RedirectionError(Exception):
    """A redirection could not be set up; ``message`` is what the shell reports."""

    def __init__(self, message: str, status: int = 1) -> None:
        self.message = message
        self.status = status
        super().__init__(message)


def format_error(template: str, subject: str | None) -> str:
    """Replace every ``$`` in ``template`` with ``subject``."""
    return template.replace("$", subject or "")


def is_delimiter(delimiter: str, line: str) -> bool:
    """True if ``line`` ends the here-document opened with ``delimiter``."""
    words = split_args(delimiter)
    return line == (words[0] if words else "")


def _prompt_lines() -> Iterator[str]:
    while True:
        try:
            yield input("> ")
        except EOFError:
            return


def read_heredoc(
    redirection: Redirection,
    state: ShellState,
    lines: Iterable[str] | None = None,
) -> str:
    """Read here-document lines up to the delimiter and store them on the redirection."""
    source = iter(lines) if lines is not None else _prompt_lines()
    delimiter = redirection.value
    if any(quote in delimiter for quote in "\"'"):
        state.heredoc_expand = False
    parts = []
    try:
        for line in source:
            line = line.rstrip("\n")
            if is_delimiter(delimiter, line):
                break
            if state.heredoc_expand:
                line = expand_heredoc(line, state)
            parts.append(line + "\n")
        state.status = 0
    except KeyboardInterrupt:
        state.status = 130
        state.heredoc_interrupted = True
    redirection.heredoc = "".join(parts)
    return redirection.heredoc


def _expand_target(value: str, state: ShellState) -> str | None:
    expanded = expand(value, state)
    words = split_args(expanded)
    if words:
        expanded = join_args(words)
    if expanded is None:
        return None
    result = expand_wildcard(expanded, ".")
    return result.strip(" ") if result is not None else None


def prepare_redirections(
    node: Node | None,
    state: ShellState,
    lines: Iterable[str] | None = None,
) -> None:
    """Read the node's here-documents and expand the names of its other redirections."""
    if node is None:
        return
    source = iter(lines) if lines is not None else None
    for redirection in node.redirections:
        if redirection.kind is IOType.HEREDOC:
            read_heredoc(redirection, state, source)
        else:
            redirection.expanded = _expand_target(redirection.value, state)


@dataclass
class Streams:
    """Files a command reads from and writes to; None means the inherited stream."""

    stdin: IO[bytes] | None = None
    stdout: IO[bytes] | None = None

    def close(self) -> None:
        for stream in (self.stdin, self.stdout):
            if stream is not None and not stream.closed:
                stream.close()

    def __enter__(self) -> Streams:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _check_target(redirection: Redirection) -> str:
    path = redirection.expanded
    if not path or len(split_args(path)) > 1:
        raise RedirectionError(format_error(_AMBIGUOUS, redirection.value))
    return path


def _read_problem(path: str) -> str:
    if os.path.exists(path):
        if not os.access(path, os.R_OK):
            return format_error(_PERMISSION, path)
        return ""
    return format_error(_NO_SUCH_FILE, path)


def _write_problem(path: str) -> str:
    messages = []
    if not path or "/" in path:
        messages.append(format_error(_NO_SUCH_FILE, path))
    if os.path.exists(path) and not os.access(path, os.W_OK):
        messages.append(format_error(_PERMISSION, path))
    return "\n".join(messages)


def _open_read(path: str) -> IO[bytes]:
    try:
        return open(path, "rb")
    except OSError:
        raise RedirectionError(_read_problem(path)) from None


def _open_write(path: str, append: bool) -> IO[bytes]:
    flags = os.O_CREAT | os.O_WRONLY | (os.O_APPEND if append else os.O_TRUNC)
    try:
        fd = os.open(path, flags, 0o644)
    except OSError:
        raise RedirectionError(_write_problem(path)) from None
    return os.fdopen(fd, "ab" if append else "wb")


def _heredoc_stream(content: str | None) -> IO[bytes]:
    stream = tempfile.TemporaryFile("w+b")
    stream.write((content or "").encode())
    stream.seek(0)
    return stream


def open_redirections(node: Node) -> Streams:
    """Open the node's redirections in order; later ones replace earlier ones."""
    streams = Streams()
    try:
        for redirection in node.redirections:
            if redirection.kind is IOType.HEREDOC:
                new_in = _heredoc_stream(redirection.heredoc)
                if streams.stdin is not None:
                    streams.stdin.close()
                streams.stdin = new_in
                continue
            path = _check_target(redirection)
            if redirection.kind is IOType.IN:
                new_in = _open_read(path)
                if streams.stdin is not None:
                    streams.stdin.close()
                streams.stdin = new_in
            else:
                new_out = _open_write(path, redirection.kind is IOType.APPEND)
                if streams.stdout is not None:
                    streams.stdout.close()
                streams.stdout = new_out
    except BaseException:
        streams.close()
        raise
    return streams