"""Running a parsed command tree: commands, builtins, pipes, ``&&`` and ``||``."""

from __future__ import annotations

import copy
import io
import os
import subprocess
import sys
import threading
from collections.abc import Callable, Iterable
from typing import IO

from .args import expand_wildcards, split_args, split_keep_quotes
from .builtins import ShellExit, cd, echo, env_command, exit_shell, pwd, unset
from .expander import expand
from .export import export
from .parser import Node, NodeType
from .redirections import (
    RedirectionError,
    Streams,
    format_error,
    open_redirections,
    prepare_redirections,
)
from .state import Environment, ShellState

BUILTINS = frozenset({"cd", "env", "exit", "pwd", "unset", "echo", "export"})
_OPERATORS = (NodeType.PIPE, NodeType.AND, NodeType.OR)


def is_builtin(name: str | None) -> bool:
    """True if ``name`` is one of the shell's own commands."""
    return bool(name) and name in BUILTINS


def search_paths(env: Environment) -> list[str] | None:
    """The directories listed in the first variable whose entry starts with ``PATH``."""
    for var in env:
        entry = str(var)
        if entry.startswith("PATH"):
            return [path for path in entry[5:].split(":") if path]
    return None


def find_command(paths: Iterable[str] | None, name: str | None) -> str | None:
    """Locate an executable: explicit ``./`` or ``/`` paths as given, others in ``paths``."""
    if not name:
        return None
    if name[0] in "./":
        return name if os.access(name, os.X_OK) else None
    if paths is None:
        return None
    for directory in paths:
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


class Executor:
    """Executes command trees against a shell state."""

    def __init__(self, state: ShellState, heredoc_lines: Iterable[str] | None = None) -> None:
        self.state = state
        self._lines = iter(heredoc_lines) if heredoc_lines is not None else None
        self.err: IO[str] = sys.stderr

    # -- entry points -------------------------------------------------------

    def run(self, tree: Node | None) -> int:
        """Read here-documents, then execute the tree; the status is stored and returned."""
        if tree is None:
            return self.state.status
        self._prepare(tree)
        if self.state.heredoc_interrupted:
            self.state.status = 130
            self.state.heredoc_interrupted = False
            return 130
        status = self.execute(tree)
        self.state.status = status
        return status

    def execute(
        self,
        node: Node | None,
        stdin: IO[bytes] | None = None,
        stdout: IO[bytes] | None = None,
    ) -> int:
        """Execute one node with the given streams (None means the inherited one)."""
        if node is None:
            return 0
        if node.type is NodeType.PIPE:
            return self._pipe(node, stdin, stdout)
        if node.type is NodeType.AND:
            return self._logical(node, stdin, stdout, on_success=True)
        if node.type is NodeType.OR:
            return self._logical(node, stdin, stdout, on_success=False)
        words = split_args(node.args)
        if node.is_block and node.args and words and is_builtin(words[0]):
            return self._in_subshell(lambda sub: sub._command(node, stdin, stdout))
        return self._command(node, stdin, stdout)

    # -- helpers ------------------------------------------------------------

    def _report(self, message: str) -> None:
        if message:
            self.err.write(message + "\n")
            self.err.flush()

    def _prepare(self, node: Node | None) -> None:
        if node is None:
            return
        if node.type in _OPERATORS:
            self._prepare(node.left)
            self._prepare(node.right)
        else:
            prepare_redirections(node, self.state, self._lines)

    def _in_subshell(self, action: Callable[[Executor], int]) -> int:
        sub = Executor(copy.deepcopy(self.state))
        sub._lines = self._lines
        sub.err = self.err
        try:
            cwd = os.getcwd()
        except OSError:
            cwd = None
        try:
            return action(sub)
        except ShellExit as exc:
            return exc.status
        finally:
            if cwd is not None:
                try:
                    os.chdir(cwd)
                except OSError:
                    pass

    def _block_streams(self, node: Node) -> Streams:
        if not node.redirections:
            return Streams()
        prepare_redirections(node, self.state, self._lines)
        return open_redirections(node)

    # -- operators ----------------------------------------------------------

    def _logical(self, node: Node, stdin, stdout, on_success: bool) -> int:
        def body(executor: Executor, inp, out) -> int:
            status = executor.execute(node.left, inp, out)
            executor.state.status = status
            if (status == 0) == on_success:
                status = executor.execute(node.right, inp, out)
            return status

        if not node.is_block:
            return body(self, stdin, stdout)
        try:
            streams = self._block_streams(node)
        except RedirectionError as exc:
            self._report(exc.message)
            return exc.status
        with streams:
            inp = streams.stdin or stdin
            out = streams.stdout or stdout
            status = self._in_subshell(lambda sub: body(sub, inp, out))
        self.state.status = status
        return status

    def _pipe(self, node: Node, stdin, stdout) -> int:
        try:
            streams = self._block_streams(node)
        except RedirectionError as exc:
            self._report(exc.message)
            return exc.status
        with streams:
            status = self._connect(node, streams.stdin or stdin, streams.stdout or stdout)
        self.state.status = status
        return status

    def _connect(self, node: Node, stdin, stdout) -> int:
        read_fd, write_fd = os.pipe()
        writer = os.fdopen(write_fd, "wb")
        reader = os.fdopen(read_fd, "rb")

        def left_side() -> None:
            try:
                self._in_subshell(lambda sub: sub.execute(node.left, stdin, writer))
            except OSError:
                pass
            finally:
                try:
                    writer.close()
                except OSError:
                    pass

        thread = threading.Thread(target=left_side, daemon=True)
        thread.start()
        try:
            status = self._in_subshell(lambda sub: sub.execute(node.right, reader, stdout))
        finally:
            reader.close()
            thread.join()
        return status

    # -- simple commands ----------------------------------------------------

    def _command(self, node: Node, stdin, stdout) -> int:
        if node.args is None:
            try:
                with open_redirections(node):
                    pass
            except RedirectionError as exc:
                self._report(exc.message)
                return exc.status
            return 0
        expanded = expand(node.args, self.state)
        line = expand_wildcards(expanded)
        argv = split_args(line)
        if not argv:
            return 0
        self.state.last_args = argv
        if is_builtin(argv[0]):
            try:
                streams = open_redirections(node)
            except RedirectionError as exc:
                self._report(exc.message)
                return exc.status
            with streams:
                first = split_keep_quotes(expanded)
                text = (line or "")[len(first[0]) if first else 0:]
                return self._builtin(argv, text, streams.stdout or stdout)
        return self._external(node, argv, stdin, stdout)

    def _emit(self, text: str, stdout: IO[bytes] | None) -> None:
        if not text:
            return
        if stdout is None:
            sys.stdout.write(text)
            sys.stdout.flush()
        else:
            stdout.write(text.encode())
            stdout.flush()

    def _builtin(self, argv: list[str], text: str, stdout) -> int:
        out = io.StringIO()
        state = self.state
        name = argv[0]
        try:
            if name == "cd":
                return cd(state, argv, self.err)
            if name == "env":
                return env_command(state, out)
            if name == "exit":
                return exit_shell(state, argv, out, self.err)
            if name == "pwd":
                return pwd(state, argv, out)
            if name == "unset":
                return unset(state, argv)
            if name == "echo":
                return echo(text, out)
            if name == "export":
                return export(state, text, out)
            return 1
        finally:
            self._emit(out.getvalue(), stdout)

    def _external(self, node: Node, argv: list[str], stdin, stdout) -> int:
        env = self.state.env
        path = find_command(search_paths(env), argv[0])
        if path is not None and os.path.isdir(path):
            self._report(format_error("neobash: $: Is a directory", path))
            return 126
        env.update("_", argv[-1])
        try:
            streams = open_redirections(node)
        except RedirectionError as exc:
            self._report(exc.message)
            return exc.status
        with streams:
            if path is None:
                self._report(format_error("neobash: command not found: $", argv[0]))
                return 127
            status = self._spawn(path, argv, streams.stdin or stdin, streams.stdout or stdout)
        if status == 130:
            self._emit("\n", None)
        elif status == 131:
            self._report("Quit (core dumped)")
        return status

    def _spawn(self, path: str, argv: list[str], stdin, stdout) -> int:
        sys.stdout.flush()
        sys.stderr.flush()
        if stdout is not None:
            stdout.flush()
        try:
            process = subprocess.Popen(
                argv,
                executable=path,
                env=self.state.env.to_envp(),
                stdin=stdin,
                stdout=stdout,
            )
        except OSError as exc:
            self._report(f"execve: {exc.strerror}")
            return 1
        while True:
            try:
                code = process.wait()
                break
            except KeyboardInterrupt:
                continue
        return 128 - code if code < 0 else code