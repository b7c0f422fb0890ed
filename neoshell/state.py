"""Shell state: the environment variable list and the values shared between commands."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field


@dataclass
class EnvVar:
    """One environment variable; invisible ones are declared but have no value yet."""

    key: str
    value: str = ""
    visible: bool = True

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


class Environment:
    """Ordered collection of environment variables."""

    def __init__(self, entries: Iterable[EnvVar] = ()) -> None:
        self._vars: list[EnvVar] = list(entries)

    @classmethod
    def from_strings(cls, strings: Iterable[str]) -> Environment:
        """Build an environment from ``KEY=VALUE`` strings, keeping their order."""
        entries = []
        for text in strings:
            key, _, value = text.partition("=")
            entries.append(EnvVar(key, value))
        return cls(entries)

    def _find(self, key: str) -> EnvVar | None:
        return next((var for var in self._vars if var.key == key), None)

    def get(self, key: str) -> str | None:
        """Return the value of ``key``, or None if it is not defined."""
        var = self._find(key)
        return var.value if var is not None else None

    def update(self, key: str, value: str | None) -> None:
        """Set an existing variable and make it visible; unknown keys and None are ignored."""
        var = self._find(key)
        if var is not None and value is not None:
            var.value = value
            var.visible = True

    def add(self, key: str, value: str | None) -> None:
        """Append a variable; without a value it is declared but hidden from ``env``."""
        if value is None:
            self._vars.append(EnvVar(key, "", visible=False))
        else:
            self._vars.append(EnvVar(key, value, visible=True))

    def contains(self, key: str) -> bool:
        return self._find(key) is not None

    def unset(self, names: Iterable[str]) -> None:
        """Remove the named variables; ``_`` is never removed."""
        targets = set(names) - {"_"}
        self._vars = [var for var in self._vars if var.key not in targets]

    def visible_lines(self) -> list[str]:
        """The ``KEY=VALUE`` lines that ``env`` prints."""
        return [str(var) for var in self._vars if var.visible]

    def to_envp(self) -> dict[str, str]:
        """Mapping handed to child processes, including declared variables."""
        return {var.key: var.value for var in self._vars}

    def __iter__(self) -> Iterator[EnvVar]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)


@dataclass
class ShellState:
    """Everything the shell carries from one command line to the next."""

    env: Environment = field(default_factory=Environment)
    status: int = 0
    level: int = 0
    last_args: list[str] = field(default_factory=list)
    heredoc_expand: bool = True
    heredoc_interrupted: bool = False

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> ShellState:
        """Create a state whose environment is a copy of ``environ`` (the process one by default)."""
        if environ is None:
            environ = os.environ
        return cls(env=Environment(EnvVar(k, v) for k, v in environ.items()))