# neoshell

A small interactive command shell. It reads a line at the `neoshell->$ `
prompt, splits it into tokens, parses it into a command tree and runs it.

## Features

- Simple commands looked up along `PATH`, or given by a path starting with
  `.` or `/`; a command that is not found gives status 127, a directory
  gives status 126
- Pipes (`|`), `&&` and `||`; parenthesised groups run on a copy of the
  shell state, so `cd` or `export` inside them does not affect the shell
- Redirections: `<`, `>`, `>>` and here-documents (`<<`); a quoted
  delimiter turns off expansion inside the here-document
- Expansion of `$NAME` and `$?`; `$$` is left as it is; single quotes keep
  text literal
- `*` wildcards matched against the names in the current directory (names
  starting with `.` are skipped); a pattern with no match is kept unchanged
- Builtins: `cd`, `echo` (with `-n`), `env`, `export`, `unset`, `pwd`, `exit`
- `SHLVL` is raised on start and lowered again by `exit`

Syntax errors, such as an unclosed quote, a stray `;`, `&`, `\` or
backtick, or an empty pair of parentheses, are reported and set the status
to 2.

## Installing

```
pip install .
```

## Running

```
neoshell
```

Type commands at the prompt. End input with Ctrl-D, or use `exit [status]`.

```
neoshell->$ export GREETING=hello
neoshell->$ echo "$GREETING world" | tr a-z A-Z
HELLO WORLD
neoshell->$ ls *.py && echo found || echo none
neoshell->$ cat << EOF > notes.txt
> written via a here-document
> EOF
```

## Using it from Python

The modules can be used on their own:

- `neoshell.lexer`: `tokenize`, `split_line`, `classify`, `check_quotes`,
  `Token`, `TokenType`, `ShellSyntaxError`
- `neoshell.parser`: `parse`, `Parser`, `Node`, `NodeType`, `Redirection`,
  `IOType`, `ParseError`
- `neoshell.expander`: `expand`, `expand_heredoc`
- `neoshell.args`: `split_args`, `join_args`, `match_pattern`,
  `expand_wildcard`, `expand_wildcards`
- `neoshell.state`: `ShellState`, `Environment`, `EnvVar`
- `neoshell.builtins`, `neoshell.export`: the builtin commands
- `neoshell.redirections`: here-documents and opening redirection targets
- `neoshell.executor`: `Executor`, which runs a parsed tree
- `neoshell.cli`: `init_state`, `run_line`, `main`

```python
from neoshell.lexer import tokenize
from neoshell.parser import parse
from neoshell.cli import init_state, run_line

tree = parse(tokenize("echo hi | wc -c"))

state = init_state({"PATH": "/usr/bin:/bin", "HOME": "/tmp"})
run_line(state, "echo $HOME")
```

`run_line` returns the command's status; the `exit` builtin raises
`neoshell.builtins.ShellExit`, which carries the status.

## What it does not do

- There is no `;` to run commands one after another, no backtick or `$(...)`
  command substitution, and no job control or `&` background commands.
- Variables are set only with `export`; `NAME=value` on its own is run as a
  command.
- `neoshell` takes no script file or `-c` option: it always reads commands
  line by line from standard input.
- History is kept only for the session, when line editing is available.

## Running the tests

```
pip install .[test]
pytest
```