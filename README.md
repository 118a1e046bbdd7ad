# spaghetti

A small interactive command shell for POSIX systems. It reads a line,
splits it into words, expands variables, runs pipelines of external
programs and a handful of builtins, and keeps going until end of input or
`exit`.

## Installing

```
pip install .
```

There are no dependencies outside the standard library.

## Starting the shell

```
spaghetti
```

The prompt is `<user>@spaghetti % `, taken from the `USER` variable, or
`trial@spaghetti % ` when `USER` is not set. Line editing and history come
from the `readline` module when Python has it. Ctrl-D leaves the shell with
status 0; Ctrl-C at the prompt starts a fresh line and Ctrl-\ is ignored
there. While a program runs, the shell itself ignores both keys so that
they reach the program.

## Command-line syntax

- **Words** are separated by spaces; a run of spaces is one separator.
  Pieces written next to each other (`a"b"'c'`) form one word.
- **Single quotes** keep their text literally. **Double quotes** keep their
  text together and still expand variables. A line with an unclosed quote
  prints `error: unclosed quotes` and is not run.
- **Variables**: `$NAME` expands to the variable's value, or to nothing when
  it is unset or declared without a value. A name runs until a space, a
  quote, `|`, `<`, `>` or another `$` — so `$HOME/bin` looks up a variable
  called `HOME/bin`. `$?` is the status of the last command, `$$` expands
  to a fixed placeholder text rather than a process id, and a `$` at the end
  of a word stays as it is.
- **Pipelines**: `ls | grep py | wc -l`. A pipe with nothing before or after
  it prints `Syntax error near '|'`.
- **Redirections**: `<file` reads input, `>file` replaces the file,
  `>>file` appends to it. Space after the operator is allowed. Three or more
  angle brackets, or an operator with no file name, is a syntax error. When
  several redirections name the same stream, the last one wins.
- **Here-documents**: `<<END` prompts with `> ` and reads lines until one
  equals `END` (or input ends), then feeds them to the command. Lines are
  expanded unless the delimiter is quoted, as in `<<'END'`. The text is
  kept in a file named `shell_oaoa_<number>` in the system temporary
  directory.

## Builtins

| Command  | What it does |
|----------|--------------|
| `echo`   | Prints its arguments separated by spaces; leading `-n` options (`-n`, `-nnn`) drop the newline. |
| `cd`     | Changes directory, to `$HOME` with no argument, and sets `PWD` and `OLDPWD`. |
| `pwd`    | Prints the working directory. |
| `export` | `NAME=value` sets, `NAME+=more` appends, `NAME` declares without a value; with no arguments prints every entry sorted as `declare -x NAME=value`. Invalid names print `export: invalid identifier` and give status 1. |
| `unset`  | Removes variables; invalid names give status 1. |
| `env`    | Prints every variable that has a value. |
| `exit`   | Leaves the shell with the given number (taken modulo 256), or with the last status. A non-numeric argument prints `Numeric argument required` and exits with 255; more than one argument prints `too many arguments` and does not exit. |

A builtin that is one stage of a pipeline works on a copy of the
environment, so `cd` or `export` there does not change the shell, and
`exit` there only sets that stage's status.

Any other command is looked up in the directories of `PATH` unless its
name contains a `/`. A command that cannot be found prints
`shell: NAME: command not found` and sets the status to 127. A program
killed by signal N sets the status to 128 + N.

## What the shell does not do

There are no command lists or conditionals (`;`, `&&`, `||`), no background
jobs or job control, no globbing, no backslash escapes, no subshells or
command substitution, and no redirection of standard error. Here-document
files are left in the temporary directory after use. There is no way to run
a script file; the shell only reads lines interactively from standard input.

## Using it from Python

```python
from spaghetti.environment import Environment
from spaghetti.shell import Shell

shell = Shell(Environment.from_os(), "demo % ")
status = shell.run_line("echo hello | tr a-z A-Z")
```

`Shell.run_line` returns the new status and raises
`spaghetti.builtins.ShellExit` when the line runs `exit`; `Shell.loop` runs
the interactive loop and returns the exit code.

The parts can be used on their own:

- `spaghetti.lexer.tokenize` splits a line into `Token`s.
- `spaghetti.parser.parse` builds a tree of `Command` and `Pipe` nodes and
  raises `ParseError` on bad syntax; `command_words` turns a command's
  tokens into argument words.
- `spaghetti.expander.expand` performs variable expansion against an
  `Environment`.
- `spaghetti.environment.Environment` holds the ordered `NAME` /
  `NAME=value` entries.
- `spaghetti.executor.execute` runs a parsed tree against a `ShellState`
  (environment, last status, output streams).

## Running the tests

```
pip install ".[test]"
pytest
```