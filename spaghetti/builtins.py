"""Commands the shell runs itself instead of starting a program."""

from __future__ import annotations

import os
import re
from typing import Sequence, TextIO

from spaghetti.environment import Environment

_BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(=|\+=|$)")
_NUMBER = re.compile(r"[+-]?[0-9]+")


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``code``."""

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code & 0xFF


def is_builtin(name: str | None) -> bool:
    """Tell whether ``name`` is one of the shell's own commands."""
    return name in _BUILTINS


def is_echo_flag(arg: str) -> bool:
    """Tell whether ``arg`` is an ``-n`` option (a dash followed only by n's)."""
    return len(arg) > 1 and arg[0] == "-" and set(arg[1:]) == {"n"}


def is_valid_identifier(name: str) -> bool:
    """Tell whether ``name`` starts with a valid variable name followed by ``=``, ``+=`` or nothing."""
    return _IDENTIFIER.match(name) is not None


def split_assignment(arg: str) -> tuple[str, str | None, bool, bool]:
    """Split an ``export`` argument into ``(name, value, append, has_equals)``.

    ``NAME+=value`` sets ``append``; an empty or missing value is None.
    """
    position = arg.find("=", 1)
    has_equals = position != -1
    if not has_equals:
        position = len(arg)
    name = arg[:position]
    value = arg[position + 1:] or None
    append = name.endswith("+")
    if append:
        name = name[:-1]
    return name, value, append, has_equals


def sorted_declarations(entries: Sequence[str]) -> list[str]:
    """Return ``declare -x`` lines for the non-empty entries, sorted."""
    return [f"declare -x {entry}" for entry in sorted(entries) if entry]


def echo(args: Sequence[str], out: TextIO) -> int:
    """Print the arguments separated by spaces; leading ``-n`` options drop the newline."""
    words = list(args)
    newline = True
    while words and is_echo_flag(words[0]):
        newline = False
        words.pop(0)
    out.write(" ".join(words))
    if newline:
        out.write("\n")
    return 0


def _current_directory() -> str:
    try:
        return os.getcwd()
    except OSError:
        return ""


def cd(args: Sequence[str], env: Environment, err: TextIO) -> int:
    """Change directory to the first argument or to HOME, updating PWD and OLDPWD."""
    oldpwd = _current_directory()
    if args:
        target, label = args[0], "Directory"
    else:
        home = env.value("HOME")
        if home is None:
            err.write("Home: HOME not set\n")
            return 1
        target, label = home, "HOME"
    try:
        os.chdir(target)
    except OSError as error:
        err.write(f"{label}: {error.strerror or error}\n")
        return 1
    env.edit("PWD", _current_directory())
    env.edit("OLDPWD", oldpwd)
    return 0


def pwd(out: TextIO) -> int:
    """Print the current directory."""
    out.write(_current_directory() + "\n")
    return 0


def _export_one(arg: str, env: Environment) -> None:
    name, value, append, has_equals = split_assignment(arg)
    if env.get(name) is None:
        env.add(name, value)
    elif value is None:
        if has_equals and not append:
            env.edit(name, "")
    elif append:
        env.append(name, value)
    elif has_equals:
        env.edit(name, value)


def export(args: Sequence[str], env: Environment, out: TextIO, err: TextIO) -> int:
    """Set or declare variables; without arguments list them sorted."""
    if len(env) == 0:
        err.write("export: No such file or directory\n")
        return 1
    if not args:
        for line in sorted_declarations(env.entries()):
            out.write(line + "\n")
        return 0
    status = 0
    for arg in args:
        if not is_valid_identifier(arg):
            err.write("export: invalid identifier\n")
            status = 1
            continue
        _export_one(arg, env)
    return status


def unset(args: Sequence[str], env: Environment, err: TextIO) -> int:
    """Remove the named variables."""
    if len(env) == 0:
        err.write("Unset: Invalid file.\n")
        return 1
    status = 0
    for arg in args:
        if is_valid_identifier(arg):
            if env.get(arg) is not None:
                env.delete(arg)
        else:
            err.write("Unset: Invalid identifier.\n")
            status = 1
    return status


def env_command(env: Environment, out: TextIO) -> int:
    """Print the entries that carry a value."""
    for entry in env.entries():
        if "=" in entry:
            out.write(entry + "\n")
    return 0


def exit_command(args: Sequence[str], status: int, err: TextIO) -> int:
    """End the shell by raising ShellExit; too many arguments returns 1 instead."""
    if not args:
        raise ShellExit(status)
    if len(args) > 1:
        err.write("too many arguments\n")
        return 1
    if _NUMBER.fullmatch(args[0]):
        raise ShellExit(int(args[0]))
    err.write("Numeric argument required\n")
    raise ShellExit(255)


def run_builtin(
    argv: Sequence[str],
    env: Environment,
    status: int,
    out: TextIO,
    err: TextIO,
) -> int:
    """Run the builtin named by ``argv[0]`` and return its exit status."""
    if not argv or not is_builtin(argv[0]):
        raise ValueError(f"not a builtin: {argv[0] if argv else ''!r}")
    name, args = argv[0], list(argv[1:])
    if name == "echo":
        return echo(args, out)
    if name == "cd":
        return cd(args, env, err)
    if name == "pwd":
        return pwd(out)
    if name == "export":
        return export(args, env, out, err)
    if name == "unset":
        return unset(args, env, err)
    if name == "env":
        return env_command(env, out)
    return exit_command(args, status, err)