"""Finding the program a command name refers to."""

from __future__ import annotations

import os

from spaghetti.environment import Environment


class CommandNotFound(Exception):
    """No executable file matches the command name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"shell: {name}: command not found")
        self.name = name


def is_path(name: str) -> bool:
    """Tell whether the name is a path (it contains a slash) rather than a bare name."""
    return "/" in name


def find_in_path(name: str, search_path: str | None) -> str | None:
    """Return the first executable ``dir/name`` over the colon-separated directories."""
    if search_path is None:
        return None
    for directory in filter(None, search_path.split(":")):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


def resolve_command(name: str, env: Environment) -> str:
    """Return the executable for ``name``, looking it up in PATH unless it is a path."""
    path = name if is_path(name) else find_in_path(name, env.value("PATH"))
    if not path or not os.access(path, os.X_OK):
        raise CommandNotFound(name)
    return path