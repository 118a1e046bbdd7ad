"""The shell's environment: an ordered list of ``NAME`` or ``NAME=value`` entries."""

from __future__ import annotations

import os
from typing import Iterable


def _matches(name: str, entry: str) -> bool:
    """Tell whether ``entry`` defines ``name``, with or without a value."""
    if not entry.startswith(name):
        return False
    rest = entry[len(name):]
    return rest == "" or rest.startswith("=")


class Environment:
    """Ordered environment entries as the shell keeps them.

    An entry is either ``NAME=value`` (exported with a value) or a bare
    ``NAME`` (declared without a value).
    """

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._entries: list[str] = list(entries)

    @classmethod
    def from_os(cls) -> "Environment":
        """Build an environment from the process environment."""
        return cls(f"{key}={value}" for key, value in os.environ.items())

    def get(self, name: str) -> str | None:
        """Return the whole entry defining ``name``, or None."""
        return next((entry for entry in self._entries if _matches(name, entry)), None)

    def value(self, name: str) -> str | None:
        """Return the value of ``name``, or None when unset or declared without one."""
        prefix = name + "="
        for entry in self._entries:
            if entry.startswith(prefix):
                return entry[len(prefix):]
        return None

    def add(self, name: str, value: str | None) -> None:
        """Append a new entry; a None value declares the name without one."""
        self._entries.append(name if value is None else f"{name}={value}")

    def edit(self, name: str, value: str | None) -> None:
        """Replace the entry for ``name`` with a new one at the end."""
        self.delete(name)
        self.add(name, value)

    def append(self, name: str, value: str) -> None:
        """Append ``value`` to the existing value of ``name``; missing names are ignored."""
        for position, entry in enumerate(self._entries):
            if _matches(name, entry):
                if entry == name:
                    self._entries[position] = f"{entry}={value}"
                else:
                    self._entries[position] = entry + value
                return

    def delete(self, name: str) -> None:
        """Remove the last entry defining ``name``, keeping the others in order."""
        for position in range(len(self._entries) - 1, -1, -1):
            if _matches(name, self._entries[position]):
                del self._entries[position]
                return

    def entries(self) -> list[str]:
        """Return a copy of the entries in order."""
        return list(self._entries)

    def to_dict(self) -> dict[str, str]:
        """Return the entries that carry a value, as a mapping for child processes."""
        result: dict[str, str] = {}
        for entry in self._entries:
            name, sep, value = entry.partition("=")
            if sep:
                result[name] = value
        return result

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None