"""Input and output redirections of a command."""

from __future__ import annotations

import contextlib
import os
from dataclasses import dataclass
from typing import BinaryIO, Iterable

from spaghetti.lexer import Token, TokenType

_QUOTES = "'\""


class RedirectionError(Exception):
    """A redirection could not be set up."""


@dataclass(frozen=True)
class Redirection:
    """Where one of the standard streams of a command goes.

    ``fd`` is 0 for input and 1 for output; ``append`` applies to output.
    """

    fd: int
    path: str
    append: bool = False


def strip_quotes(text: str) -> str:
    """Drop the first and last character when the text starts with a quote."""
    if text[:1] and text[0] in _QUOTES:
        return text[1:-1]
    return text


def parse_redirection(spec: str) -> Redirection:
    """Turn ``>file``, ``>>file``, ``<file`` or a here-document file name into a Redirection."""
    if spec.startswith(">"):
        target = spec.lstrip(">")
        count = len(spec) - len(target)
        if count > 2:
            raise RedirectionError(f"redirection: invalid operator '{spec[:count]}'")
        return Redirection(1, strip_quotes(target), append=count == 2)
    if spec.startswith("<"):
        return Redirection(0, strip_quotes(spec.lstrip("<")))
    return Redirection(0, spec)


def collect_redirections(tokens: Iterable[Token]) -> list[str]:
    """Return the texts of the redirection tokens, in order."""
    return [token.text for token in tokens if token.type is TokenType.REDIREC]


def _create(path: str, flags: int) -> int:
    return os.open(path, flags, 0o777)


def _open(redirection: Redirection) -> BinaryIO:
    if redirection.fd == 0:
        return open(redirection.path, "rb")
    if redirection.append:
        return open(redirection.path, "ab", opener=_create)
    with contextlib.suppress(OSError):
        os.unlink(redirection.path)
    return open(redirection.path, "wb", opener=_create)


def open_redirections(specs: Iterable[str], stack: contextlib.ExitStack) -> dict[int, BinaryIO]:
    """Open every redirection in order and return the stream each fd ends up with.

    Files are registered on ``stack`` for closing. A later redirection of the
    same fd wins; the first failure stops the rest and raises RedirectionError.
    """
    streams: dict[int, BinaryIO] = {}
    for spec in specs:
        redirection = parse_redirection(spec)
        try:
            streams[redirection.fd] = stack.enter_context(_open(redirection))
        except OSError as error:
            raise RedirectionError(f"redirection: {error.strerror or error}") from error
    return streams