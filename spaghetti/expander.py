"""Expansion of ``$NAME``, ``$?`` and ``$$`` inside words."""

from __future__ import annotations

from typing import Iterable, Iterator

from spaghetti.environment import Environment
from spaghetti.lexer import Token, TokenType, is_token_char

# The shell has no way to report its process id; ``$$`` expands to this.
_PID_PLACEHOLDER = "ma3arefch "

_EXPANDED_TYPES = (TokenType.ARG, TokenType.DARG)


def _variable(text: str, pos: int, env: Environment, status: int) -> tuple[str, int]:
    """Expand the variable whose ``$`` sits at ``pos``; return it and the next position."""
    pos += 1
    if pos >= len(text):
        return "$", pos
    c = text[pos]
    if c == "$":
        return _PID_PLACEHOLDER, pos + 1
    if c == "?":
        return str(status), pos + 1
    end = pos + 1
    while end < len(text) and not is_token_char(text[end]) and text[end] != "$":
        end += 1
    return env.value(text[pos:end]) or "", end


def _pieces(text: str, env: Environment, status: int) -> Iterator[str]:
    pos = 0
    while pos < len(text):
        if text[pos] == "$":
            piece, pos = _variable(text, pos, env, status)
            yield piece
            continue
        end = text.find("$", pos + 1)
        if end == -1:
            end = len(text)
        yield text[pos:end]
        pos = end


def expand(text: str, env: Environment, status: int = 0) -> str:
    """Return ``text`` with every variable reference replaced by its value.

    A variable name runs until a quote, an operator, a space or another
    ``$``. Unknown variables and names declared without a value expand to
    nothing; a lone trailing ``$`` stays as it is.
    """
    return "".join(_pieces(text, env, status))


def expand_tokens(tokens: Iterable[Token], env: Environment, status: int = 0) -> list[Token]:
    """Return the tokens with plain and double-quoted words expanded."""
    return [
        Token(token.type, expand(token.text, env, status))
        if token.type in _EXPANDED_TYPES
        else token
        for token in tokens
    ]