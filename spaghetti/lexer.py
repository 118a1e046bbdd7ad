"""Splitting a command line into tokens."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator

_END = ""
_QUOTES = "'\""


class TokenType(Enum):
    ARG = "arg"
    QARG = "qarg"
    DARG = "darg"
    REDIREC = "redirec"
    PIPE = "pipe"
    SPACE = "space"
    END = "end"


@dataclass
class Token:
    type: TokenType
    text: str


class LexerError(Exception):
    """A syntax error found while splitting a line."""


def is_token_char(c: str) -> bool:
    """Tell whether ``c`` ends a plain word (quotes, operators, space or end)."""
    return c == _END or c in "'\"|>< "


def is_file_boundary(c: str) -> bool:
    """Tell whether ``c`` ends a redirection's file name."""
    return c == _END or c in "<>| "


def is_strict_file_boundary(c: str) -> bool:
    """Tell whether ``c`` is a pipe, a space or the end of the line."""
    return c == _END or c in "| "


HeredocHandler = Callable[[str], "str | None"]


class Lexer:
    """Reads tokens from one command line.

    ``heredoc`` is called with a ``<<DELIM`` specification and returns the
    name of the file that holds the document; without it the specification
    is kept as the token's text.
    """

    def __init__(self, source: str, heredoc: HeredocHandler | None = None) -> None:
        self._source = source
        self._heredoc = heredoc
        self._pos = 0

    @property
    def _char(self) -> str:
        return self._source[self._pos] if self._pos < len(self._source) else _END

    def _skip_spaces(self) -> None:
        while self._char == " ":
            self._pos += 1

    def _word(self) -> str:
        start = self._pos
        self._pos += 1
        while not is_token_char(self._char):
            self._pos += 1
        return self._source[start:self._pos]

    def _quoted(self) -> str:
        quote = self._char
        close = self._source.find(quote, self._pos + 1)
        if close == -1:
            raise LexerError("error: unclosed quotes")
        text = self._source[self._pos + 1:close]
        self._pos = close + 1
        return text

    def _redirection(self) -> str:
        kind = self._char
        start = self._pos
        while self._char == kind:
            self._pos += 1
        operator = self._source[start:self._pos]
        self._skip_spaces()
        if len(operator) > 2 or is_file_boundary(self._char):
            culprit = operator[0] if len(operator) > 2 else operator[-1]
            raise LexerError(f"syntax error near '{culprit}'")
        name_start = self._pos
        while not is_file_boundary(self._char):
            self._pos += 1
        spec = operator + self._source[name_start:self._pos]
        if len(operator) == 2 and kind == "<" and self._heredoc is not None:
            filename = self._heredoc(spec)
            if filename is None:
                raise LexerError("here-document failed")
            spec = filename
        self._skip_spaces()
        return spec

    def next_token(self) -> Token:
        """Read the next token; at the end of the line an END token is returned."""
        if self._pos == 0:
            self._skip_spaces()
        c = self._char
        if c == _END:
            return Token(TokenType.END, "")
        if c == " ":
            self._skip_spaces()
            return Token(TokenType.SPACE, " ")
        if c == '"':
            return Token(TokenType.DARG, self._quoted())
        if c == "'":
            return Token(TokenType.QARG, self._quoted())
        if c == "|":
            self._pos += 1
            self._skip_spaces()
            return Token(TokenType.PIPE, "|")
        if c in "<>":
            return Token(TokenType.REDIREC, self._redirection())
        return Token(TokenType.ARG, self._word())

    def tokens(self) -> Iterator[Token]:
        """Yield tokens until the line is used up."""
        while self._char != _END:
            yield self.next_token()


def tokenize(source: str, heredoc: HeredocHandler | None = None) -> list[Token]:
    """Return all tokens of ``source``."""
    return list(Lexer(source, heredoc).tokens())