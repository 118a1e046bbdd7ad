"""Turning a command line into a tree of piped commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Union

from spaghetti.lexer import HeredocHandler, Lexer, LexerError, Token, TokenType

_PIPE_ERROR = "Syntax error near '|'"


class ParseError(Exception):
    """The line is not a valid pipeline."""


@dataclass
class Command:
    """One simple command: its tokens and how many commands follow it in the pipeline."""

    tokens: list[Token] = field(default_factory=list)
    index: int = 0


@dataclass
class Pipe:
    """The output of ``left`` feeds the input of ``right``."""

    left: "Node"
    right: "Node"


Node = Union[Command, Pipe]


def split_commands(tokens: Iterable[Token]) -> list[list[Token]]:
    """Group tokens into simple commands at each pipe.

    Tokens are consumed lazily, so reading stops at the first misplaced pipe.
    A pipe with no command before it, or a trailing pipe, raises ParseError.
    """
    commands: list[list[Token]] = []
    current: list[Token] = []
    pipes = 0
    for token in tokens:
        if token.type is not TokenType.PIPE:
            current.append(token)
        elif current:
            commands.append(current)
            current = []
            pipes += 1
        else:
            raise ParseError(_PIPE_ERROR)
    if current:
        commands.append(current)
    if len(commands) <= pipes:
        raise ParseError(_PIPE_ERROR)
    return commands


def build_tree(commands: Iterable[list[Token]]) -> Node:
    """Build the pipeline tree; the last command gets index 0."""
    groups = list(commands)
    if not groups:
        raise ValueError("a pipeline needs at least one command")
    last = len(groups) - 1
    tree: Node = Command(groups[last], 0)
    for position in range(last - 1, -1, -1):
        tree = Pipe(Command(groups[position], last - position), tree)
    return tree


def parse(line: str, heredoc: HeredocHandler | None = None) -> Node:
    """Parse a command line into a tree; syntax errors raise ParseError."""
    try:
        return build_tree(split_commands(Lexer(line, heredoc).tokens()))
    except LexerError as error:
        raise ParseError(str(error)) from error


def command_words(tokens: Iterable[Token]) -> list[str]:
    """Join a command's tokens into argument words, leaving out redirections.

    Adjacent tokens form one word; a space token ends the word.
    """
    words: list[str] = []
    word: str | None = None
    for token in tokens:
        if token.type is TokenType.REDIREC:
            continue
        if token.type is TokenType.SPACE and word is not None:
            words.append(word)
            word = None
        else:
            word = token.text if word is None else word + token.text
    if word is not None:
        words.append(word)
    return words


def pipeline_commands(tree: Node) -> list[Command]:
    """Return the commands of a tree from first to last in the pipeline."""
    if isinstance(tree, Command):
        return [tree]
    return pipeline_commands(tree.left) + pipeline_commands(tree.right)