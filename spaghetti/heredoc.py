"""Here-documents: reading lines up to a delimiter into a temporary file."""

from __future__ import annotations

import os
import struct
import sys
import tempfile
from typing import Iterator, TextIO

from spaghetti.environment import Environment
from spaghetti.expander import expand

_FILE_PREFIX = "shell_oaoa_"
_NAME_ATTEMPTS = 5
_QUOTES = "'\""


def parse_delimiter(spec: str) -> tuple[str, bool]:
    """Split a ``<<DELIM`` specification into the delimiter and whether to expand lines.

    A quoted delimiter loses its quotes and turns expansion off.
    """
    if not spec.startswith("<<"):
        raise ValueError(f"not a here-document: {spec!r}")
    word = spec[2:]
    if word[:1] and word[0] in _QUOTES:
        return word[1:-1], False
    return word, True


def _random_number() -> int:
    a, b, c = struct.unpack("3b", os.urandom(3))
    return a * b * c * 10 + 1000


def temp_file_name(directory: str | os.PathLike[str] | None = None) -> str:
    """Pick a name for a new here-document file that does not exist yet."""
    base = os.fspath(directory) if directory is not None else tempfile.gettempdir()
    for _ in range(_NAME_ATTEMPTS):
        name = os.path.join(base, f"{_FILE_PREFIX}{_random_number()}")
        if not os.path.exists(name):
            return name
    raise FileExistsError(f"no free here-document name in {base}")


def read_heredoc(delimiter: str, stream: TextIO, prompt_stream: TextIO | None = None) -> Iterator[str]:
    """Yield lines from ``stream`` until a line equal to ``delimiter`` or the end.

    A ``"> "`` prompt goes to ``prompt_stream`` (standard output by default)
    before each line is read.
    """
    prompt = prompt_stream if prompt_stream is not None else sys.stdout
    while True:
        prompt.write("> ")
        prompt.flush()
        line = stream.readline()
        if not line:
            return
        line = line.removesuffix("\n")
        if line == delimiter:
            return
        yield line


def _create(path: str, flags: int) -> int:
    return os.open(path, flags, 0o777)


def write_heredoc(
    spec: str,
    stream: TextIO,
    env: Environment,
    status: int = 0,
    prompt_stream: TextIO | None = None,
    directory: str | os.PathLike[str] | None = None,
) -> str:
    """Read a here-document for ``spec`` into a new file and return its name."""
    delimiter, expand_lines = parse_delimiter(spec)
    filename = temp_file_name(directory)
    with open(filename, "w", encoding="utf-8", opener=_create) as document:
        for line in read_heredoc(delimiter, stream, prompt_stream):
            if expand_lines:
                line = expand(line, env, status)
            document.write(line + "\n")
    return filename