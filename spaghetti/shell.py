"""The interactive read-and-run loop."""

from __future__ import annotations

import contextlib
import os
import signal
import sys
import threading
from typing import Mapping, Sequence, TextIO

from spaghetti.builtins import ShellExit
from spaghetti.environment import Environment
from spaghetti.executor import ShellState, execute
from spaghetti.heredoc import write_heredoc
from spaghetti.parser import ParseError, parse

_QUOTES = "'\""


def has_unclosed_quotes(line: str) -> bool:
    """Tell whether a single or double quote in ``line`` is left open."""
    quote: str | None = None
    for c in line:
        if quote is None:
            if c in _QUOTES:
                quote = c
        elif c == quote:
            quote = None
    return quote is not None


def get_prompt(environ: Mapping[str, str]) -> str:
    """Build the prompt from the user name, with a fallback when USER is unset."""
    user = environ.get("USER")
    if user is None:
        return "trial@spaghetti % "
    return f"{user}@spaghetti % "


class Shell:
    """Reads command lines and runs them against one shared state."""

    def __init__(self, env: Environment | None = None, prompt: str | None = None) -> None:
        self.state = ShellState(env if env is not None else Environment.from_os())
        self.prompt = prompt if prompt is not None else get_prompt(os.environ)
        self.input: TextIO = sys.stdin

    def _heredoc(self, spec: str) -> str | None:
        try:
            return write_heredoc(
                spec,
                self.input,
                self.state.env,
                self.state.status,
                prompt_stream=self.state.stdout,
            )
        except KeyboardInterrupt:
            self.state.stdout.write("\n")
            self.state.status = 130
            return None
        except OSError as error:
            self.state.stderr.write(f"here doc: {error.strerror or error}\n")
            return None

    def run_line(self, line: str) -> int:
        """Parse and run one line, returning the new status; ``exit`` raises ShellExit."""
        if has_unclosed_quotes(line):
            self.state.stdout.write("error: unclosed quotes\n")
            return self.state.status
        try:
            tree = parse(line, self._heredoc)
        except ParseError as error:
            self.state.stdout.write(f"{error}\n")
            return self.state.status
        return execute(tree, self.state)

    def loop(self) -> int:
        """Prompt and run lines until end of input or ``exit``; return the exit code."""
        restore = _ignore_quit_at_prompt()
        try:
            while True:
                if len(self.state.env) == 0:
                    self.state.env.add("", None)
                try:
                    line = input(self.prompt)
                except EOFError:
                    return 0
                except KeyboardInterrupt:
                    self.state.stdout.write("\n")
                    continue
                if not line:
                    continue
                try:
                    self.run_line(line)
                except ShellExit as exc:
                    return exc.code
        finally:
            restore()


def _ignore_quit_at_prompt():
    """Make Ctrl-\\ do nothing at the prompt; return a function that undoes it.

    A Python-level handler is used rather than SIG_IGN so that programs the
    shell starts still get the default behaviour.
    """
    if not hasattr(signal, "SIGQUIT") or threading.current_thread() is not threading.main_thread():
        return lambda: None
    previous = signal.signal(signal.SIGQUIT, lambda signum, frame: None)

    def restore() -> None:
        signal.signal(signal.SIGQUIT, previous if previous is not None else signal.SIG_DFL)

    return restore


def main(argv: Sequence[str] | None = None) -> int:
    """Start an interactive shell on the process environment."""
    with contextlib.suppress(ImportError):
        import readline  # noqa: F401  (gives input() line editing and history)
    return Shell().loop()


if __name__ == "__main__":
    sys.exit(main())