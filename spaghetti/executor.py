"""Running parsed command lines: builtins in the shell, programs as child processes."""

from __future__ import annotations

import contextlib
import io
import os
import signal
import subprocess
import sys
import threading
from dataclasses import dataclass, field
from typing import IO, Iterable, Iterator, TextIO, Union

from spaghetti.builtins import ShellExit, is_builtin, run_builtin
from spaghetti.environment import Environment
from spaghetti.expander import expand_tokens
from spaghetti.parser import Command, Node, command_words, pipeline_commands
from spaghetti.path import CommandNotFound, resolve_command
from spaghetti.redirection import RedirectionError, collect_redirections, open_redirections

_CHILD_FAILURE = 127

# Where a stage's standard stream goes: an open file, a raw descriptor, or
# None for "the shell's own stream".
_Target = Union[IO[bytes], int, None]
_StageResult = Union["subprocess.Popen[bytes]", int]


@dataclass
class ShellState:
    """What commands share: the environment, the last status and the output streams."""

    env: Environment = field(default_factory=Environment.from_os)
    status: int = 0
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)


def status_from_returncode(code: int) -> int:
    """Turn a child's return code into a shell status; a signal N becomes 128 + N."""
    if code < 0:
        return 128 - code
    return code


@contextlib.contextmanager
def _interrupts_ignored() -> Iterator[None]:
    """Ignore Ctrl-C and Ctrl-\\ in the shell while it waits for children."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    signums = [signal.SIGINT]
    if hasattr(signal, "SIGQUIT"):
        signums.append(signal.SIGQUIT)
    saved = {signum: signal.signal(signum, signal.SIG_IGN) for signum in signums}
    try:
        yield
    finally:
        for signum, handler in saved.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


def _fileno(stream: TextIO) -> int | None:
    """Return the descriptor behind ``stream``, flushed, or None if it has none."""
    try:
        fd = stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None
    stream.flush()
    return fd


def _report_signal(code: int, state: ShellState) -> None:
    if code >= 0:
        return
    signum = -code
    if signum > 2:
        state.stdout.write(f"Quit: {signum}")
    state.stdout.write("\n")


def _feed_pipe(fd: int, data: bytes) -> threading.Thread:
    """Write ``data`` into a duplicate of ``fd`` from a thread, then close it."""
    own = os.dup(fd)

    def feed() -> None:
        with contextlib.suppress(BrokenPipeError):
            with open(own, "wb") as pipe:
                pipe.write(data)

    thread = threading.Thread(target=feed, daemon=True)
    thread.start()
    return thread


def _deliver(text: str, state: ShellState, target: _Target, threads: list[threading.Thread]) -> None:
    if not text:
        return
    if target is None:
        state.stdout.write(text)
    elif isinstance(target, int):
        threads.append(_feed_pipe(target, text.encode()))
    else:
        target.write(text.encode())


def _spawn(words: list[str], state: ShellState, stdin: _Target, stdout: _Target) -> _StageResult:
    """Start the program for ``words``; on failure report it and return 127."""
    try:
        path = resolve_command(words[0], state.env)
    except CommandNotFound as error:
        state.stderr.write(f"{error}\n")
        return _CHILD_FAILURE
    destination: object = stdout
    if stdout is None:
        fd = _fileno(state.stdout)
        destination = subprocess.PIPE if fd is None else fd
    try:
        return subprocess.Popen(
            words,
            executable=path,
            stdin=stdin,
            stdout=destination,
            env=state.env.to_dict(),
        )
    except OSError as error:
        state.stderr.write(f"shell: {words[0]}: {error.strerror or error}\n")
        return _CHILD_FAILURE


def _finish(process: "subprocess.Popen[bytes]", state: ShellState) -> int:
    """Wait for the process, pass on captured output and return its status."""
    output, _ = process.communicate()
    if output:
        state.stdout.write(output.decode(errors="replace"))
    _report_signal(process.returncode, state)
    return status_from_returncode(process.returncode)


def run_single(command: Command, state: ShellState) -> int:
    """Run a command that is not part of a pipeline and return the new status.

    Builtins run in the shell itself, so ``cd`` and ``export`` take effect
    and ``exit`` raises ShellExit.
    """
    tokens = expand_tokens(command.tokens, state.env, state.status)
    words = command_words(tokens)
    with contextlib.ExitStack() as stack:
        try:
            streams = open_redirections(collect_redirections(tokens), stack)
        except RedirectionError as error:
            state.stderr.write(f"{error}\n")
            state.status = 1
            return state.status
        if not words:
            return state.status
        if is_builtin(words[0]):
            out = io.StringIO()
            threads: list[threading.Thread] = []
            try:
                state.status = run_builtin(words, state.env, state.status, out, state.stderr)
            finally:
                _deliver(out.getvalue(), state, streams.get(1), threads)
            return state.status
        result = _spawn(words, state, streams.get(0), streams.get(1))
        if isinstance(result, int):
            state.status = result
            return state.status
        with _interrupts_ignored():
            state.status = _finish(result, state)
    return state.status


def _pipeline_builtin(
    words: list[str], state: ShellState, target: _Target, threads: list[threading.Thread]
) -> int:
    """Run a builtin as one stage of a pipeline, on a copy of the environment."""
    out = io.StringIO()
    env = Environment(state.env.entries())
    try:
        status = run_builtin(words, env, state.status, out, state.stderr)
    except ShellExit as exc:
        status = exc.code
    _deliver(out.getvalue(), state, target, threads)
    return status


def _stage(
    command: Command,
    state: ShellState,
    stdin_fd: int | None,
    stdout_fd: int | None,
    threads: list[threading.Thread],
) -> _StageResult:
    tokens = expand_tokens(command.tokens, state.env, state.status)
    words = command_words(tokens)
    with contextlib.ExitStack() as stack:
        try:
            streams = open_redirections(collect_redirections(tokens), stack)
        except RedirectionError as error:
            state.stderr.write(f"{error}\n")
            return _CHILD_FAILURE
        if not words:
            return _CHILD_FAILURE
        stdin: _Target = streams.get(0, stdin_fd)
        stdout: _Target = streams.get(1, stdout_fd)
        if is_builtin(words[0]):
            return _pipeline_builtin(words, state, stdout, threads)
        return _spawn(words, state, stdin, stdout)


def run_pipeline(commands: Iterable[Command], state: ShellState) -> int:
    """Run the commands connected by pipes; the status is the last command's."""
    stages = list(commands)
    if not stages:
        raise ValueError("a pipeline needs at least one command")
    results: list[_StageResult] = []
    threads: list[threading.Thread] = []
    previous: int | None = None
    try:
        for position, command in enumerate(stages):
            last = position == len(stages) - 1
            read_end, write_end = (None, None) if last else os.pipe()
            try:
                results.append(_stage(command, state, previous, write_end, threads))
            finally:
                if previous is not None:
                    os.close(previous)
                    previous = None
                if write_end is not None:
                    os.close(write_end)
            previous = read_end
    finally:
        if previous is not None:
            os.close(previous)
    with _interrupts_ignored():
        final = results[-1]
        status = _finish(final, state) if not isinstance(final, int) else final
        for result in results[:-1]:
            if not isinstance(result, int):
                result.wait()
        for thread in threads:
            thread.join()
    state.status = status
    return state.status


def execute(tree: Node, state: ShellState) -> int:
    """Run a parsed command line and return the new status."""
    if isinstance(tree, Command):
        return run_single(tree, state)
    return run_pipeline(pipeline_commands(tree), state)