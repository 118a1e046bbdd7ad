import io
import signal
import sys

import pytest

from spaghetti.builtins import ShellExit
from spaghetti.environment import Environment
from spaghetti.executor import (
    ShellState,
    execute,
    run_pipeline,
    run_single,
    status_from_returncode,
)
from spaghetti.parser import parse, pipeline_commands

PY = sys.executable
CAT = f"{PY} -c 'import sys; sys.stdout.write(sys.stdin.read())'"


def make_state(*entries, status=0):
    env = Environment(entries or ["PATH=/nonexistent-dir"])
    return ShellState(env, status=status, stdout=io.StringIO(), stderr=io.StringIO())


def test_status_from_returncode_keeps_exit_codes():
    assert status_from_returncode(0) == 0
    assert status_from_returncode(3) == 3


def test_status_from_returncode_signal():
    assert status_from_returncode(-signal.SIGINT) == 130


def test_single_builtin_echo():
    state = make_state()
    assert execute(parse("echo hello world"), state) == 0
    assert state.stdout.getvalue() == "hello world\n"


def test_dollar_question_uses_last_status():
    state = make_state(status=5)
    execute(parse("echo $?"), state)
    assert state.stdout.getvalue() == "5\n"


def test_export_in_single_command_changes_environment():
    state = make_state()
    execute(parse("export NAME=value"), state)
    assert state.env.value("NAME") == "value"


def test_builtin_in_pipeline_does_not_change_environment():
    state = make_state()
    execute(parse("export NAME=value | echo done"), state)
    assert state.env.value("NAME") is None
    assert state.stdout.getvalue() == "done\n"


def test_output_redirection(tmp_path):
    target = tmp_path / "out.txt"
    state = make_state()
    execute(parse(f"echo hi > {target}"), state)
    assert target.read_text() == "hi\n"
    assert state.stdout.getvalue() == ""


def test_append_redirection(tmp_path):
    target = tmp_path / "out.txt"
    state = make_state()
    execute(parse(f"echo a >> {target}"), state)
    execute(parse(f"echo b >> {target}"), state)
    assert target.read_text() == "a\nb\n"


def test_input_redirection_to_program(tmp_path):
    source = tmp_path / "in.txt"
    source.write_text("data\n")
    state = make_state()
    assert execute(parse(f"{CAT} < {source}"), state) == 0
    assert state.stdout.getvalue() == "data\n"


def test_program_exit_status():
    state = make_state()
    assert execute(parse(f"{PY} -c 'import sys; sys.exit(3)'"), state) == 3
    assert state.status == 3


def test_program_sees_environment():
    state = make_state("PATH=/nonexistent-dir", "FOO=bar")
    execute(parse(f"{PY} -c 'import os; print(os.environ[\"FOO\"])'"), state)
    assert state.stdout.getvalue() == "bar\n"


def test_pipeline_builtin_into_program():
    state = make_state()
    assert execute(parse(f"echo abc | {CAT}"), state) == 0
    assert state.stdout.getvalue() == "abc\n"


def test_pipeline_of_programs():
    state = make_state()
    execute(parse(f"{PY} -c 'print(5)' | {CAT}"), state)
    assert state.stdout.getvalue() == "5\n"


def test_pipeline_status_comes_from_last_command():
    state = make_state()
    assert execute(parse(f"{PY} -c 'import sys; sys.exit(4)' | echo x"), state) == 0
    assert execute(parse(f"echo x | {PY} -c 'import sys; sys.exit(4)'"), state) == 4


def test_command_not_found():
    state = make_state()
    assert execute(parse("no-such-command-here"), state) == 127
    assert "command not found" in state.stderr.getvalue()


def test_redirection_error(tmp_path):
    state = make_state()
    assert execute(parse(f"echo hi < {tmp_path / 'missing'}"), state) == 1
    assert state.stderr.getvalue().startswith("redirection")
    assert state.stdout.getvalue() == ""


def test_exit_raises_in_single_command():
    state = make_state()
    with pytest.raises(ShellExit) as caught:
        run_single(parse("exit 7"), state)
    assert caught.value.code == 7


def test_exit_in_pipeline_does_not_end_shell():
    state = make_state()
    assert execute(parse("exit 7 | echo x"), state) == 0
    assert state.stdout.getvalue() == "x\n"


def test_run_pipeline_output_of_last_command():
    state = make_state()
    run_pipeline(pipeline_commands(parse("echo a | echo b")), state)
    assert state.stdout.getvalue() == "b\n"


def test_run_pipeline_needs_commands():
    with pytest.raises(ValueError):
        run_pipeline([], make_state())


def test_redirection_only_creates_file_and_keeps_status(tmp_path):
    target = tmp_path / "created"
    state = make_state(status=2)
    assert execute(parse(f"> {target}"), state) == 2
    assert target.exists()