import io
import sys
import tempfile

import pytest

from spaghetti.builtins import ShellExit
from spaghetti.environment import Environment
from spaghetti.shell import Shell, get_prompt, has_unclosed_quotes, main

PY = sys.executable
CAT = f"{PY} -c 'import sys; sys.stdout.write(sys.stdin.read())'"


def make_shell(*entries):
    shell = Shell(Environment(entries or ["PATH=/nonexistent-dir"]), prompt="$ ")
    shell.state.stdout = io.StringIO()
    shell.state.stderr = io.StringIO()
    return shell


def fake_input(lines, prompts=None):
    pending = list(lines)

    def read(prompt=""):
        if prompts is not None:
            prompts.append(prompt)
        if not pending:
            raise EOFError
        item = pending.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    return read


@pytest.mark.parametrize(
    "line, expected",
    [
        ("echo hi", False),
        ("echo 'hi'", False),
        ('echo "it\'s"', False),
        ("echo 'hi", True),
        ('echo "a" "b', True),
        ("echo '\"'", False),
    ],
)
def test_has_unclosed_quotes(line, expected):
    assert has_unclosed_quotes(line) is expected


def test_get_prompt_with_user():
    assert get_prompt({"USER": "alice"}) == "alice@spaghetti % "


def test_get_prompt_without_user():
    assert get_prompt({}) == "trial@spaghetti % "


def test_unclosed_quotes_are_reported():
    shell = make_shell()
    shell.state.status = 3
    assert shell.run_line("echo 'oops") == 3
    assert shell.state.stdout.getvalue() == "error: unclosed quotes\n"


def test_pipe_syntax_error_is_reported():
    shell = make_shell()
    shell.run_line("| echo hi")
    assert "Syntax error near '|'" in shell.state.stdout.getvalue()


def test_export_then_expand():
    shell = make_shell()
    shell.run_line("export GREETING=hello")
    shell.run_line("echo $GREETING")
    assert shell.state.stdout.getvalue() == "hello\n"


def test_exit_raises():
    shell = make_shell()
    with pytest.raises(ShellExit) as caught:
        shell.run_line("exit 3")
    assert caught.value.code == 3


def test_heredoc_expands_lines(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    shell = make_shell("PATH=/nonexistent-dir", "NAME=world")
    shell.input = io.StringIO("hello $NAME\nEOF\n")
    assert shell.run_line(f"{CAT} <<EOF") == 0
    assert shell.state.stdout.getvalue().endswith("hello world\n")


def test_quoted_heredoc_delimiter_keeps_text(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    shell = make_shell("PATH=/nonexistent-dir", "NAME=world")
    shell.input = io.StringIO("hello $NAME\nEOF\n")
    shell.run_line(f"{CAT} <<'EOF'")
    assert shell.state.stdout.getvalue().endswith("hello $NAME\n")


def test_loop_runs_lines_until_exit(monkeypatch):
    prompts = []
    monkeypatch.setattr("builtins.input", fake_input(["export A=1", "", "exit 4"], prompts))
    shell = make_shell()
    assert shell.loop() == 4
    assert shell.state.env.value("A") == "1"
    assert prompts == ["$ ", "$ ", "$ "]


def test_loop_returns_zero_at_end_of_input(monkeypatch):
    monkeypatch.setattr("builtins.input", fake_input(["echo hi"]))
    shell = make_shell()
    assert shell.loop() == 0
    assert shell.state.stdout.getvalue() == "hi\n"


def test_loop_survives_interrupt(monkeypatch):
    monkeypatch.setattr("builtins.input", fake_input([KeyboardInterrupt(), "echo after"]))
    shell = make_shell()
    assert shell.loop() == 0
    assert shell.state.stdout.getvalue() == "\nafter\n"


def test_loop_keeps_environment_non_empty(monkeypatch):
    monkeypatch.setattr("builtins.input", fake_input([]))
    shell = Shell(Environment([]), prompt="$ ")
    shell.loop()
    assert shell.state.env.entries() == [""]


def test_main_returns_zero_on_end_of_input(monkeypatch):
    monkeypatch.setattr("builtins.input", fake_input([]))
    assert main([]) == 0