import pytest

from spaghetti.environment import Environment


@pytest.fixture
def env():
    return Environment(["HOME=/home/user", "PATH=/bin:/usr/bin", "DECLARED", "EMPTY="])


def test_get_returns_whole_entry(env):
    assert env.get("HOME") == "HOME=/home/user"
    assert env.get("DECLARED") == "DECLARED"


def test_get_does_not_match_prefix(env):
    assert env.get("PAT") is None
    assert env.get("HOMEX") is None


def test_value(env):
    assert env.value("PATH") == "/bin:/usr/bin"
    assert env.value("EMPTY") == ""
    assert env.value("DECLARED") is None
    assert env.value("MISSING") is None


def test_add_appends_at_end(env):
    env.add("NEW", "1")
    env.add("BARE", None)
    assert env.entries()[-2:] == ["NEW=1", "BARE"]


def test_edit_replaces_and_moves_to_end(env):
    env.edit("HOME", "/root")
    assert env.value("HOME") == "/root"
    assert env.entries()[-1] == "HOME=/root"
    assert sum(1 for e in env.entries() if e.startswith("HOME")) == 1


def test_edit_declared_name_without_value(env):
    env.edit("HOME", None)
    assert env.get("HOME") == "HOME"
    assert env.value("HOME") is None


def test_append_to_existing_value(env):
    env.append("PATH", ":/opt")
    assert env.value("PATH") == "/bin:/usr/bin:/opt"


def test_append_to_declared_name(env):
    env.append("DECLARED", "x")
    assert env.get("DECLARED") == "DECLARED=x"


def test_append_missing_name_changes_nothing(env):
    before = env.entries()
    env.append("MISSING", "x")
    assert env.entries() == before


def test_delete_keeps_order(env):
    env.delete("PATH")
    assert env.entries() == ["HOME=/home/user", "DECLARED", "EMPTY="]


def test_delete_removes_last_match_only():
    env = Environment(["A=1", "B=2", "A=3"])
    env.delete("A")
    assert env.entries() == ["A=1", "B=2"]


def test_delete_missing_is_noop(env):
    before = env.entries()
    env.delete("MISSING")
    assert env.entries() == before


def test_entries_returns_copy(env):
    copy = env.entries()
    copy.clear()
    assert len(env) == 4


def test_contains(env):
    assert "DECLARED" in env
    assert "NOPE" not in env


def test_to_dict_skips_declared(env):
    assert env.to_dict() == {"HOME": "/home/user", "PATH": "/bin:/usr/bin", "EMPTY": ""}


def test_from_os(monkeypatch):
    monkeypatch.setenv("SPAGHETTI_TEST_VAR", "value")
    env = Environment.from_os()
    assert env.value("SPAGHETTI_TEST_VAR") == "value"