import pytest

from webtestkit.cmdhelper import bulk_update_env, is_truthy_env, update_env


def test_update_env_replaces_existing():
    assert update_env(["A=1", "B=2"], "A", "3") == ["B=2", "A=3"]


def test_update_env_removes_all_duplicates():
    result = update_env(["A=1", "A=2", "B=2"], "A", "9")
    assert [e for e in result if e.startswith("A=")] == ["A=9"]
    assert result[-1] == "A=9"


def test_update_env_appends_new():
    assert update_env(["B=2"], "C", "x") == ["B=2", "C=x"]


def test_update_env_does_not_match_longer_names():
    result = update_env(["AB=1"], "A", "2")
    assert result == ["AB=1", "A=2"]


def test_update_env_leaves_input_untouched():
    env = ["A=1"]
    update_env(env, "A", "2")
    assert env == ["A=1"]


def test_bulk_update_env():
    result = bulk_update_env(["A=1", "B=2"], {"A": "x", "C": "y"})
    assert sorted(result) == ["A=x", "B=2", "C=y"]
    assert len(result) == 3


@pytest.mark.parametrize(
    "value, expected",
    [("1", True), ("true", True), ("yes", True), ("0", False), ("FALSE", False), ("False", False), ("", False)],
)
def test_is_truthy_env(monkeypatch, value, expected):
    monkeypatch.setenv("WEBTESTKIT_TRUTHY", value)
    assert is_truthy_env("WEBTESTKIT_TRUTHY") is expected


def test_is_truthy_env_unset(monkeypatch):
    monkeypatch.delenv("WEBTESTKIT_TRUTHY", raising=False)
    assert is_truthy_env("WEBTESTKIT_TRUTHY") is False