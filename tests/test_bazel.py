import os
import tempfile

import pytest

from webtestkit import bazel

ENV_VARS = [
    "TEST_SRCDIR",
    "TEST_WORKSPACE",
    "TEST_TMPDIR",
    "RUNFILES_MANIFEST_FILE",
    "RUNFILES_MANIFEST_ONLY",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    monkeypatch.chdir(cwd)


def _write(path, text="data"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def test_runfiles_path_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TEST_SRCDIR", str(tmp_path))
    assert bazel.runfiles_path() == str(tmp_path)


def test_runfiles_path_missing():
    with pytest.raises(LookupError):
        bazel.runfiles_path()


def test_tmp_dir_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TEST_TMPDIR", str(tmp_path))
    assert bazel.test_tmp_dir() == str(tmp_path)


def test_tmp_dir_default():
    assert bazel.test_tmp_dir() == tempfile.gettempdir()


def test_workspace_default():
    assert bazel.test_workspace() == bazel.DEFAULT_WORKSPACE
    assert bazel.DEFAULT_WORKSPACE == "io_bazel_rules_webtesting"


def test_workspace_from_env(monkeypatch):
    monkeypatch.setenv("TEST_WORKSPACE", "my_ws")
    assert bazel.test_workspace() == "my_ws"


def test_new_tmp_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("TEST_TMPDIR", str(tmp_path))
    created = bazel.new_tmp_dir("archive.zip")
    assert os.path.isdir(created)
    assert os.path.dirname(created) == str(tmp_path)
    assert os.path.basename(created).startswith("archive.zip")


def test_runfile_existing_absolute(tmp_path):
    target = _write(tmp_path / "abs.txt")
    assert bazel.runfile(str(target)) == str(target)


def test_runfile_in_srcdir(monkeypatch, tmp_path):
    src = tmp_path / "src"
    _write(src / "pkg" / "file.txt")
    monkeypatch.setenv("TEST_SRCDIR", str(src))
    assert bazel.runfile("pkg/file.txt") == os.path.join(str(src), "pkg/file.txt")


def test_runfile_in_workspace(monkeypatch, tmp_path):
    src = tmp_path / "src"
    _write(src / "ws" / "pkg" / "file.txt")
    monkeypatch.setenv("TEST_SRCDIR", str(src))
    monkeypatch.setenv("TEST_WORKSPACE", "ws")
    assert bazel.runfile("pkg/file.txt") == os.path.join(str(src), "ws", "pkg/file.txt")


def test_runfile_missing_srcdir():
    with pytest.raises(FileNotFoundError):
        bazel.runfile("pkg/nothing.txt")


def test_runfile_not_found_anywhere(monkeypatch, tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    monkeypatch.setenv("TEST_SRCDIR", str(src))
    with pytest.raises(FileNotFoundError):
        bazel.runfile("pkg/nothing.txt")


def test_runfile_from_manifest(monkeypatch, tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    real = _write(tmp_path / "real" / "file.txt")
    manifest = _write(
        tmp_path / "MANIFEST",
        f"malformedline\npkg/gone.txt {tmp_path / 'gone.txt'}\npkg/file.txt {real}\n",
    )
    monkeypatch.setenv("TEST_SRCDIR", str(src))
    monkeypatch.setenv("RUNFILES_MANIFEST_FILE", str(manifest))
    assert bazel.runfile("pkg/file.txt") == str(real)


def test_runfile_from_manifest_directory_prefix(monkeypatch, tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    real_dir = tmp_path / "real"
    real = _write(real_dir / "sub" / "file.txt", "nested contents")
    manifest = _write(tmp_path / "MANIFEST", f"pkg/dir {real_dir}\n")
    monkeypatch.setenv("TEST_SRCDIR", str(src))
    monkeypatch.setenv("RUNFILES_MANIFEST_FILE", str(manifest))
    found = bazel.runfile("pkg/dir/sub/file.txt")
    assert os.path.normpath(found) == os.path.normpath(str(real))
    with open(found, encoding="utf-8") as handle:
        assert handle.read() == "nested contents"


def test_runfile_manifest_only(monkeypatch, tmp_path):
    real = _write(tmp_path / "real.txt")
    manifest = _write(tmp_path / "MANIFEST", f"pkg/file.txt {real}\r\n")
    monkeypatch.setenv("RUNFILES_MANIFEST_ONLY", "1")
    monkeypatch.setenv("RUNFILES_MANIFEST_FILE", str(manifest))
    assert bazel.runfile("pkg/file.txt") == str(real)


def test_runfile_manifest_only_missing(monkeypatch, tmp_path):
    manifest = _write(tmp_path / "MANIFEST", "")
    monkeypatch.setenv("RUNFILES_MANIFEST_ONLY", "true")
    monkeypatch.setenv("RUNFILES_MANIFEST_FILE", str(manifest))
    with pytest.raises(FileNotFoundError, match="RUNFILES_MANIFEST_ONLY"):
        bazel.runfile("pkg/file.txt")


def test_runfiles_manifest_unset():
    with pytest.raises(LookupError):
        bazel.runfiles_manifest()


def test_runfiles_manifest_missing_file(monkeypatch, tmp_path):
    monkeypatch.setenv("RUNFILES_MANIFEST_FILE", str(tmp_path / "absent"))
    with pytest.raises(FileNotFoundError):
        bazel.runfiles_manifest()


def test_runfiles_manifest_present(monkeypatch, tmp_path):
    manifest = _write(tmp_path / "MANIFEST", "")
    monkeypatch.setenv("RUNFILES_MANIFEST_FILE", str(manifest))
    assert bazel.runfiles_manifest() == str(manifest)