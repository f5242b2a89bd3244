"""Locating runfiles and temporary directories in a Bazel test environment."""

from __future__ import annotations

import os
import tempfile

from webtestkit.cmdhelper import is_truthy_env

DEFAULT_WORKSPACE = "io_bazel_rules_webtesting"


def _exists(path: str) -> bool:
    try:
        os.stat(path)
    except OSError:
        return False
    return True


def runfile(path: str) -> str:
    """Return the location of path among the running target's runfiles.

    Looks in the working directory, then under runfiles_path(), then under
    runfiles_path()/test_workspace(), then in the runfiles manifest.
    Raises FileNotFoundError if the file cannot be found.
    """
    if _exists(path):
        return path

    if is_truthy_env("RUNFILES_MANIFEST_ONLY"):
        try:
            return _runfile_in_manifest(path)
        except (LookupError, OSError) as exc:
            raise FileNotFoundError(
                f"RUNFILES_MANIFEST_ONLY is set but unable to locate {path!r} "
                f"in RUNFILES_MANIFEST_FILE: {exc}"
            ) from exc

    try:
        runfiles = runfiles_path()
    except LookupError as exc:
        raise FileNotFoundError(
            f"Unable to locate TEST_SRCDIR while looking for {path!r}: {exc}"
        ) from exc

    for candidate in (
        os.path.join(runfiles, path),
        os.path.join(runfiles, test_workspace(), path),
    ):
        if _exists(candidate):
            return candidate

    try:
        return _runfile_in_manifest(path)
    except (LookupError, OSError) as exc:
        raise FileNotFoundError(
            f"Unable to locate {path!r} in TEST_SRCDIR or RUNFILES_MANIFEST_FILE"
        ) from exc


def runfiles_path() -> str:
    """Return the runfiles tree root; raises LookupError if TEST_SRCDIR is unset."""
    try:
        return os.environ["TEST_SRCDIR"]
    except KeyError:
        raise LookupError(
            'environment variable "TEST_SRCDIR" is not defined, are you running with bazel test'
        ) from None


def new_tmp_dir(prefix: str) -> str:
    """Create and return a new directory inside test_tmp_dir()."""
    return tempfile.mkdtemp(prefix=prefix, dir=test_tmp_dir())


def test_tmp_dir() -> str:
    """Return TEST_TMPDIR, or the system temporary directory if it is unset."""
    if "TEST_TMPDIR" in os.environ:
        return os.environ["TEST_TMPDIR"]
    return tempfile.gettempdir()


def test_workspace() -> str:
    """Return TEST_WORKSPACE, or DEFAULT_WORKSPACE if it is unset."""
    return os.environ.get("TEST_WORKSPACE", DEFAULT_WORKSPACE)


def runfiles_manifest() -> str:
    """Return the runfiles manifest path.

    Raises LookupError if RUNFILES_MANIFEST_FILE is unset and OSError if the
    file does not exist.
    """
    try:
        manifest = os.environ["RUNFILES_MANIFEST_FILE"]
    except KeyError:
        raise LookupError(
            "environment variable RUNFILES_MANIFEST_FILE is not defined, "
            "are you running with bazel test"
        ) from None
    os.stat(manifest)
    return manifest


def _runfile_in_manifest(path: str) -> str:
    manifest = runfiles_manifest()
    with open(manifest, encoding="utf-8") as lines:
        for line in lines:
            tokens = line.rstrip("\n").removesuffix("\r").split(" ", 1)
            if len(tokens) != 2:
                continue
            key, target = tokens

            if key == path:
                if _exists(target):
                    return target
                continue

            if path.startswith(key):
                try:
                    rel = os.path.relpath(path, key)
                except ValueError:
                    continue
                candidate = os.path.join(target, rel)
                if _exists(candidate):
                    return candidate

    raise FileNotFoundError(f"cannot find runfile {path!r} in manifest {manifest!r}")