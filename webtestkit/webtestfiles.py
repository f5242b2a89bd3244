"""Named files that live in the runfiles tree or inside an archive in it."""

from __future__ import annotations

import os
import subprocess
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from webtestkit import bazel

if TYPE_CHECKING:
    from webtestkit.metadata import Metadata


class WebTestFilesError(ValueError):
    """Named files are malformed or conflict with each other."""


def _string(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise WebTestFilesError(f"{key} must be a string, got {value!r}")
    return value


@dataclass
class WebTestFiles:
    """A set of named files, relative to the runfiles root or inside archive_file.

    An archive is extracted, whole, into a directory under the test tmpdir
    the first time one of its named files is asked for.
    """

    archive_file: str = ""
    strip_prefix: str = ""
    named_files: dict[str, str] = field(default_factory=dict)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )
    _extracted_path: str = field(default="", init=False, repr=False, compare=False)

    @classmethod
    def from_json(cls, data: Any) -> WebTestFiles:
        """Build WebTestFiles from its JSON object form."""
        if not isinstance(data, dict):
            raise WebTestFilesError(f"WebTestFiles must be a JSON object, got {data!r}")
        named = data.get("namedFiles") or {}
        if not isinstance(named, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in named.items()
        ):
            raise WebTestFilesError(f"namedFiles must map strings to strings, got {named!r}")
        return cls(
            archive_file=_string(data, "archiveFile"),
            strip_prefix=_string(data, "stripPrefix"),
            named_files=dict(named),
        )

    def to_json(self) -> dict[str, Any]:
        """Return the JSON object form."""
        out: dict[str, Any] = {}
        if self.archive_file:
            out["archiveFile"] = self.archive_file
        if self.strip_prefix:
            out["stripPrefix"] = self.strip_prefix
        out["namedFiles"] = dict(self.named_files)
        return out

    def get_file_path(self, name: str, metadata: Metadata) -> str | None:
        """Return the path of the file called name, or None if it is not one of these.

        Extracts the archive first if there is one.
        """
        filename = self.named_files.get(name)
        if filename is None:
            return None
        if not self.archive_file:
            return bazel.runfile(filename)

        self.extract(metadata)
        path = os.path.join(self._extracted_path, filename)
        os.stat(path)
        return path

    def extract(self, metadata: Metadata) -> None:
        """Extract the archive with the EXTRACT_EXE named file, once."""
        with self._lock:
            if self._extracted_path:
                return
            extractor = metadata.get_file_path("EXTRACT_EXE")
            filename = bazel.runfile(self.archive_file)
            extract_path = bazel.new_tmp_dir(os.path.basename(filename))
            subprocess.run(
                [extractor, filename, extract_path, self.strip_prefix], check=True
            )
            self._extracted_path = extract_path


def merge_named_files(n1: Mapping[str, str], n2: Mapping[str, str]) -> dict[str, str]:
    """Return the union of two name maps; a name with two paths is an error."""
    result = dict(n1)
    for key, value in n2.items():
        if key in result and result[key] != value:
            raise WebTestFilesError(
                f"key {key!r} exists in both NamedFiles with different values"
            )
        result[key] = value
    return result


def merge_web_test_files(a1: WebTestFiles, a2: WebTestFiles) -> WebTestFiles:
    """Merge two WebTestFiles that refer to the same archive."""
    if a1.archive_file != a2.archive_file:
        raise WebTestFilesError(
            f"expected paths ({a1.archive_file!r}, {a2.archive_file!r}) to be equal"
        )
    return WebTestFiles(
        archive_file=a1.archive_file,
        named_files=merge_named_files(a1.named_files, a2.named_files),
    )


def normalize_web_test_files(files: Iterable[WebTestFiles] | None) -> list[WebTestFiles]:
    """Merge entries sharing an archive and drop entries with no named files.

    Order follows the first appearance of each archive. A name defined for
    more than one archive is an error.
    """
    merged: dict[str, WebTestFiles] = {}
    for entry in files or ():
        if not entry.named_files:
            continue
        existing = merged.get(entry.archive_file)
        if existing is not None:
            merged[entry.archive_file] = merge_web_test_files(entry, existing)
        else:
            merged[entry.archive_file] = entry

    seen: set[str] = set()
    for entry in merged.values():
        for name in entry.named_files:
            if name in seen:
                raise WebTestFilesError(f"name {name!r} exists in multiple WebTestFiles")
            seen.add(name)
    return list(merged.values())