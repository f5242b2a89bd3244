"""Browser metadata: capabilities, labels, named files and extension data."""

from __future__ import annotations

import abc
import json
import os
from dataclasses import dataclass, field
from typing import Any

from webtestkit import httphelper
from webtestkit.capmerge import ResolveError, Resolver, map_resolver
from webtestkit.capmerge import merge as merge_capabilities
from webtestkit.webtestfiles import WebTestFiles, normalize_web_test_files

RECORD_NEVER = "never"
RECORD_FAILED = "failed"
RECORD_ALWAYS = "always"


class MetadataError(ValueError):
    """Metadata cannot be read, merged or queried."""


class Extension(abc.ABC):
    """Additional fields read from the "extension" object of metadata."""

    @abc.abstractmethod
    def merge(self, other: Extension | None) -> Extension:
        """Return this merged with other, other taking precedence; mutate neither."""

    @abc.abstractmethod
    def normalize(self) -> None:
        """Normalize and validate the extension data."""

    @abc.abstractmethod
    def update_from_json(self, data: Any) -> None:
        """Update this extension from its JSON value."""

    @abc.abstractmethod
    def to_json(self) -> Any:
        """Return the JSON value of this extension."""


@dataclass
class MapExtension(Extension):
    """Extension data kept as a plain JSON object."""

    values: dict[str, Any] = field(default_factory=dict)

    def merge(self, other: Extension | None) -> Extension:
        if other is None:
            return self
        if not self.values:
            return other
        if not isinstance(other, MapExtension) or not other.values:
            return self
        return MapExtension({**self.values, **other.values})

    def normalize(self) -> None:
        return None

    def update_from_json(self, data: Any) -> None:
        if not isinstance(data, dict):
            raise MetadataError(f"extension must be a JSON object, got {data!r}")
        self.values.update(data)

    def to_json(self) -> Any:
        return dict(self.values)


def _typed(obj: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = obj.get(key)
    if value is None:
        return default
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise MetadataError(f"{key} must be of type {kind.__name__}, got {value!r}")
    return value


@dataclass
class Metadata:
    """What is needed to launch a browser."""

    capabilities: dict[str, Any] = field(default_factory=dict)
    environment: str = ""
    label: str = ""
    browser_label: str = ""
    test_label: str = ""
    config_label: str = ""
    debugger_port: int = 0
    web_test_files: list[WebTestFiles] = field(default_factory=list)
    extension: Extension | None = None

    def to_file(self, filename: str) -> None:
        """Write this metadata to filename as JSON."""
        with open(filename, "wb") as out:
            out.write(self.to_bytes())

    def to_bytes(self) -> bytes:
        """Return this metadata as indented JSON."""
        obj: dict[str, Any] = {}
        if self.capabilities:
            obj["capabilities"] = self.capabilities
        for key, value in (
            ("environment", self.environment),
            ("label", self.label),
            ("browserLabel", self.browser_label),
            ("testLabel", self.test_label),
            ("configLabel", self.config_label),
            ("debuggerPort", self.debugger_port),
        ):
            if value:
                obj[key] = value
        if self.web_test_files:
            obj["webTestFiles"] = [files.to_json() for files in self.web_test_files]
        if self.extension is not None:
            obj["extension"] = self.extension.to_json()
        return json.dumps(obj, indent=2, ensure_ascii=False).encode("utf-8")

    def get_file_path(self, name: str) -> str:
        """Return the path of the named file, extracting an archive if needed."""
        for files in self.web_test_files:
            path = files.get_file_path(name, self)
            if path:
                return path
        raise MetadataError(f"no named file {name!r}")

    def resolver(self) -> Resolver:
        """Return a resolver for ENV, FILE, WTL and METADATA capability variables."""
        metadata_resolver = map_resolver(
            "METADATA",
            {
                "LABEL": self.label,
                "TEST_LABEL": self.test_label,
                "BROWSER_LABEL": self.browser_label,
                "CONFIG_LABEL": self.config_label,
                "ENVIRONMENT": self.environment,
            },
        )

        def resolve(prefix: str, name: str) -> str:
            if prefix == "ENV":
                try:
                    return os.environ[name]
                except KeyError:
                    raise ResolveError(
                        f"environment variable {name!r} is not defined"
                    ) from None
            if prefix == "FILE":
                return self.get_file_path(name)
            if prefix == "WTL":
                if name == "FQDN":
                    return httphelper.fqdn()
                raise ResolveError(f"WTL:{name!r} is not defined")
            return metadata_resolver(prefix, name)

        return resolve

    def extension_map(self) -> dict[str, Any] | None:
        """Return the extension as a dict if it was read without an extension type."""
        if isinstance(self.extension, MapExtension):
            return self.extension.values
        return None


def merge(m1: Metadata, m2: Metadata) -> Metadata:
    """Return a new Metadata with m2's set values taking precedence over m1's."""
    extension = m1.extension
    if extension is None:
        extension = m2.extension
    elif m2.extension is not None:
        extension = extension.merge(m2.extension)

    return Metadata(
        capabilities=merge_capabilities(m1.capabilities, m2.capabilities) or {},
        environment=m2.environment or m1.environment,
        label=m2.label or m1.label,
        browser_label=m2.browser_label or m1.browser_label,
        test_label=m2.test_label or m1.test_label,
        config_label=m2.config_label or m1.config_label,
        debugger_port=m2.debugger_port or m1.debugger_port,
        web_test_files=normalize_web_test_files([*m1.web_test_files, *m2.web_test_files]),
        extension=extension,
    )


def from_file(filename: str, ext: Extension | None = None) -> Metadata:
    """Read Metadata from a JSON file; see from_bytes."""
    with open(filename, "rb") as source:
        return from_bytes(source.read(), ext)


def from_bytes(data: bytes | str, ext: Extension | None = None) -> Metadata:
    """Read Metadata from JSON.

    The "extension" object is read into ext, or into a MapExtension if ext
    is None, and then normalized.
    """
    try:
        obj = json.loads(data)
    except ValueError as exc:
        raise MetadataError(f"invalid metadata JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise MetadataError(f"metadata must be a JSON object, got {obj!r}")

    if ext is None:
        ext = MapExtension()
    extension: Extension | None = ext
    if "extension" in obj:
        if obj["extension"] is None:
            extension = None
        else:
            ext.update_from_json(obj["extension"])

    files = [
        WebTestFiles.from_json(entry)
        for entry in _typed(obj, "webTestFiles", list, [])
        if entry is not None
    ]

    metadata = Metadata(
        capabilities=_typed(obj, "capabilities", dict, {}),
        environment=_typed(obj, "environment", str, ""),
        label=_typed(obj, "label", str, ""),
        browser_label=_typed(obj, "browserLabel", str, ""),
        test_label=_typed(obj, "testLabel", str, ""),
        config_label=_typed(obj, "configLabel", str, ""),
        debugger_port=_typed(obj, "debuggerPort", int, 0),
        web_test_files=normalize_web_test_files(files),
        extension=extension,
    )
    if extension is not None:
        extension.normalize()
    return metadata