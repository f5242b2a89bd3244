"""WebDriver capabilities that can be used as W3C, JWP or mixed-mode arguments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from webtestkit.capmerge import Resolver, merge, resolve_value

W3C_SUPPORTED_CAPABILITIES = frozenset(
    {
        "acceptInsecureCerts",
        "browserName",
        "browserVersion",
        "pageLoadStrategy",
        "platformName",
        "proxy",
        "setWindowRect",
        "strictFileInteractability",
        "timeouts",
        "unhandledPromptBehavior",
    }
)


class CapabilitiesError(ValueError):
    """Capabilities are malformed, conflict, or cannot be expressed."""


def _strip_underscores(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: _strip_underscores(item)
            for key, item in value.items()
            if not key.startswith("_")
        }
    if isinstance(value, list):
        return [_strip_underscores(item) for item in value]
    return value


def _merge_into_no_replace(dst: dict[str, Any], src: Mapping[str, Any]) -> None:
    for key, value in src.items():
        if key in dst and dst[key] != value:
            raise CapabilitiesError(
                f"dst[{key!r}] == {dst[key]!r}, src[{key!r}] == {value!r}, they must be equal"
            )
        dst[key] = value


def _normalize_legacy_goog(src: dict[str, Any], out: dict[str, Any], name: str) -> None:
    """Merge name and goog:name from src into out as goog:name, removing both from src."""
    merged: dict[str, Any] = {}
    for key in (name, "goog:" + name):
        if key not in src:
            continue
        value = src.pop(key)
        if not isinstance(value, dict):
            raise CapabilitiesError(
                f"{key} {value!r} is {type(value).__name__}, should be an object"
            )
        _merge_into_no_replace(merged, value)
    if merged:
        out["goog:" + name] = merged


def _normalize_proxy(src: dict[str, Any], out: dict[str, Any]) -> None:
    """Normalize the proxy capability into out, removing it from src."""
    if "proxy" not in src:
        return
    proxy = src.pop("proxy")
    if not isinstance(proxy, dict):
        raise CapabilitiesError(f"proxy {proxy!r} is {type(proxy).__name__}, should be an object")

    normalized: dict[str, Any] = {}
    for key, value in proxy.items():
        if key == "proxyType":
            if not isinstance(value, str):
                raise CapabilitiesError(f"proxyType {value!r} should be a string")
            normalized["proxyType"] = value.lower()
        elif key == "noProxy":
            if isinstance(value, list):
                hosts = list(value)
            elif isinstance(value, str):
                hosts = value.split(",")
            else:
                raise CapabilitiesError(f"noProxy {value!r} should be a string or a list")
            if hosts:
                normalized["noProxy"] = hosts
        elif value is not None:
            normalized[key] = value

    if normalized:
        out["proxy"] = normalized


def normalize(caps: Mapping[str, Any]) -> dict[str, Any]:
    """Return caps with underscore keys dropped and legacy names and proxy normalized.

    Raises CapabilitiesError for malformed or conflicting values.
    """
    remaining = _strip_underscores(dict(caps))
    out: dict[str, Any] = {}
    _normalize_legacy_goog(remaining, out, "chromeOptions")
    _normalize_legacy_goog(remaining, out, "loggingPrefs")
    _normalize_proxy(remaining, out)
    out.update(remaining)
    return out


def denormalize_w3c(caps: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return only the W3C and extension (prefixed) capabilities of caps."""
    return {
        key: value
        for key, value in (caps or {}).items()
        if ":" in key or key in W3C_SUPPORTED_CAPABILITIES
    }


def denormalize_jwp(caps: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return caps in JWP form.

    goog:chromeOptions and goog:loggingPrefs are also given their legacy
    names, and a noProxy list becomes a comma-separated string.
    """
    out: dict[str, Any] = {}
    for key, value in (caps or {}).items():
        if key in ("goog:chromeOptions", "goog:loggingPrefs"):
            out[key.removeprefix("goog:")] = value
            out[key] = value
        elif key == "proxy" and isinstance(value, dict):
            proxy = dict(value)
            if isinstance(proxy.get("noProxy"), list):
                proxy["noProxy"] = ",".join(proxy["noProxy"])
            out[key] = proxy
        else:
            out[key] = value
    return out


def _without_none(caps: Mapping[str, Any] | None) -> dict[str, Any]:
    return {key: value for key, value in (caps or {}).items() if value is not None}


@dataclass
class Capabilities:
    """Capabilities modelled after W3C, usable as W3C, JWP or mixed-mode."""

    always_match: dict[str, Any] = field(default_factory=dict)
    first_match: list[dict[str, Any]] = field(default_factory=list)
    w3c_supported: bool = False

    @classmethod
    def from_new_session_args(cls, args: Mapping[str, Any]) -> Capabilities:
        """Build Capabilities from the arguments of a New Session request.

        alwaysMatch, requiredCapabilities and desiredCapabilities are merged
        shallowly into always_match; any conflict, including one between a
        firstMatch entry and always_match, raises CapabilitiesError.
        """
        always: dict[str, Any] = {}
        w3c = args.get("capabilities")
        if not isinstance(w3c, dict):
            w3c = None

        sources = []
        if w3c is not None:
            sources.append(w3c.get("alwaysMatch"))
        sources.append(args.get("requiredCapabilities"))
        sources.append(args.get("desiredCapabilities"))
        for source in sources:
            if isinstance(source, dict):
                _merge_into_no_replace(always, normalize(source))

        first: list[dict[str, Any]] = []
        if w3c is not None:
            entries = w3c.get("firstMatch")
            for entry in entries if isinstance(entries, list) else []:
                if not isinstance(entry, dict):
                    raise CapabilitiesError(f"firstMatch entries must be JSON Objects, found {entry!r}")
                reduced: dict[str, Any] = {}
                for key, value in normalize(entry).items():
                    if key in always:
                        if always[key] != value:
                            raise CapabilitiesError(
                                f"alwaysMatch|required|desired[{key!r}] == {always[key]!r}, "
                                f"firstMatch[{key!r}] == {value!r}, they must be equal"
                            )
                        continue
                    reduced[key] = value
                first.append(reduced)

        first = [entry for i, entry in enumerate(first) if entry not in first[i + 1:]]

        if len(first) == 1:
            _merge_into_no_replace(always, first[0])
            first = []

        return cls(always_match=always, first_match=first, w3c_supported=w3c is not None)

    def merge_over(self, other: Mapping[str, Any] | None) -> Capabilities:
        """Return these capabilities deeply merged over other.

        Keys of other that appear in any first_match entry are merged under
        each first_match entry; the rest are merged under always_match.
        """
        if not other:
            return self

        always: dict[str, Any] = {}
        first: dict[str, Any] = {}
        for key, value in other.items():
            if any(key in fm for fm in self.first_match):
                first[key] = value
            else:
                always[key] = value

        first_match = self.first_match
        if first:
            first_match = [merge(first, fm) for fm in self.first_match]

        return Capabilities(
            always_match=merge(always, self.always_match),
            first_match=first_match,
            w3c_supported=self.w3c_supported,
        )

    def merge_under(self, other: Mapping[str, Any] | None) -> Capabilities:
        """Return capabilities with other's keys removed from first_match and merged over always_match."""
        if not other:
            return self

        first: list[dict[str, Any]] = []
        for old in self.first_match:
            entry = {key: value for key, value in old.items() if key not in other}
            if entry not in first:
                first.append(entry)

        always = self.always_match
        if len(first) == 1:
            always = merge(first[0], always)
            first = []

        return Capabilities(
            always_match=merge(always, dict(other)),
            first_match=first,
            w3c_supported=self.w3c_supported,
        )

    def to_jwp(self) -> dict[str, Any]:
        """Return New Session arguments for a JSON Wire Protocol remote end.

        Raises CapabilitiesError if there is more than one first_match entry.
        """
        if len(self.first_match) > 1:
            raise CapabilitiesError(
                "can not convert Capabilities with multiple FirstMatch entries to JWP"
            )
        desired = self.always_match
        if len(self.first_match) == 1:
            desired = merge(desired, self.first_match[0])
        return {"desiredCapabilities": denormalize_jwp(desired)}

    def to_w3c(self) -> dict[str, Any]:
        """Return New Session arguments for a W3C remote end."""
        caps: dict[str, Any] = {}
        always = denormalize_w3c(self.always_match)
        first = [denormalize_w3c(fm) for fm in self.first_match]
        if always:
            caps["alwaysMatch"] = always
        if first:
            caps["firstMatch"] = first
        return {"capabilities": caps}

    def to_mixed_mode(self) -> dict[str, Any]:
        """Return New Session arguments suitable for any remote end.

        With several first_match entries only W3C arguments are produced;
        without W3C support only JWP arguments are produced.
        """
        try:
            jwp = self.to_jwp()
        except CapabilitiesError:
            return self.to_w3c()
        if not self.w3c_supported:
            return jwp
        return {
            "capabilities": self.to_w3c()["capabilities"],
            "desiredCapabilities": jwp["desiredCapabilities"],
        }

    def strip(self, *args: str) -> Capabilities:
        """Return a copy without the named top-level capabilities and None values."""
        drop = set(args)
        always = {k: v for k, v in _without_none(self.always_match).items() if k not in drop}
        first = [
            {k: v for k, v in _without_none(fm).items() if k not in drop}
            for fm in self.first_match
        ]
        return Capabilities(always, first, self.w3c_supported)

    def strip_all_prefixed_except(self, *args: str) -> Capabilities:
        """Return a copy without None values and prefixed capabilities, except prefixes in args."""
        exempt = set(args)

        def keep(key: str) -> bool:
            tokens = key.split(":")
            return len(tokens) != 2 or tokens[0] in exempt

        always = {k: v for k, v in _without_none(self.always_match).items() if keep(k)}
        first = [
            {k: v for k, v in _without_none(fm).items() if keep(k)}
            for fm in self.first_match
        ]
        return Capabilities(always, first, self.w3c_supported)

    def resolve(self, resolver: Resolver) -> Capabilities:
        """Return a copy with every %PREFIX:NAME% replaced using resolver."""
        return Capabilities(
            always_match=resolve_value(dict(self.always_match), resolver),
            first_match=[resolve_value(dict(fm), resolver) for fm in self.first_match],
            w3c_supported=self.w3c_supported,
        )


def can_reuse_session(caps: Capabilities) -> bool:
    """Return True if google:canReuseSession is set to true."""
    return caps.always_match.get("google:canReuseSession") is True


def mixed_mode_args(caps: Capabilities | None) -> dict[str, Any]:
    """Return mixed-mode New Session arguments, with empty ones when caps is None."""
    if caps is None:
        return {"capabilities": {}, "desiredCapabilities": {}}
    return caps.to_mixed_mode()