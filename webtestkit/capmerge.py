"""Deep merging of capability maps and %PREFIX:NAME% variable resolution."""

from __future__ import annotations

import re
from typing import Any, Callable, Mapping

Resolver = Callable[[str, str], str]

_RENAMED = {
    "chromeOptions": "goog:chromeOptions",
    "loggingPrefs": "goog:loggingPrefs",
}

_VAR = re.compile(r"%(\w+):(\w+)%", re.ASCII)


class ResolveError(LookupError):
    """A capability variable could not be resolved."""


def merge(m1: dict[str, Any] | None, m2: dict[str, Any] | None) -> dict[str, Any] | None:
    """Merge two JSON objects, values in m2 taking precedence.

    Objects under the same key are merged recursively, lists are
    concatenated (lists named "args" are merged as command-line options),
    and anything else is replaced by the value from m2. chromeOptions and
    loggingPrefs are renamed to their goog: forms.
    """
    if m1 is None:
        return m2
    if m2 is None:
        return m1
    merged: dict[str, Any] = {}
    for key, value in m1.items():
        merged[_RENAMED.get(key, key)] = value
    for key, value in m2.items():
        key = _RENAMED.get(key, key)
        merged[key] = _merge_values(merged.get(key), value, key)
    return merged


def _merge_values(v1: Any, v2: Any, name: str) -> Any:
    if isinstance(v1, dict) and isinstance(v2, dict):
        return merge(v1, v2)
    if isinstance(v1, list) and isinstance(v2, list):
        if name == "args":
            return _merge_args(v1, v2)
        return [*v1, *v2]
    return v2


def _option_name(arg: str) -> str:
    return arg.split("=", 1)[0]


def _merge_args(a1: list[Any], a2: list[Any]) -> list[Any]:
    """Merge argument lists.

    An option starting with "-" in a2 replaces every option of the same name
    in a1; "REMOVE:--name" in a2 drops --name from a1 and is itself dropped.
    """
    overridden: set[str] = set()
    kept2: list[Any] = []
    for arg in a2:
        if isinstance(arg, str):
            if arg.startswith("REMOVE:--"):
                overridden.add(arg[len("REMOVE:"):])
                continue
            if arg.startswith("-"):
                overridden.add(_option_name(arg))
        kept2.append(arg)

    kept1 = [
        arg
        for arg in a1
        if not (isinstance(arg, str) and arg.startswith("-") and _option_name(arg) in overridden)
    ]
    return kept1 + kept2


def no_op_resolver(prefix: str, name: str) -> str:
    """Resolve to the variable reference itself, %prefix:name%."""
    return f"%{prefix}:{name}%"


def map_resolver(prefix: str, names: Mapping[str, str]) -> Resolver:
    """Return a resolver that looks names up for prefix and leaves others alone.

    The resolver raises ResolveError for an unknown name under prefix.
    """

    def resolver(p: str, n: str) -> str:
        if p != prefix:
            return no_op_resolver(p, n)
        try:
            return names[n]
        except KeyError:
            raise ResolveError(f"unable to resolve {p}:{n}") from None

    return resolver


def resolve_string(text: str, resolver: Resolver) -> str:
    """Replace every %PREFIX:NAME% in text with what resolver returns."""
    return _VAR.sub(lambda match: resolver(match.group(1), match.group(2)), text)


def resolve_value(value: Any, resolver: Resolver) -> Any:
    """Return a copy of value with variables resolved in every string inside it."""
    if isinstance(value, str):
        return resolve_string(value, resolver)
    if isinstance(value, list):
        return [resolve_value(item, resolver) for item in value]
    if isinstance(value, dict):
        return {key: resolve_value(item, resolver) for key, item in value.items()}
    return value