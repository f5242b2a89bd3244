"""Errors that carry the name of the component they came from.

An error may also be marked permanent, which tells retry loops that trying
again is pointless.
"""

from __future__ import annotations

from typing import Any, Iterable

DEFAULT_COMP = "web test launcher"


class WtlError(Exception):
    """An error tagged with a component name and a permanence flag."""

    def __init__(self, error: BaseException, component: str, permanent: bool = False) -> None:
        super().__init__(str(error))
        self.error = error
        self.component = component
        self.permanent = permanent

    def __str__(self) -> str:
        suffix = " (permanent)" if self.permanent else ""
        return f"[{self.component}{suffix}]: {self.error}"


class MultiError(Exception):
    """Several errors reported together."""

    def __init__(self, errors: Iterable[BaseException]) -> None:
        self.errors = tuple(errors)
        super().__init__(*self.errors)

    @property
    def component(self) -> str:
        for err in self.errors:
            comp = component(err)
            if comp != DEFAULT_COMP:
                return comp
        return DEFAULT_COMP

    @property
    def permanent(self) -> bool:
        return any(is_permanent(err) for err in self.errors)

    def __str__(self) -> str:
        if not self.errors:
            return ""
        return "errors:" + "".join(f"\n\t{err}" for err in self.errors)


def component(err: BaseException) -> str:
    """Return the component an error belongs to, or DEFAULT_COMP."""
    value = getattr(err, "component", None)
    if isinstance(value, str):
        return value
    return DEFAULT_COMP


def is_permanent(err: BaseException) -> bool:
    """Return True if the error says retrying will not help."""
    return getattr(err, "permanent", False) is True


def join_errors(*args: BaseException | None) -> BaseException | None:
    """Join errors into one; None entries are dropped.

    Returns None when nothing is left and the error itself when one is left.
    """
    joined: list[BaseException] = []
    for err in args:
        if err is None:
            continue
        if isinstance(err, MultiError):
            joined.extend(err.errors)
        else:
            joined.append(err)
    if not joined:
        return None
    if len(joined) == 1:
        return joined[0]
    return MultiError(joined)


def new(component_name: str, err: Any) -> BaseException:
    """Return a non-permanent error for the given component.

    If err already names a component other than the default, that component
    is kept.
    """
    return _create(component_name, err, False)


def new_permanent(component_name: str, err: Any) -> BaseException:
    """Return a permanent error for the given component."""
    return _create(component_name, err, True)


def _as_exception(err: Any) -> BaseException:
    if isinstance(err, BaseException):
        return err
    if isinstance(err, str):
        return Exception(err)
    return Exception(f"{err}")


def _create(component_name: str, err: Any, permanent: bool) -> BaseException:
    exc = _as_exception(err)
    existing = component(exc)
    existing_permanent = is_permanent(exc)

    if existing != DEFAULT_COMP:
        component_name = existing
    if not component_name:
        component_name = DEFAULT_COMP

    if existing_permanent == permanent and existing == component_name:
        return exc

    if isinstance(exc, WtlError):
        return _create(component_name, exc.error, permanent)

    return WtlError(exc, component_name, permanent)