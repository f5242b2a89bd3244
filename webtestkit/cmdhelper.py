"""Helpers for building environments of child processes."""

from __future__ import annotations

import os
from typing import Mapping, Sequence


def update_env(env: Sequence[str], name: str, value: str) -> list[str]:
    """Return env with every definition of name replaced by name=value at the end."""
    prefix = name + "="
    updated = [entry for entry in env if not entry.startswith(prefix)]
    updated.append(prefix + value)
    return updated


def bulk_update_env(env: Sequence[str], update: Mapping[str, str]) -> list[str]:
    """Return env with every variable in update set to its new value."""
    result = list(env)
    for name, value in update.items():
        result = update_env(result, name, value)
    return result


def is_truthy_env(name: str) -> bool:
    """Return True if name is set to something other than '', '0' or 'false'."""
    value = os.environ.get(name, "")
    return value not in ("", "0") and value.lower() != "false"