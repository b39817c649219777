from __future__ import annotations

import copy
from typing import Any, Mapping


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``override`` merged on top of ``base`` without mutating either.

    Mappings merge recursively, lists concatenate (``base`` entries first) and
    any other value from ``override`` replaces the one in ``base``.
    """
    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in override.items():
        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(existing, value)
        elif isinstance(existing, list) and isinstance(value, list):
            merged[key] = existing + copy.deepcopy(value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
