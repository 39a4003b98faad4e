"""Canonical JSON rendering and content hashing for generated worlds."""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from hashlib import sha256
from typing import Any, Mapping


def to_jsonable(value: Any) -> Any:
    """Convert records, enums and containers into JSON primitives.

    Records that know their wire layout (``to_dict``) use it; other dataclasses
    are rendered field by field.  Sets are sorted so that iteration order never
    leaks into the output.
    """

    if value is None or isinstance(value, (str, int, float, bool)):
        if isinstance(value, Enum):
            return value.value
        return value
    if isinstance(value, Enum):
        return value.value
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_jsonable(to_dict())
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {str(key): to_jsonable(val) for key, val in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((to_jsonable(item) for item in value), key=lambda item: json.dumps(item, sort_keys=True))
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    raise TypeError(f"Unsupported value type for canonical JSON: {type(value)!r}")


def stable_stringify(value: Any) -> str:
    """Sorted-key, compact JSON; arrays keep insertion order."""

    return json.dumps(to_jsonable(value), sort_keys=True, separators=(",", ":"), allow_nan=False)


def hash_object(value: Any) -> str:
    return sha256(stable_stringify(value).encode("utf-8")).hexdigest()


__all__ = ["hash_object", "stable_stringify", "to_jsonable"]
