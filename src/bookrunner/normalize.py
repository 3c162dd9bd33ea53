# normalize.py
"""
Canonical value model for decoded runbook data.

Decoders hand us dicts with non-string keys, ordered key/value pairs and
plain Python ints. Everything the compiler stores goes through `normalize`
first so that the rest of the engine only ever sees:

    None | bool | Int64 | UInt64 | float | str | list | dict[str, ...]
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, NamedTuple, Sequence, Union

from .errors import MalformedSection

INT64_MIN = -(1 << 63)
UINT64_MAX = (1 << 64) - 1


class Int64(int):
    """Signed 64-bit integer (every negative integer normalizes to this)."""

    def __repr__(self) -> str:
        return f"Int64({int(self)})"

    __str__ = int.__repr__


class UInt64(int):
    """Unsigned 64-bit integer (every non-negative integer normalizes to this)."""

    def __repr__(self) -> str:
        return f"UInt64({int(self)})"

    __str__ = int.__repr__


class MapItem(NamedTuple):
    key: Any
    value: Any


class MapSlice(list):
    """Ordered key/value pairs; a mapping that may carry any key type."""

    @classmethod
    def of(cls, *pairs: tuple) -> "MapSlice":
        return cls(MapItem(k, v) for k, v in pairs)


CanonicalValue = Union[None, bool, Int64, UInt64, float, str, List[Any], Dict[str, Any]]


def stringify_key(key: Any) -> str:
    # keys are spelled the way a YAML document would spell them
    if key is None:
        return "null"
    if isinstance(key, bool):
        return "true" if key else "false"
    return str(key)


def _normalize_int(v: int) -> int:
    if isinstance(v, (Int64, UInt64)):
        return v
    if v < 0:
        return Int64(v) if v >= INT64_MIN else v
    return UInt64(v) if v <= UINT64_MAX else v


def normalize(v: Any) -> CanonicalValue:
    """Recursively convert a decoded value into the canonical value model."""
    if isinstance(v, MapSlice):
        return {stringify_key(item.key): normalize(item.value) for item in v}
    if isinstance(v, Mapping):
        return {stringify_key(k): normalize(vv) for k, vv in v.items()}
    if isinstance(v, (list, tuple)):
        return [normalize(vv) for vv in v]
    if isinstance(v, bool):
        return v
    if isinstance(v, int):
        return _normalize_int(v)
    return v


def normalize_mapping(v: Any, section: str) -> Dict[str, Any]:
    """Normalize `v` and require the result to be a mapping."""
    if v is None:
        return {}
    res = normalize(v)
    if not isinstance(res, dict):
        raise MalformedSection(section, v)
    return res


def normalize_mapping_list(values: Sequence[Any], section: str) -> List[Dict[str, Any]]:
    """Normalize a list of maps; every element must reduce to a mapping."""
    res: List[Dict[str, Any]] = []
    for i, vv in enumerate(values):
        m = normalize(vv)
        if not isinstance(m, dict):
            raise MalformedSection(f"{section}[{i}]", vv, f"failed to normalize {section} value at index {i}")
        res.append(m)
    return res
