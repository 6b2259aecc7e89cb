# src/etlguard/core/canonical.py
"""Deterministic JSON and hashing for cache keys.

Values are first reduced to JSON primitives (enums to their values,
tuples to lists, sets to sorted lists), then serialized with the RFC 8785
JSON Canonicalization Scheme. The same structure therefore always yields
the same bytes, whatever the insertion order of its mappings or sets.

Non-finite floats are refused rather than coerced.
"""

from __future__ import annotations

import hashlib
import math
from collections.abc import Mapping
from enum import Enum
from typing import Any

import rfc8785


def _normalize_value(obj: Any) -> Any:
    """Reduce a scalar to a JSON primitive.

    Raises:
        ValueError: On NaN or +/-Infinity
        TypeError: On a type with no JSON form
    """
    # StrEnum members are also str, so enums are unwrapped first
    if isinstance(obj, Enum):
        return _normalize_value(obj.value)

    if isinstance(obj, float) and not math.isfinite(obj):
        raise ValueError(f"Cannot canonicalize non-finite float: {obj}")

    if obj is None or isinstance(obj, str | int | float | bool):
        return obj

    raise TypeError(f"Cannot canonicalize value of type {type(obj).__name__}: {obj!r}")


def _normalize(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {str(key): _normalize(value) for key, value in data.items()}
    if isinstance(data, set | frozenset):
        return sorted((_normalize(item) for item in data), key=canonical_json)
    if isinstance(data, list | tuple):
        return [_normalize(item) for item in data]
    return _normalize_value(data)


def canonical_json(obj: Any) -> str:
    """RFC 8785 text of ``obj``.

    Raises:
        ValueError: If ``obj`` contains NaN or Infinity
        TypeError: If ``obj`` contains a value with no JSON form
    """
    encoded: bytes = rfc8785.dumps(_normalize(obj))
    return encoded.decode("utf-8")


def stable_hash(obj: Any) -> str:
    """SHA-256 hex digest of ``canonical_json(obj)``."""
    return hashlib.sha256(canonical_json(obj).encode("utf-8")).hexdigest()
