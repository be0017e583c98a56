"""
Deterministic JSON encoding for signing.

Two mappings holding the same keys and values encode to byte-identical strings
whatever their insertion order, so a payload signed at issuance can be rebuilt
and checked at verification time.
"""
import json
import math
from collections.abc import Mapping
from typing import Any

from didvc.exceptions import CanonicalizationError

_PRIMITIVES = (str, int, bool, type(None))


def canonical_form(value: Any) -> Any:
    """Recursively sorts mapping keys; sequences keep their element order.

    Raises:
        CanonicalizationError: If `value` holds anything that is not JSON-compatible.
    """
    if isinstance(value, _PRIMITIVES):
        return value

    if isinstance(value, float):
        if not math.isfinite(value):
            raise CanonicalizationError(f"Non-finite number {value!r} has no JSON representation.")
        return value

    if isinstance(value, (list, tuple)):
        return [canonical_form(item) for item in value]

    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                raise CanonicalizationError(f"Mapping key {key!r} is not a string.")
        return {key: canonical_form(value[key]) for key in sorted(value)}

    raise CanonicalizationError(f"Unsupported type for canonical JSON: {type(value).__name__}")


def canonicalize(value: Any) -> str:
    """Returns the compact JSON serialization of `canonical_form(value)`."""
    return json.dumps(
        canonical_form(value),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
