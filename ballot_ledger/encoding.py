# ballot_ledger/encoding.py
"""
Canonical record encoding.

Every participant that re-executes a transition must write byte-identical
state, so records are serialized with keys sorted at every nesting level,
no whitespace, and UTF-8 text (non-ASCII kept as-is, the same bytes a
deterministic JSON.stringify of the sorted record would produce).
"""
import json
import math
from typing import Any, Mapping


def canonicalize(value: Any) -> Any:
    """Return a copy of value with every mapping's keys in ascending order."""
    if isinstance(value, Mapping):
        return {str(k): canonicalize(value[k]) for k in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [canonicalize(v) for v in value]
    return value


def encode_str(record: Any) -> str:
    """
    Serialize a record to its canonical JSON text.

    Raises:
        TypeError: value is not JSON-serializable
        ValueError: value contains NaN or infinity
    """
    return json.dumps(
        canonicalize(record),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def encode(record: Any) -> bytes:
    """Canonical bytes of a record, as stored in the world state."""
    return encode_str(record).encode("utf-8")


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"number {text} is out of range")
    return value


def decode(raw) -> Any:
    """
    Parse stored JSON strictly.

    NaN, Infinity and numbers that overflow a float are rejected, so anything
    this returns can be re-encoded canonically.

    Raises:
        ValueError: raw is not valid JSON (UnicodeDecodeError included)
    """
    return json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
