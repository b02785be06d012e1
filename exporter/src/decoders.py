"""
Per-field token decoders for Pylontech console output.

Each decoder turns one whitespace-delimited token (two for capacity) into a
Python value.  Decoders that can fail raise :class:`DecodeError`; the caller
decides whether a failure drops the whole line or degrades a single field
to :data:`SENTINEL`.

All functions are pure: no I/O, no logging, no state.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

SENTINEL: int = -1
"""Marks a supplementary field (SOC, coulomb) that could not be decoded."""

UNKNOWN_STATE: int = -1
"""Base-state code for any token outside :data:`BASE_STATES`."""

BASE_STATES: dict[str, int] = {
    "Charge": 0,
    "Dischg": 1,
    "Idle": 2,
    "Balance": 3,
}
"""Maps console base-state tokens to their numeric gauge value."""


class DecodeError(ValueError):
    """A token could not be decoded into the requested type."""


def decode_int(token: str) -> int:
    """Parse a base-10 signed integer, ignoring surrounding whitespace.

    Raises:
        DecodeError: If anything other than an optional sign and digits
            remains after trimming.
    """
    text = token.strip()
    # int() also accepts "1_000" and full-width digits; the console never
    # emits either, so reject them.
    body = text[1:] if text[:1] in ("+", "-") else text
    if not body.isascii() or not body.isdigit():
        raise DecodeError(f"not an integer: {token!r}")
    return int(text)


def _to_int8(value: int) -> int:
    """Wrap *value* into the signed 8-bit range (two's complement)."""
    value &= 0xFF
    if value >= 0x80:
        value -= 0x100
    return value


def decode_percent(token: str) -> int:
    """Decode ``"85%"`` or ``"85"`` to ``85``, narrowed to a signed byte."""
    text = token[:-1] if token.endswith("%") else token
    try:
        value = decode_int(text)
    except DecodeError as exc:
        raise DecodeError(f"not a percentage: {token!r}") from exc
    return _to_int8(value)


def decode_capacity(value: str, unit: str) -> int:
    """Decode a remaining-capacity reading such as ``("3450", "mAH")``.

    The unit token is accepted for layout purposes only and is not checked.
    """
    try:
        return decode_int(value)
    except DecodeError as exc:
        raise DecodeError(f"not a capacity: {value!r} {unit!r}") from exc


def decode_state(token: str) -> int:
    """Map a base-state token to its code; unknown tokens give -1."""
    return BASE_STATES.get(token, UNKNOWN_STATE)


def passthrough(token: str) -> str:
    return token
