"""
Positional field layouts for the ``bat`` and ``pwr`` console tables -- single
source of truth.

The console prints one whitespace-separated row per battery cell (``bat``)
or power module (``pwr``).  Columns are purely positional, so each layout is
an ordered table of :class:`FieldDef` entries mapping a token position to a
record field and the decoder for it.  Positions not listed (e.g. the
``pwr`` columns 4-7 and the two-token timestamp at 13-14) are ignored.

Example ``bat`` row::

    1  3750  0  301  Charge  Normal  Normal  Normal  85%  3450  mAH  0000000000000000

CHANGELOG:
- 2026-10-13: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from exporter.src.decoders import (
    decode_capacity,
    decode_int,
    decode_percent,
    decode_state,
    passthrough,
)

# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldDef:
    """Definition of a single positional column.

    Attributes:
        position: Zero-based index of the first token of this column.
        name: Target attribute on the record model.
        decoder: Callable receiving ``width`` tokens and returning the value.
        critical: If True a decode failure drops the whole line; otherwise
            the field is set to the sentinel and assembly continues.
        width: Number of consecutive tokens passed to *decoder*.
    """

    position: int
    name: str
    decoder: Callable[..., Any]
    critical: bool = False
    width: int = 1

    @property
    def end(self) -> int:
        """One past the last token position used by this column."""
        return self.position + self.width


# ---------------------------------------------------------------------------
# Battery cell table (``bat`` / ``bat+N``)
# ---------------------------------------------------------------------------

BATTERY_MIN_TOKENS: int = 12
"""Rows with fewer tokens are rejected as structurally incomplete."""

BATTERY_FIELDS: tuple[FieldDef, ...] = (
    FieldDef(0, "id", decode_int, critical=True),
    FieldDef(1, "volt", decode_int, critical=True),  # mV
    FieldDef(2, "curr", decode_int, critical=True),  # mA
    FieldDef(3, "temp", decode_int, critical=True),
    FieldDef(4, "base_state", decode_state),
    FieldDef(5, "volt_state", passthrough),
    FieldDef(6, "curr_state", passthrough),
    FieldDef(7, "temp_state", passthrough),
    FieldDef(8, "soc", decode_percent),
    FieldDef(9, "coulomb", decode_capacity, width=2),  # value, "mAH"
    FieldDef(11, "bal", passthrough),
)

# ---------------------------------------------------------------------------
# Power module table (``pwr``)
# ---------------------------------------------------------------------------

POWER_MIN_TOKENS: int = 19
"""Rows with fewer tokens are rejected as structurally incomplete."""

POWER_FIELDS: tuple[FieldDef, ...] = (
    FieldDef(0, "id", decode_int, critical=True),
    FieldDef(1, "volt", decode_int, critical=True),  # mV
    FieldDef(2, "curr", decode_int, critical=True),  # mA
    FieldDef(3, "temp", decode_int, critical=True),  # board temperature
    FieldDef(8, "base_state", decode_state),
    FieldDef(9, "volt_state", passthrough),
    FieldDef(10, "curr_state", passthrough),
    FieldDef(11, "temp_state", passthrough),
    # The firmware prints SOC in the "Coulomb" column; it is stored in the
    # record's coulomb field, as the console labels it.
    FieldDef(12, "coulomb", decode_percent),
    FieldDef(15, "bv_state", passthrough),
    FieldDef(16, "bt_state", passthrough),
    FieldDef(17, "mos_temp", passthrough),  # raw 0.1 C string
    FieldDef(18, "mt_state", passthrough),
)


def _check_layout(fields: tuple[FieldDef, ...], min_tokens: int) -> None:
    for field in fields:
        if field.end > min_tokens:
            msg = (
                f"Field '{field.name}' ends at token {field.end}, "
                f"beyond the minimum row width {min_tokens}"
            )
            raise ValueError(msg)


_check_layout(BATTERY_FIELDS, BATTERY_MIN_TOKENS)
_check_layout(POWER_FIELDS, POWER_MIN_TOKENS)
