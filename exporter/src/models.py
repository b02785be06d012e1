"""
Pydantic models for parsed console records and parse diagnostics.

Defines BatteryRecord (one ``bat`` row) and PowerRecord (one ``pwr`` row),
plus the ParseResult envelope the batch parser returns.  Records are frozen:
they are built once per scrape cycle and handed to the metrics layer.

Supplementary fields that failed to decode hold the sentinel ``-1``; the
``*_known`` properties let callers treat them as optional.

CHANGELOG:
- 2026-10-13: Add balance_active_count (STORY-007)
- 2026-10-13: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from exporter.src.decoders import SENTINEL


class BatteryRecord(BaseModel):
    """A single battery cell row from the ``bat`` command.

    Attributes:
        id: Cell index, unique within one scrape of one unit.
        volt: Cell voltage in millivolts.
        curr: Cell current in milliamps.
        temp: Cell temperature as printed by the console.
        base_state: 0 Charge, 1 Dischg, 2 Idle, 3 Balance, -1 unknown.
        volt_state: Voltage health flag (e.g. ``"Normal"``).
        curr_state: Current health flag.
        temp_state: Temperature health flag.
        soc: State of charge in percent, -1 if undecodable.
        coulomb: Remaining capacity in mAh, -1 if undecodable.
        bal: Balance-channel bitmask (``"0000..."``) or ``"Y"``/``"N"``.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    volt: int
    curr: int
    temp: int
    base_state: int
    volt_state: str
    curr_state: str
    temp_state: str
    soc: int = SENTINEL
    coulomb: int = SENTINEL
    bal: str = ""

    @property
    def soc_known(self) -> bool:
        return self.soc != SENTINEL

    @property
    def coulomb_known(self) -> bool:
        return self.coulomb != SENTINEL

    @property
    def balance_active_count(self) -> int:
        """Number of balancing channels currently active.

        ``"Y"`` counts as one channel, ``"N"`` or empty as none, and a
        bitmask counts its ``'1'`` characters.
        """
        if self.bal == "Y":
            return 1
        if self.bal in ("", "N"):
            return 0
        return self.bal.count("1")


class PowerRecord(BaseModel):
    """A single power module row from the ``pwr`` command.

    ``coulomb`` carries the percentage printed in the console's Coulomb
    column (decoded like SOC).  ``mos_temp`` is kept as the raw token;
    converting it is the metrics layer's job.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    volt: int
    curr: int
    temp: int
    base_state: int
    volt_state: str
    curr_state: str
    temp_state: str
    coulomb: int = SENTINEL
    bv_state: str = ""
    bt_state: str = ""
    mos_temp: str = ""
    mt_state: str = ""

    @property
    def coulomb_known(self) -> bool:
        return self.coulomb != SENTINEL


class SkipReason(str, Enum):
    """Why a data-shaped line produced no record."""

    STRUCTURAL = "structural"
    CRITICAL_FIELD = "critical_field"


class Diagnostic(BaseModel):
    """One skipped line, with its 1-based position in the response."""

    model_config = ConfigDict(frozen=True)

    line_no: int
    kind: SkipReason
    reason: str
    line: str


RecordT = TypeVar("RecordT", bound=BaseModel)

COUNTER_STRUCTURAL = "skipped_structural"
COUNTER_CRITICAL = "skipped_critical_field"
COUNTER_DEGRADED = "degraded_field"
COUNTER_BATCH_EMPTY = "batch_empty_warning"


def _zero_counters() -> dict[str, int]:
    return {
        COUNTER_STRUCTURAL: 0,
        COUNTER_CRITICAL: 0,
        COUNTER_DEGRADED: 0,
        COUNTER_BATCH_EMPTY: 0,
    }


class ParseResult(BaseModel, Generic[RecordT]):
    """Outcome of parsing one command response.

    Attributes:
        records: Successfully assembled records, in input order.
        diagnostics: One entry per structural or critical-field skip.
            Classification noise (headers, blanks, ``Absent``) is not listed.
        empty_batch_warning: True when at least one line looked like data
            but no record could be assembled.
        counters: Named tallies for the error metric.
    """

    records: list[RecordT] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    empty_batch_warning: bool = False
    counters: dict[str, int] = Field(default_factory=_zero_counters)
