"""
Pure line-record parser for Pylontech ``bat`` and ``pwr`` console dumps.

Takes the ordered text lines returned by the fetcher and turns every
data row into a BatteryRecord or PowerRecord, using the positional layouts
in :mod:`exporter.src.fields`.  A bad row never aborts the batch:

- Noise (headers, blank lines, ``Absent`` power slots) is skipped silently.
- A data row with too few tokens is dropped (structural skip).
- A data row whose id/volt/curr/temp fails to decode is dropped
  (critical-field skip).
- A row whose SOC or coulomb fails to decode is kept with ``-1`` in that
  field (degraded record).

Every skip is reported as a Diagnostic on the returned ParseResult and
logged; the caller turns the counters into error metrics.

This is a pure function module: no I/O beyond logging, no shared state, so
one scrape per unit may run concurrently.

CHANGELOG:
- 2026-10-19: Match ASCII digits only when classifying rows (STORY-012)
- 2026-10-14: Count degraded fields separately from skips (STORY-006)
- 2026-10-13: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from exporter.src.decoders import SENTINEL, DecodeError
from exporter.src.fields import (
    BATTERY_FIELDS,
    BATTERY_MIN_TOKENS,
    POWER_FIELDS,
    POWER_MIN_TOKENS,
    FieldDef,
)
from exporter.src.models import (
    COUNTER_BATCH_EMPTY,
    COUNTER_CRITICAL,
    COUNTER_DEGRADED,
    COUNTER_STRUCTURAL,
    BatteryRecord,
    Diagnostic,
    ParseResult,
    PowerRecord,
    RecordT,
    SkipReason,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------

_BATTERY_ROW_RE = re.compile(r"^\d+\s+\d+", re.ASCII)
"""Battery rows start with two integers: cell index and voltage."""

_POWER_ROW_RE = re.compile(r"^\d+\s+", re.ASCII)
"""Power rows only need a leading index; the section holds marker rows too."""

ABSENT_MARKER = "Absent"


class LineKind(str, Enum):
    DATA = "data"
    NOISE = "noise"


def classify_battery_line(line: str) -> LineKind:
    """Return DATA if *line* looks like a ``bat`` row, else NOISE."""
    text = line.strip()
    if text and _BATTERY_ROW_RE.match(text):
        return LineKind.DATA
    return LineKind.NOISE


def classify_power_line(line: str) -> LineKind:
    """Return DATA if *line* looks like a ``pwr`` row, else NOISE.

    Any line mentioning ``Absent`` is noise: the slot has no module in it.
    """
    text = line.strip()
    if not text or ABSENT_MARKER in text:
        return LineKind.NOISE
    if _POWER_ROW_RE.match(text):
        return LineKind.DATA
    return LineKind.NOISE


def tokenize(line: str) -> list[str]:
    """Split a row on runs of whitespace."""
    return line.split()


# ---------------------------------------------------------------------------
# Row assembly
# ---------------------------------------------------------------------------


class _CriticalFieldError(Exception):
    """A load-bearing column could not be decoded."""

    def __init__(self, field: FieldDef, cause: DecodeError) -> None:
        super().__init__(f"{field.name}: {cause}")
        self.field = field


def _assemble(
    tokens: Sequence[str],
    layout: tuple[FieldDef, ...],
    *,
    kind: str,
    line_no: int,
) -> tuple[dict[str, Any], int]:
    """Decode every column of *layout* from *tokens*.

    Returns the field values plus the number of degraded (sentinel) fields.

    Raises:
        _CriticalFieldError: On the first critical column that fails.
    """
    values: dict[str, Any] = {}
    degraded = 0
    for field in layout:
        args = tokens[field.position : field.end]
        try:
            values[field.name] = field.decoder(*args)
        except DecodeError as exc:
            if field.critical:
                raise _CriticalFieldError(field, exc) from exc
            logger.warning(
                "%s line %d: %s, using %d (id=%s)",
                kind,
                line_no,
                exc,
                SENTINEL,
                values.get("id"),
            )
            values[field.name] = SENTINEL
            degraded += 1
    return values, degraded


def _parse_lines(
    lines: Sequence[str],
    *,
    kind: str,
    classify: Callable[[str], LineKind],
    layout: tuple[FieldDef, ...],
    min_tokens: int,
    model: type[RecordT],
) -> ParseResult[RecordT]:
    result: ParseResult[RecordT] = ParseResult()
    saw_data = False

    for line_no, raw in enumerate(lines, start=1):
        if classify(raw) is LineKind.NOISE:
            continue
        saw_data = True
        line = raw.strip()
        tokens = tokenize(line)

        if len(tokens) < min_tokens:
            reason = (
                f"insufficient fields (got {len(tokens)}, "
                f"expected at least {min_tokens})"
            )
            logger.warning("Skipping %s line %d: %s: '%s'", kind, line_no, reason, line)
            result.diagnostics.append(
                Diagnostic(
                    line_no=line_no,
                    kind=SkipReason.STRUCTURAL,
                    reason=reason,
                    line=line,
                )
            )
            result.counters[COUNTER_STRUCTURAL] += 1
            continue

        try:
            values, degraded = _assemble(tokens, layout, kind=kind, line_no=line_no)
        except _CriticalFieldError as exc:
            reason = f"failed to parse {exc}"
            logger.warning("Skipping %s line %d: %s: '%s'", kind, line_no, reason, line)
            result.diagnostics.append(
                Diagnostic(
                    line_no=line_no,
                    kind=SkipReason.CRITICAL_FIELD,
                    reason=reason,
                    line=line,
                )
            )
            result.counters[COUNTER_CRITICAL] += 1
            continue

        result.counters[COUNTER_DEGRADED] += degraded
        result.records.append(model(**values))

    if saw_data and not result.records:
        logger.warning(
            "No %s records were parsed although some lines looked like data; "
            "the console format may have changed",
            kind,
        )
        result.empty_batch_warning = True
        result.counters[COUNTER_BATCH_EMPTY] = 1

    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_battery_lines(lines: Sequence[str]) -> ParseResult[BatteryRecord]:
    """Parse the lines of a ``bat`` response into BatteryRecords.

    Args:
        lines: Response lines in order, as returned by the fetcher.

    Returns:
        A :class:`ParseResult` holding the records in input order, one
        Diagnostic per dropped data row, and the skip counters.  Never
        raises for content problems.
    """
    return _parse_lines(
        lines,
        kind="BAT",
        classify=classify_battery_line,
        layout=BATTERY_FIELDS,
        min_tokens=BATTERY_MIN_TOKENS,
        model=BatteryRecord,
    )


def parse_power_lines(lines: Sequence[str]) -> ParseResult[PowerRecord]:
    """Parse the lines of a ``pwr`` response into PowerRecords.

    Same contract as :func:`parse_battery_lines`; rows containing
    ``Absent`` are treated as noise.
    """
    return _parse_lines(
        lines,
        kind="PWR",
        classify=classify_power_line,
        layout=POWER_FIELDS,
        min_tokens=POWER_MIN_TOKENS,
        model=PowerRecord,
    )
