"""
Scrape health tracking for the exporter.

Keeps the outcome of the most recent scrape cycle in memory for the
``/health`` endpoint and, when a path is configured, mirrors it to a JSON
file after every change:

- last_scrape_ts: ISO timestamp of the most recent scrape cycle.
- last_success_ts: ISO timestamp of the last cycle that produced records.
- power_units: Number of power modules parsed in the last cycle.
- battery_records: Number of battery cells parsed in the last cycle.

CHANGELOG:
- 2026-10-15: Serve snapshot over /health, file output optional (STORY-011)
- 2026-10-14: Initial creation (STORY-011)

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


class ScrapeHealth:
    """Tracks the latest scrape cycle outcome.

    Args:
        path: Optional filesystem path for a health JSON file. Accepts str
            or Path. ``None`` keeps the state in memory only.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._last_scrape_ts: str | None = None
        self._last_success_ts: str | None = None
        self._power_units: int = 0
        self._battery_records: int = 0

    def record_scrape(self, *, power_units: int, battery_records: int) -> None:
        """Record the counts from one finished scrape cycle."""
        now = datetime.now(tz=UTC).isoformat()
        self._last_scrape_ts = now
        self._power_units = power_units
        self._battery_records = battery_records
        if power_units or battery_records:
            self._last_success_ts = now
        self._write()

    def snapshot(self) -> dict[str, Any]:
        return {
            "last_scrape_ts": self._last_scrape_ts,
            "last_success_ts": self._last_success_ts,
            "power_units": self._power_units,
            "battery_records": self._battery_records,
        }

    def _write(self) -> None:
        """Write the health JSON file with current state."""
        if self.path is None:
            return
        self.path.write_text(json.dumps(self.snapshot()))
