"""
Prometheus metrics for parsed battery and power records.

All gauges and the error counter live on an :class:`ExporterMetrics`
instance with its own CollectorRegistry, so nothing is registered at import
time and tests can build as many independent instances as they need.

Metric families (``{ns}`` is the configured namespace):

- ``{ns}_scraper_errors_total{type}``: fetch failures and parser skips.
- ``{ns}_battery_*{unit,id}``: volt, curr, temp_celsius, base_state, soc,
  coulomb, bal_active_count.
- ``{ns}_power_*{id}``: volt, curr, temp_celsius, base_state, soc_percent,
  mos_temp_celsius.

CHANGELOG:
- 2026-10-15: Publish parser diagnostics as error counts (STORY-009)
- 2026-10-14: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from exporter.src.models import (
    COUNTER_BATCH_EMPTY,
    COUNTER_CRITICAL,
    COUNTER_STRUCTURAL,
    BatteryRecord,
    ParseResult,
    PowerRecord,
)

logger = logging.getLogger(__name__)


# Parser counter name -> suffix of the scraper_errors_total "type" label.
_DIAGNOSTIC_ERROR_TYPES: dict[str, str] = {
    COUNTER_STRUCTURAL: "skipped_structural",
    COUNTER_CRITICAL: "skipped_critical_field",
    COUNTER_BATCH_EMPTY: "batch_empty",
}


class ExporterMetrics:
    """Owns the registry and every metric the exporter publishes.

    Args:
        namespace: Prometheus namespace prefix for all metric names.
        battery_temp_divisor: Raw ``bat`` temperature / divisor = Celsius.
        power_temp_divisor: Raw ``pwr`` board temperature / divisor = Celsius.
        mos_temp_divisor: Raw ``pwr`` MOS temperature / divisor = Celsius.
    """

    def __init__(
        self,
        namespace: str = "default",
        *,
        battery_temp_divisor: float = 1000.0,
        power_temp_divisor: float = 1000.0,
        mos_temp_divisor: float = 10.0,
    ) -> None:
        self.registry = CollectorRegistry()
        self._battery_temp_divisor = battery_temp_divisor
        self._power_temp_divisor = power_temp_divisor
        self._mos_temp_divisor = mos_temp_divisor

        self.scrape_errors = Counter(
            "errors",
            "Total number of errors encountered during data scraping or parsing.",
            ["type"],
            namespace=namespace,
            subsystem="scraper",
            registry=self.registry,
        )

        def battery(name: str, doc: str) -> Gauge:
            return Gauge(
                name,
                doc,
                ["unit", "id"],
                namespace=namespace,
                subsystem="battery",
                registry=self.registry,
            )

        def power(name: str, doc: str) -> Gauge:
            return Gauge(
                name,
                doc,
                ["id"],
                namespace=namespace,
                subsystem="power",
                registry=self.registry,
            )

        self.battery_volt = battery("volt", "Battery voltage in millivolts.")
        self.battery_curr = battery("curr", "Battery current in milliamps.")
        self.battery_temp = battery("temp_celsius", "Battery temperature in degrees Celsius.")
        self.battery_base_state = battery(
            "base_state",
            "Battery base state code "
            "(0: Charge, 1: Dischg, 2: Idle, 3: Balance, -1: Unknown).",
        )
        self.battery_soc = battery("soc", "Battery State of Charge in percent (-1: unparsed).")
        self.battery_coulomb = battery(
            "coulomb", "Battery remaining capacity in milliampere-hours (-1: unparsed)."
        )
        self.battery_bal_active = battery(
            "bal_active_count",
            "Number of active balancing channels. If BAL is 'N' this is 0.",
        )

        self.power_volt = power("volt", "Power supply voltage in millivolts.")
        self.power_curr = power("curr", "Power supply current in milliamps.")
        self.power_temp = power(
            "temp_celsius", "Power supply board temperature in degrees Celsius."
        )
        self.power_base_state = power(
            "base_state",
            "Power supply base state code "
            "(0: Charge, 1: Dischg, 2: Idle, 3: Balance, -1: N/A).",
        )
        self.power_soc = power(
            "soc_percent",
            "Power supply State of Charge percentage (from the 'Coulomb' column).",
        )
        self.power_mos_temp = power(
            "mos_temp_celsius", "Power supply MOS temperature in degrees Celsius."
        )

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update_battery(self, unit_label: str, record: BatteryRecord) -> None:
        """Set all battery gauges for one cell of *unit_label*."""
        labels = (unit_label, str(record.id))
        self.battery_volt.labels(*labels).set(record.volt)
        self.battery_curr.labels(*labels).set(record.curr)
        self.battery_temp.labels(*labels).set(record.temp / self._battery_temp_divisor)
        self.battery_base_state.labels(*labels).set(record.base_state)
        self.battery_soc.labels(*labels).set(record.soc)
        self.battery_coulomb.labels(*labels).set(record.coulomb)
        self.battery_bal_active.labels(*labels).set(record.balance_active_count)

    def update_power(self, record: PowerRecord) -> None:
        """Set all power gauges for one module.

        The MOS temperature arrives as a raw token; if it is not numeric the
        gauge is left untouched and a warning is logged.
        """
        power_id = str(record.id)
        self.power_volt.labels(power_id).set(record.volt)
        self.power_curr.labels(power_id).set(record.curr)
        self.power_temp.labels(power_id).set(record.temp / self._power_temp_divisor)
        self.power_base_state.labels(power_id).set(record.base_state)
        self.power_soc.labels(power_id).set(record.coulomb)

        try:
            mos_temp = float(record.mos_temp)
        except ValueError:
            logger.warning(
                "Could not parse MosTemp '%s' for power_id %s",
                record.mos_temp,
                power_id,
            )
            return
        self.power_mos_temp.labels(power_id).set(mos_temp / self._mos_temp_divisor)

    def record_error(self, error_type: str) -> None:
        """Increment the scrape error counter for *error_type*."""
        self.scrape_errors.labels(error_type).inc()

    def record_diagnostics(self, prefix: str, result: ParseResult) -> None:
        """Add a parse result's skip counters to the error counter.

        Each non-zero counter is added under the type
        ``{prefix}_{skipped_structural|skipped_critical_field|batch_empty}``.
        Degraded fields and noise lines are not errors and are not counted.
        """
        for counter, suffix in _DIAGNOSTIC_ERROR_TYPES.items():
            amount = result.counters.get(counter, 0)
            if amount:
                self.scrape_errors.labels(f"{prefix}_{suffix}").inc(amount)

    # ------------------------------------------------------------------
    # Exposition
    # ------------------------------------------------------------------

    def render(self) -> bytes:
        """Return the registry in Prometheus text exposition format."""
        return generate_latest(self.registry)
