"""
Exporter main loop for the Pylontech console-to-Prometheus pipeline.

Runs two concurrent asyncio tasks:
1. **Scrape loop**: every ``REFRESH_SECONDS`` fetches the ``pwr`` dump,
   parses and publishes the power modules, then fetches and publishes one
   ``bat`` dump per power unit found.
2. **HTTP server**: uvicorn serving the FastAPI app with ``/metrics`` and
   ``/health``.

A failure in one scrape step is logged and counted on
``scraper_errors_total``; it never stops the loop.  Graceful shutdown on
SIGTERM/SIGINT sets a shared asyncio.Event that stops both tasks.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-16: Take bat command/label numbering from settings (STORY-010)
- 2026-10-15: Serve /metrics via FastAPI + uvicorn (STORY-011)
- 2026-10-14: Initial creation (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import signal
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from exporter.src.parser import parse_battery_lines, parse_power_lines

if TYPE_CHECKING:
    import uvicorn

    from exporter.src.config import ExporterSettings
    from exporter.src.fetcher import ConsoleFetcher
    from exporter.src.health import ScrapeHealth
    from exporter.src.metrics import ExporterMetrics

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(*, verbose: bool = False) -> None:
    """Configure structured JSON logging for the exporter.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    Per-cycle progress messages are DEBUG and only appear when *verbose*.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: object) -> None:
    """Log a config summary at startup.

    Args:
        settings: An ExporterSettings instance (or any object with the same attrs).
    """
    logger.info(
        "Exporter starting with config: "
        "device_ip=%s, device_port=%s, refresh_seconds=%s, "
        "fetch_timeout_s=%s, port=%s, prom_namespace=%s, "
        "pwr_command=%s, bat_command_template=%s, bat_label_template=%s, "
        "log_verbose=%s, health_path=%s",
        settings.device_ip,  # type: ignore[attr-defined]
        settings.device_port,  # type: ignore[attr-defined]
        settings.refresh_seconds,  # type: ignore[attr-defined]
        settings.fetch_timeout_s,  # type: ignore[attr-defined]
        settings.port,  # type: ignore[attr-defined]
        settings.prom_namespace,  # type: ignore[attr-defined]
        settings.pwr_command,  # type: ignore[attr-defined]
        settings.bat_command_template,  # type: ignore[attr-defined]
        settings.bat_label_template,  # type: ignore[attr-defined]
        settings.log_verbose,  # type: ignore[attr-defined]
        settings.health_path,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Single-step functions (easily testable)
# ---------------------------------------------------------------------------


async def scrape_power(
    *,
    fetcher: ConsoleFetcher,
    metrics: ExporterMetrics,
    command: str = "pwr",
) -> int:
    """Fetch, parse and publish the power modules.

    Args:
        fetcher: Console fetcher for the device.
        metrics: Metrics sink.
        command: Console command listing the power modules.

    Returns:
        The number of power modules parsed; 0 if the fetch failed.
    """
    lines = await fetcher.fetch(command)
    if lines is None:
        logger.warning("Error fetching PWR data (command: %s)", command)
        metrics.record_error("pwr_fetch")
        return 0

    result = parse_power_lines(lines)
    metrics.record_diagnostics("pwr", result)

    if not result.records:
        logger.warning("No PWR data parsed.")
        return 0

    for record in result.records:
        metrics.update_power(record)

    logger.debug("Successfully processed %d PWR records.", len(result.records))
    return len(result.records)


async def scrape_battery(
    *,
    fetcher: ConsoleFetcher,
    metrics: ExporterMetrics,
    unit_count: int,
    command_for: Callable[[int], str],
    label_for: Callable[[int], str],
) -> int:
    """Fetch, parse and publish the battery cells of every power unit.

    Unit numbers run from 1 to *unit_count*; *command_for* and *label_for*
    map a unit number to its console command and metric ``unit`` label.
    A failed fetch for one unit is counted and the next unit is tried.

    Returns:
        Total battery records published across all units.
    """
    if unit_count <= 0:
        logger.warning("No power units available for BAT data processing.")
        return 0

    total_records = 0
    units_processed = 0

    for unit in range(1, unit_count + 1):
        command = command_for(unit)
        label = label_for(unit)

        logger.debug("Fetching BAT data for unit %s (command: %s)...", label, command)
        lines = await fetcher.fetch(command)
        if lines is None:
            logger.warning("Error fetching BAT data for unit %s", label)
            metrics.record_error(f"bat_fetch_{label}")
            continue

        result = parse_battery_lines(lines)
        metrics.record_diagnostics(f"bat_{label}", result)

        if not result.records:
            logger.warning("No BAT data parsed for unit %s.", label)

        for record in result.records:
            metrics.update_battery(label, record)

        total_records += len(result.records)
        units_processed += 1

    if units_processed:
        logger.debug(
            "Finished processing BAT data for %d unit(s). Total records processed: %d.",
            units_processed,
            total_records,
        )
    else:
        logger.warning(
            "Attempted to process BAT data, but no units were successfully fetched."
        )
    return total_records


async def _scrape_once(
    *,
    fetcher: ConsoleFetcher,
    metrics: ExporterMetrics,
    settings: ExporterSettings,
    health: ScrapeHealth | None,
) -> None:
    """Execute one power-then-battery scrape cycle.

    Catches all exceptions so that the caller's loop is never broken.
    """
    power_units = 0
    battery_records = 0
    try:
        logger.debug("Fetching and processing device data...")
        power_units = await scrape_power(
            fetcher=fetcher,
            metrics=metrics,
            command=settings.pwr_command,
        )
        battery_records = await scrape_battery(
            fetcher=fetcher,
            metrics=metrics,
            unit_count=power_units,
            command_for=settings.bat_command,
            label_for=settings.bat_label,
        )
    except Exception:
        logger.error("Scrape cycle error", exc_info=True)

    if health is not None:
        try:
            health.record_scrape(power_units=power_units, battery_records=battery_records)
        except Exception:
            logger.warning("Failed to write health file", exc_info=True)


# ---------------------------------------------------------------------------
# Loop runners
# ---------------------------------------------------------------------------


async def _scrape_loop(
    *,
    fetcher: ConsoleFetcher,
    metrics: ExporterMetrics,
    settings: ExporterSettings,
    shutdown_event: asyncio.Event,
    health: ScrapeHealth | None = None,
) -> None:
    """Run the scrape loop until shutdown_event is set.

    The first cycle runs immediately, then one cycle per
    ``settings.refresh_seconds``.
    """
    logger.info("Scrape loop started (interval=%ss)", settings.refresh_seconds)
    while not shutdown_event.is_set():
        await _scrape_once(
            fetcher=fetcher,
            metrics=metrics,
            settings=settings,
            health=health,
        )
        # Use wait with timeout so we can check shutdown between sleeps
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(
                shutdown_event.wait(),
                timeout=settings.refresh_seconds,
            )
    logger.info("Scrape loop stopped")


async def _stop_server_on(shutdown_event: asyncio.Event, server: uvicorn.Server) -> None:
    await shutdown_event.wait()
    server.should_exit = True


async def _serve(server: uvicorn.Server, shutdown_event: asyncio.Event) -> None:
    """Run uvicorn until shutdown; if uvicorn exits first, stop the scraper."""
    watcher = asyncio.create_task(_stop_server_on(shutdown_event, server))
    try:
        await server.serve()
    finally:
        shutdown_event.set()
        watcher.cancel()


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> None:
    """Async entrypoint: load config, build components, run both tasks.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.
    """
    import uvicorn

    from exporter.src.app import create_app
    from exporter.src.config import ExporterSettings
    from exporter.src.fetcher import ConsoleFetcher
    from exporter.src.health import ScrapeHealth
    from exporter.src.metrics import ExporterMetrics

    settings = ExporterSettings()
    configure_logging(verbose=settings.log_verbose)
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    metrics = ExporterMetrics(
        settings.prom_namespace,
        battery_temp_divisor=settings.battery_temp_divisor,
        power_temp_divisor=settings.power_temp_divisor,
        mos_temp_divisor=settings.mos_temp_divisor,
    )
    health = ScrapeHealth(settings.health_path)
    fetcher = ConsoleFetcher(
        host=settings.device_ip,
        port=settings.device_port,
        timeout_s=settings.fetch_timeout_s,
    )

    server = uvicorn.Server(
        uvicorn.Config(
            create_app(metrics, health),
            host="0.0.0.0",
            port=settings.port,
            log_config=None,
        )
    )
    logger.info("Starting HTTP server on :%s", settings.port)

    await asyncio.gather(
        _serve(server, shutdown_event),
        _scrape_loop(
            fetcher=fetcher,
            metrics=metrics,
            settings=settings,
            shutdown_event=shutdown_event,
            health=health,
        ),
    )
    logger.info("Shutdown complete")


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the exporter."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
