"""
Exporter configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
no hardcoded IPs or ports beyond defaults.

CHANGELOG:
- 2026-10-15: Make bat command/label numbering configurable (STORY-010)
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings

_UNIT_PLACEHOLDER = "{unit}"


class ExporterSettings(BaseSettings):
    """Exporter configuration for the Pylontech console-to-Prometheus pipeline.

    All values are loaded from environment variables. ``DEVICE_IP`` is the
    only required variable; everything else has a default.

    Attributes:
        device_ip: Console host (IP or hostname) on the local LAN.
        device_port: HTTP port of the console ``/req`` endpoint (default 80).
        refresh_seconds: Seconds between scrape cycles (min 1).
        fetch_timeout_s: Per-request HTTP timeout in seconds.
        port: Port the ``/metrics`` endpoint listens on (default 9100).
        prom_namespace: Prometheus metric namespace prefix.
        log_verbose: Log per-cycle progress at DEBUG level when true.
        pwr_command: Console command listing the power modules.
        bat_command_template: Console command for power unit N; ``{unit}``
            is replaced by the 1-based unit number.
        bat_label_template: Metric ``unit`` label for power unit N.
        battery_temp_divisor: Divides the raw ``bat`` temperature to get C.
        power_temp_divisor: Divides the raw ``pwr`` board temperature to get C.
        mos_temp_divisor: Divides the raw ``pwr`` MOS temperature to get C.
        health_path: Optional JSON health file, rewritten every cycle.
    """

    device_ip: str
    device_port: int = 80
    refresh_seconds: int = 30
    fetch_timeout_s: float = 15.0
    port: int = 9100
    prom_namespace: str = "default"
    log_verbose: bool = False
    pwr_command: str = "pwr"
    bat_command_template: str = "bat+{unit}"
    bat_label_template: str = "bat{unit}"
    battery_temp_divisor: float = 1000.0
    power_temp_divisor: float = 1000.0
    mos_temp_divisor: float = 10.0
    health_path: str | None = None

    @field_validator("device_port", "port")
    @classmethod
    def port_must_be_valid(cls, v: int) -> int:
        """Validate TCP ports are in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("refresh_seconds")
    @classmethod
    def refresh_seconds_must_be_positive(cls, v: int) -> int:
        """Validate the scrape interval is at least one second."""
        if v < 1:
            raise ValueError("REFRESH_SECONDS must be >= 1")
        return v

    @field_validator(
        "fetch_timeout_s",
        "battery_temp_divisor",
        "power_temp_divisor",
        "mos_temp_divisor",
    )
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("value must be > 0")
        return v

    @field_validator("bat_command_template", "bat_label_template")
    @classmethod
    def template_must_have_unit(cls, v: str) -> str:
        """Validate that per-unit templates contain the ``{unit}`` placeholder.

        Without it every unit would scrape (or be labelled as) the same
        battery string.
        """
        if _UNIT_PLACEHOLDER not in v:
            raise ValueError(f"template must contain {_UNIT_PLACEHOLDER} (got: '{v}')")
        return v

    def bat_command(self, unit: int) -> str:
        """Console command for 1-based power unit *unit*."""
        return self.bat_command_template.replace(_UNIT_PLACEHOLDER, str(unit))

    def bat_label(self, unit: int) -> str:
        """Metric ``unit`` label for 1-based power unit *unit*."""
        return self.bat_label_template.replace(_UNIT_PLACEHOLDER, str(unit))

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
