"""
Shared test fixtures for exporter tests.

Provides environment variable fixtures for ExporterSettings configuration
tests and sample console dumps for the parser tests.  All exporter env vars
are cleaned before each test to ensure isolation.

CHANGELOG:
- 2026-10-13: Add console dump fixtures (STORY-005)
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

import pytest

# All ExporterSettings environment variable names, used for cleanup.
_ALL_EXPORTER_ENV_VARS = (
    "DEVICE_IP",
    "DEVICE_PORT",
    "REFRESH_SECONDS",
    "FETCH_TIMEOUT_S",
    "PORT",
    "PROM_NAMESPACE",
    "LOG_VERBOSE",
    "PWR_COMMAND",
    "BAT_COMMAND_TEMPLATE",
    "BAT_LABEL_TEMPLATE",
    "BATTERY_TEMP_DIVISOR",
    "POWER_TEMP_DIVISOR",
    "MOS_TEMP_DIVISOR",
    "HEALTH_PATH",
)

_BAT_DUMP = [
    "@",
    "Battery  Volt     Curr     Tempr    Base State   Volt. State  Curr. State  "
    "Temp. State  SOC          Coulomb      BAL",
    "0        3331     -1240    17000    Dischg       Normal       Normal       "
    "Normal       80%          79998 mAH     N",
    "1        3332     -1240    17000    Dischg       Normal       Normal       "
    "Normal       80%          79998 mAH     N",
    "Command completed successfully",
    "$$",
]

_PWR_DUMP = [
    "@",
    "Power Volt   Curr   Tempr  Tlow   Thigh  Vlow   Vhigh  Base.St  Volt.St  "
    "Curr.St  Temp.St  Coulomb  Time                 B.V.St   B.T.St   MosTempr M.T.St",
    "1     49838  -1563  20000  18000  19000  3320   3325   Dischg   Normal   "
    "Normal   Normal   80%      2026-10-12 10:00:00  Normal   Normal   210      Normal",
    "2     49842  -1570  20000  18000  19000  3321   3326   Dischg   Normal   "
    "Normal   Normal   81%      2026-10-12 10:00:00  Normal   Normal   212      Normal",
    "3     -      -      -      -      -      -      -      Absent   -        "
    "-        -        -        -                    -        -        -        -",
    "Command completed successfully",
    "$$",
]


@pytest.fixture(autouse=True)
def _clean_exporter_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all exporter env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_EXPORTER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set every ExporterSettings environment variable.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "DEVICE_IP": "192.168.1.50",
        "DEVICE_PORT": "8080",
        "REFRESH_SECONDS": "15",
        "FETCH_TIMEOUT_S": "5",
        "PORT": "9200",
        "PROM_NAMESPACE": "pylontech",
        "LOG_VERBOSE": "true",
        "PWR_COMMAND": "pwr",
        "BAT_COMMAND_TEMPLATE": "bat {unit}",
        "BAT_LABEL_TEMPLATE": "unit{unit}",
        "BATTERY_TEMP_DIVISOR": "10",
        "POWER_TEMP_DIVISOR": "10",
        "MOS_TEMP_DIVISOR": "10",
        "HEALTH_PATH": "/tmp/health.json",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables (no optional ones)."""
    env = {"DEVICE_IP": "10.0.0.7"}
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def bat_dump() -> list[str]:
    """Lines of a typical ``bat`` response: header, two cells, trailer."""
    return list(_BAT_DUMP)


@pytest.fixture()
def pwr_dump() -> list[str]:
    """Lines of a typical ``pwr`` response: two modules and one Absent slot."""
    return list(_PWR_DUMP)
