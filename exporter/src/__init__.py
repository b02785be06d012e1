"""
Exporter package for the Pylontech console-to-Prometheus pipeline.

Polls the battery-management console over its HTTP ``/req`` endpoint, parses
the ``pwr`` and ``bat`` text dumps into typed records, and republishes them
as Prometheus gauges on a local ``/metrics`` endpoint.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-001)

TODO:
- None
"""
