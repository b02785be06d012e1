"""
FastAPI application serving the exporter's metrics and health.

Built by :func:`create_app` around an existing ExporterMetrics and
ScrapeHealth so the scrape loop and the HTTP surface share one registry.

Routes:
- GET /metrics: Prometheus text exposition of the registry.
- GET /health: ``{"status": "ok", ...}`` plus the last scrape snapshot.

CHANGELOG:
- 2026-10-19: Use the client library content type (STORY-012)
- 2026-10-15: Initial creation (STORY-011)

TODO:
- None
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST

from exporter.src.health import ScrapeHealth
from exporter.src.metrics import ExporterMetrics

router = APIRouter()


@router.get("/metrics")
async def metrics(request: Request) -> Response:
    """Return all exporter metrics in Prometheus text format."""
    exporter_metrics: ExporterMetrics = request.app.state.metrics
    return Response(content=exporter_metrics.render(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health", tags=["health"])
async def health(request: Request) -> dict[str, Any]:
    """Return liveness plus the most recent scrape counts.

    No authentication is required; intended for Docker HEALTHCHECK.
    """
    scrape_health: ScrapeHealth = request.app.state.health
    return {"status": "ok", **scrape_health.snapshot()}


def create_app(metrics: ExporterMetrics, health: ScrapeHealth) -> FastAPI:
    """Build the FastAPI app bound to *metrics* and *health*."""
    app = FastAPI(
        title="Pylontech Exporter",
        description="Prometheus exporter for Pylontech console data.",
        version="0.1.0",
    )
    app.state.metrics = metrics
    app.state.health = health
    app.include_router(router)
    return app
