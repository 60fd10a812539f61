"""
Rollout metrics exporter: FastAPI application entry point.

Responsibilities:
- Build the rollout lister from environment configuration
- Register the rollout collector with the Prometheus registry once
- Expose Prometheus metrics at /metrics
- Emit structured JSON logs

Usage::

    uvicorn rollout_metrics.main:app --host 0.0.0.0 --port 9101

Or::

    python -m rollout_metrics.main
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, status
from fastapi.responses import JSONResponse

from rollout_metrics import __version__
from rollout_metrics import metrics as _metrics
from rollout_metrics.config import Settings
from rollout_metrics.lifecycle import get_lifecycle, initialize_metrics_collector
from rollout_metrics.lister import KubeApiRolloutLister, RolloutLister


# ── Structured logging ─────────────────────────────────────────────────────────
def _configure_logging() -> None:
    """Configure structlog. Reads env vars at call time, not import time."""
    log_level = os.getenv("LOG_LEVEL", "info").upper()
    log_pretty = os.getenv("LOG_PRETTY", "false").lower() == "true"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.dev.ConsoleRenderer()
                if log_pretty
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


_configure_logging()
logger = structlog.get_logger(__name__)


def _build_lister(settings: Settings) -> RolloutLister:
    """Build the production lister. Patched in tests."""
    return KubeApiRolloutLister.from_settings(settings)


# ── Lifespan: startup wiring ───────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Resolve settings, bind the lister and register the collector."""
    settings = Settings.from_env()
    lister = _build_lister(settings)

    initialize_metrics_collector(lister, track_first_failure=settings.track_first_failure)

    logger.info(
        "exporter_starting",
        kubeconfig=settings.kubeconfig or "(in-cluster)",
        namespace=settings.namespace or "(all)",
        track_first_failure=settings.track_first_failure,
        log_level=os.getenv("LOG_LEVEL", "info").upper(),
    )

    yield

    logger.info("exporter_stopping")


# ── FastAPI app ────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Rollout Metrics Exporter",
    description="Prometheus metrics for deployment-config rollouts.",
    version=__version__,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


# ── Metrics ────────────────────────────────────────────────────────────────────
app.mount("/metrics", _metrics.make_metrics_app())


# ── Health ─────────────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"], include_in_schema=False)
async def health() -> dict[str, str]:
    """Liveness probe. Returns 200 with no dependency checks."""
    return {"status": "ok", "service": "rollout-metrics-exporter", "version": __version__}


@app.get("/ready", tags=["system"], include_in_schema=False)
async def ready() -> JSONResponse:
    """Readiness probe. 503 until the rollout collector is registered."""
    if not get_lifecycle().is_registered:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "collector not registered"},
        )
    return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ready"})


# ── CLI entry point ────────────────────────────────────────────────────────────


def cli_main() -> None:
    """CLI entry point for running the exporter."""
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    cli_main()
