"""
Prometheus registry and exposition app for the rollout exporter.

The rollout collector is registered on a custom CollectorRegistry so that
test runs in the same process do not conflict with one another. The registry
is *not* the global default: it is passed explicitly to ``make_asgi_app()``.
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry
from prometheus_client import make_asgi_app as _make_asgi_app
from starlette.types import ASGIApp

# ── Isolated registry ──────────────────────────────────────────────────────────
REGISTRY: CollectorRegistry = CollectorRegistry()


def make_metrics_app(registry: CollectorRegistry = REGISTRY) -> ASGIApp:
    """Return an ASGI app that serves Prometheus metrics in text format.

    Mount this at ``/metrics`` via ``app.mount("/metrics", make_metrics_app())``.
    """
    return _make_asgi_app(registry=registry)
