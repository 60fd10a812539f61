"""
One-time wiring of the rollout collector into a Prometheus registry.

The composition root (main.py) owns a CollectorLifecycle and calls
``initialize(lister)`` at startup. Calling it again only rebinds the lister;
the collector is registered exactly once.
"""

from __future__ import annotations

import threading

import structlog
from prometheus_client import CollectorRegistry

from rollout_metrics.collector import RolloutAggregator
from rollout_metrics.lister import RolloutLister
from rollout_metrics.metrics import REGISTRY

logger = structlog.get_logger(__name__)


class CollectorLifecycle:
    """Binds a lister to a RolloutAggregator and registers it once.

    Args:
        registry:   Registry the collector is added to.
        aggregator: Collector to register. A default one is built if omitted.
    """

    def __init__(
        self,
        registry: CollectorRegistry,
        aggregator: RolloutAggregator | None = None,
    ) -> None:
        self.registry = registry
        self.aggregator = aggregator or RolloutAggregator()
        self._lock = threading.Lock()
        self._registered = False

    @property
    def is_registered(self) -> bool:
        return self._registered

    def initialize(self, lister: RolloutLister) -> None:
        """Point the collector at ``lister`` and register it if not yet done.

        The last lister passed wins. Registry errors (e.g. a name already
        taken by another collector) propagate to the caller.
        """
        self.aggregator.lister = lister
        with self._lock:
            if not self._registered:
                self.registry.register(self.aggregator)
                self._registered = True
        logger.debug("rollout_metrics.registered", lister=type(lister).__name__)


# Lazy process-wide lifecycle: created on first access.
_LIFECYCLE: CollectorLifecycle | None = None


def get_lifecycle() -> CollectorLifecycle:
    """Return the process lifecycle bound to the service registry."""
    global _LIFECYCLE  # noqa: PLW0603
    if _LIFECYCLE is None:
        _LIFECYCLE = CollectorLifecycle(REGISTRY)
    return _LIFECYCLE


def initialize_metrics_collector(
    lister: RolloutLister,
    *,
    track_first_failure: bool = False,
) -> CollectorLifecycle:
    """Bind ``lister`` to the service collector, registering it on first call.

    ``track_first_failure`` is applied to the aggregator before registration
    so the first scrape already sees it.
    """
    lifecycle = get_lifecycle()
    lifecycle.aggregator.track_first_failure = track_first_failure
    lifecycle.initialize(lister)
    return lifecycle


def reset_lifecycle() -> None:
    """Unregister and drop the process lifecycle. Used in tests."""
    global _LIFECYCLE  # noqa: PLW0603
    if _LIFECYCLE is not None and _LIFECYCLE.is_registered:
        _LIFECYCLE.registry.unregister(_LIFECYCLE.aggregator)
    _LIFECYCLE = None
