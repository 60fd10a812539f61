"""Tests for rollout_metrics.lifecycle: one-time collector registration."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest
from prometheus_client import CollectorRegistry

from rollout_metrics.collector import RolloutAggregator
from rollout_metrics.lifecycle import (
    CollectorLifecycle,
    get_lifecycle,
    initialize_metrics_collector,
    reset_lifecycle,
)
from rollout_metrics.lister import StaticRolloutLister
from rollout_metrics.metrics import REGISTRY
from rollout_metrics.models import TerminationState
from tests.helpers import make_rollout

COMPLETE = "openshift_apps_deploymentconfigs_complete_rollouts_total"
LAST_FAILED = "openshift_apps_deploymentconfigs_last_failed_rollout_time"


class TestCollectorLifecycle:
    def test_starts_unregistered(self) -> None:
        lifecycle = CollectorLifecycle(CollectorRegistry())
        assert not lifecycle.is_registered
        assert lifecycle.aggregator.lister is None

    def test_initialize_registers_and_binds(self) -> None:
        registry = CollectorRegistry()
        lifecycle = CollectorLifecycle(registry)
        lister = StaticRolloutLister([make_rollout()])

        lifecycle.initialize(lister)

        assert lifecycle.is_registered
        assert lifecycle.aggregator.lister is lister
        assert registry.get_sample_value(COMPLETE, {"phase": "available"}) == 0.0

    def test_repeated_initialize_registers_once(self) -> None:
        registry = MagicMock(spec=CollectorRegistry)
        lifecycle = CollectorLifecycle(registry)

        lifecycle.initialize(StaticRolloutLister())
        lifecycle.initialize(StaticRolloutLister())
        lifecycle.initialize(StaticRolloutLister())

        registry.register.assert_called_once_with(lifecycle.aggregator)

    def test_last_lister_wins(self) -> None:
        lifecycle = CollectorLifecycle(CollectorRegistry())
        first = StaticRolloutLister()
        second = StaticRolloutLister()

        lifecycle.initialize(first)
        lifecycle.initialize(second)

        assert lifecycle.aggregator.lister is second

    def test_uses_supplied_aggregator(self) -> None:
        aggregator = RolloutAggregator(track_first_failure=True)
        lifecycle = CollectorLifecycle(CollectorRegistry(), aggregator)
        assert lifecycle.aggregator is aggregator

    def test_registry_errors_propagate(self) -> None:
        registry = CollectorRegistry()
        CollectorLifecycle(registry).initialize(StaticRolloutLister())
        with pytest.raises(ValueError):
            CollectorLifecycle(registry).initialize(StaticRolloutLister())

    def test_concurrent_initialize_registers_once(self) -> None:
        registry = MagicMock(spec=CollectorRegistry)
        lifecycle = CollectorLifecycle(registry)
        threads = [
            threading.Thread(target=lifecycle.initialize, args=(StaticRolloutLister(),))
            for _ in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        registry.register.assert_called_once()


class TestProcessLifecycle:
    def test_get_lifecycle_is_cached(self) -> None:
        assert get_lifecycle() is get_lifecycle()

    def test_process_lifecycle_uses_service_registry(self) -> None:
        assert get_lifecycle().registry is REGISTRY

    def test_initialize_metrics_collector_is_idempotent(self) -> None:
        lister = StaticRolloutLister()
        first = initialize_metrics_collector(lister)
        second = initialize_metrics_collector(lister)
        assert first is second
        assert first.is_registered

    def test_reset_unregisters(self) -> None:
        initialize_metrics_collector(StaticRolloutLister())
        assert REGISTRY.get_sample_value(COMPLETE, {"phase": "failed"}) == 0.0

        reset_lifecycle()

        assert REGISTRY.get_sample_value(COMPLETE, {"phase": "failed"}) is None
        assert not get_lifecycle().is_registered

    def test_initialize_metrics_collector_applies_track_first_failure(self) -> None:
        lifecycle = initialize_metrics_collector(StaticRolloutLister(), track_first_failure=True)
        assert lifecycle.aggregator.track_first_failure is True

    def test_initialize_metrics_collector_defaults_to_quirk(self) -> None:
        lifecycle = initialize_metrics_collector(StaticRolloutLister())
        assert lifecycle.aggregator.track_first_failure is False

    def test_track_first_failure_seeds_process_registry(self) -> None:
        lister = StaticRolloutLister(
            [make_rollout("api", termination=TerminationState.FAILED, generation=2)]
        )
        initialize_metrics_collector(lister, track_first_failure=True)
        value = REGISTRY.get_sample_value(
            LAST_FAILED, {"namespace": "shop", "name": "api", "generation": "2"}
        )
        assert value == 1_700_000_000.0
