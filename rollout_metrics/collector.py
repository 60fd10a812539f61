"""
Rollout collector: the per-scrape aggregation behind /metrics.

Implements the two methods ``prometheus_client`` expects from a custom
collector: ``describe()`` and ``collect()``. Every scrape lists all rollouts,
walks them once and emits:

- one duration sample per active rollout, in list order;
- one last-failure-time sample per deployment config in the failure index;
- exactly three complete-rollout counts (available, failed, cancelled).

Nothing is kept between scrapes.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

import structlog

from rollout_metrics.descriptors import (
    ACTIVE_ROLLOUT_DURATION_SECONDS_DESC,
    COMPLETE_ROLLOUT_COUNT_DESC,
    LAST_FAILED_ROLLOUT_TIME_DESC,
    MetricFamily,
)
from rollout_metrics.lister import DataSourceUnavailable, RolloutLister
from rollout_metrics.models import (
    FailedRollout,
    PhaseCounters,
    RolloutResource,
    TerminationState,
)

logger = structlog.get_logger(__name__)

UNKNOWN_PHASE = "unknown"

FailureKey = tuple[str, str]


@dataclass(frozen=True)
class ActiveRollout:
    """Duration sample for one in-flight rollout."""

    namespace: str
    name: str
    phase: str
    generation: int
    duration_seconds: int

    def label_values(self) -> list[str]:
        return [self.namespace, self.name, self.phase, str(self.generation)]


@dataclass
class ScrapeResult:
    """Everything one pass over the rollout list produced."""

    counters: PhaseCounters = field(default_factory=PhaseCounters)
    latest_failures: dict[FailureKey, FailedRollout] = field(default_factory=dict)
    active: list[ActiveRollout] = field(default_factory=list)


class RolloutAggregator:
    """Custom collector that turns a rollout list into metric families.

    Args:
        lister:              Rollout source. May be bound later via
                             CollectorLifecycle.initialize().
        clock:               Returns the current time in epoch seconds.
        track_first_failure: Let the first failure of a deployment config
                             seed the failure index. Off by default: only a
                             failure with a higher generation than an existing
                             entry is recorded, so a lone failure never shows up.
    """

    def __init__(
        self,
        lister: RolloutLister | None = None,
        *,
        clock: Callable[[], float] = time.time,
        track_first_failure: bool = False,
    ) -> None:
        self.lister = lister
        self.track_first_failure = track_first_failure
        self._clock = clock

    def describe(self) -> Iterator[MetricFamily]:
        """Yield the declared metric families.

        The last-failure family is emitted by collect() but not declared here.
        """
        yield COMPLETE_ROLLOUT_COUNT_DESC.family()
        yield ACTIVE_ROLLOUT_DURATION_SECONDS_DESC.family()

    def collect(self) -> Iterator[MetricFamily]:
        """Scan the current rollout list and yield all samples.

        Yields nothing when the lister is missing or unavailable; the next
        scrape is the retry.
        """
        if self.lister is None:
            logger.debug("rollout_metrics.collect_skipped", reason="no lister bound")
            return
        try:
            rollouts = self.lister.list()
        except DataSourceUnavailable as exc:
            logger.debug("rollout_metrics.collect_failed", error=str(exc))
            return

        result = self.scan(rollouts)

        durations = ACTIVE_ROLLOUT_DURATION_SECONDS_DESC.family()
        for active in result.active:
            ACTIVE_ROLLOUT_DURATION_SECONDS_DESC.add_sample(
                durations, active.duration_seconds, active.label_values()
            )
        yield durations

        failures = LAST_FAILED_ROLLOUT_TIME_DESC.family()
        for (namespace, name), record in result.latest_failures.items():
            LAST_FAILED_ROLLOUT_TIME_DESC.add_sample(
                failures, record.timestamp, [namespace, name, str(record.generation)]
            )
        yield failures

        complete = COMPLETE_ROLLOUT_COUNT_DESC.family()
        for phase, count in result.counters.as_labels():
            COMPLETE_ROLLOUT_COUNT_DESC.add_sample(complete, count, [phase])
        yield complete

    def scan(self, rollouts: list[RolloutResource]) -> ScrapeResult:
        """Classify every rollout once, in list order."""
        result = ScrapeResult()
        now = int(self._clock())

        for rollout in rollouts:
            if not rollout.name:
                continue

            if rollout.is_terminated:
                if rollout.termination is TerminationState.CANCELLED:
                    result.counters.cancelled += 1
                elif rollout.termination is TerminationState.FAILED:
                    result.counters.failed += 1
                    self._record_failure(result.latest_failures, rollout)
                else:
                    result.counters.available += 1
                continue

            phase = rollout.phase.lower() or UNKNOWN_PHASE
            # Not clamped: clock skew can make this negative.
            result.active.append(
                ActiveRollout(
                    namespace=rollout.namespace,
                    name=rollout.name,
                    phase=phase,
                    generation=rollout.observed_generation,
                    duration_seconds=now - rollout.created_unix,
                )
            )

        return result

    def _record_failure(
        self,
        index: dict[FailureKey, FailedRollout],
        rollout: RolloutResource,
    ) -> None:
        key = (rollout.namespace, rollout.name)
        existing = index.get(key)
        if existing is None:
            if not self.track_first_failure:
                return
        elif rollout.observed_generation <= existing.generation:
            return
        index[key] = FailedRollout(
            timestamp=float(rollout.created_unix),
            generation=rollout.observed_generation,
        )
