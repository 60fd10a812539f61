"""
Metric descriptors emitted by the rollout collector.

Descriptors are declared once at import time and never change. Label sets
are fixed here and every sample is checked against them when it is added:
a mismatch means the collector is broken, so it raises instead of emitting
a garbled series.

Metrics exposed:
  - openshift_apps_deploymentconfigs_complete_rollouts_total          gauge   (phase)
  - openshift_apps_deploymentconfigs_last_failed_rollout_time         gauge   (namespace, name, generation)
  - openshift_apps_deploymentconfigs_active_rollouts_duration_seconds counter (namespace, name, phase, generation)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

METRIC_PREFIX = "openshift_apps_deploymentconfigs"

COMPLETE_ROLLOUT_COUNT = "complete_rollouts_total"
ACTIVE_ROLLOUT_DURATION_SECONDS = "active_rollouts_duration_seconds"
LAST_FAILED_ROLLOUT_TIME = "last_failed_rollout_time"

AVAILABLE_PHASE = "available"
FAILED_PHASE = "failed"
CANCELLED_PHASE = "cancelled"

MetricFamily = CounterMetricFamily | GaugeMetricFamily


class LabelMismatchError(ValueError):
    """Raised when a sample's label values do not match its descriptor."""

    def __init__(self, metric: str, expected: Sequence[str], got: Sequence[str]) -> None:
        self.metric = metric
        self.expected = tuple(expected)
        self.got = tuple(got)
        super().__init__(
            f"Metric {metric!r} expects labels {list(self.expected)}, "
            f"got {len(self.got)} values: {list(self.got)}"
        )


def name_to_query(name: str) -> str:
    """Prefix a short metric name with the exporter namespace."""
    return "_".join([METRIC_PREFIX, name])


@dataclass(frozen=True)
class MetricDescriptor:
    """Name, help text, kind and label schema of one metric."""

    name: str
    documentation: str
    labels: tuple[str, ...]
    kind: Literal["gauge", "counter"] = "gauge"

    def family(self) -> MetricFamily:
        """Return an empty metric family for this descriptor."""
        if self.kind == "counter":
            return CounterMetricFamily(self.name, self.documentation, labels=self.labels)
        return GaugeMetricFamily(self.name, self.documentation, labels=self.labels)

    def add_sample(
        self,
        family: MetricFamily,
        value: float,
        label_values: Sequence[str],
    ) -> None:
        """Append one sample to ``family`` after checking the label values.

        Raises:
            LabelMismatchError: If the label count differs from the schema.
        """
        if len(label_values) != len(self.labels):
            raise LabelMismatchError(self.name, self.labels, label_values)
        family.add_metric(list(label_values), float(value))


COMPLETE_ROLLOUT_COUNT_DESC = MetricDescriptor(
    name=name_to_query(COMPLETE_ROLLOUT_COUNT),
    documentation="Counts total complete rollouts",
    labels=("phase",),
)

LAST_FAILED_ROLLOUT_TIME_DESC = MetricDescriptor(
    name=name_to_query(LAST_FAILED_ROLLOUT_TIME),
    documentation="Tracks the time of last failure rollout per deployment config",
    labels=("namespace", "name", "generation"),
)

# Counter kind is kept even though the value is not monotonic.
ACTIVE_ROLLOUT_DURATION_SECONDS_DESC = MetricDescriptor(
    name=name_to_query(ACTIVE_ROLLOUT_DURATION_SECONDS),
    documentation="Tracks the active rollout duration in seconds",
    labels=("namespace", "name", "phase", "generation"),
    kind="counter",
)

ALL_DESCRIPTORS: tuple[MetricDescriptor, ...] = (
    COMPLETE_ROLLOUT_COUNT_DESC,
    LAST_FAILED_ROLLOUT_TIME_DESC,
    ACTIVE_ROLLOUT_DURATION_SECONDS_DESC,
)
