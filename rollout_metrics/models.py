"""
Domain models for the rollout metrics exporter.

RolloutResource is what a lister hands to the aggregator: one deployment
attempt, already classified. FailedRollout and PhaseCounters only live for
the duration of a single scrape.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from rollout_metrics.descriptors import AVAILABLE_PHASE, CANCELLED_PHASE, FAILED_PHASE


class TerminationState(StrEnum):
    """How a rollout ended, or NONE while it is still in flight."""

    NONE = "none"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETE = "complete"


@dataclass(frozen=True)
class RolloutResource:
    """A single rollout of a deployment config, as seen by the lister.

    Attributes:
        name:                Deployment config the rollout belongs to.
                             Empty when it cannot be attributed.
        namespace:           Namespace of the rollout.
        creation_timestamp:  When the rollout object was created (tz-aware).
        observed_generation: Config generation the rollout observed.
        termination:         Terminal classification, NONE while active.
        phase:               Free-text phase of an active rollout. May be empty.
    """

    name: str
    namespace: str
    creation_timestamp: datetime
    observed_generation: int = 0
    termination: TerminationState = TerminationState.NONE
    phase: str = ""

    @property
    def is_terminated(self) -> bool:
        return self.termination is not TerminationState.NONE

    @property
    def created_unix(self) -> int:
        """Creation time in whole seconds since the epoch."""
        return int(self.creation_timestamp.timestamp())


@dataclass(frozen=True)
class FailedRollout:
    """Latest failed rollout recorded for one deployment config."""

    timestamp: float
    generation: int


@dataclass
class PhaseCounters:
    """Terminal-state counts accumulated over one scrape."""

    available: int = 0
    failed: int = 0
    cancelled: int = 0

    def as_labels(self) -> list[tuple[str, int]]:
        """Return ``(phase, count)`` pairs in emission order."""
        return [
            (AVAILABLE_PHASE, self.available),
            (FAILED_PHASE, self.failed),
            (CANCELLED_PHASE, self.cancelled),
        ]
