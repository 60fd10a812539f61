"""Rollout and replication controller builders shared by the test modules."""

from __future__ import annotations

from datetime import UTC, datetime

from kubernetes.client import V1ObjectMeta, V1ReplicationController, V1ReplicationControllerStatus

from rollout_metrics.models import RolloutResource, TerminationState

# 2023-11-14T22:13:20Z
CREATED_AT = datetime.fromtimestamp(1_700_000_000, tz=UTC)
NOW = 1_700_000_100.0


def make_rollout(
    name: str = "frontend",
    namespace: str = "shop",
    *,
    generation: int = 1,
    termination: TerminationState = TerminationState.NONE,
    phase: str = "Running",
    created: datetime = CREATED_AT,
) -> RolloutResource:
    """Create a RolloutResource for testing."""
    return RolloutResource(
        name=name,
        namespace=namespace,
        creation_timestamp=created,
        observed_generation=generation,
        termination=termination,
        phase=phase,
    )


def make_replication_controller(
    config: str | None = "web",
    phase: str | None = "Running",
    *,
    cancelled: str | None = None,
    generation: int | None = 2,
    namespace: str = "shop",
    created: datetime | None = CREATED_AT,
) -> V1ReplicationController:
    """Create a V1ReplicationController annotated the way OpenShift does."""
    annotations: dict[str, str] = {}
    if config is not None:
        annotations["openshift.io/deployment-config.name"] = config
    if phase is not None:
        annotations["openshift.io/deployment.phase"] = phase
    if cancelled is not None:
        annotations["openshift.io/deployment.cancelled"] = cancelled
    return V1ReplicationController(
        metadata=V1ObjectMeta(
            name=f"{config or 'rc'}-{generation or 0}",
            namespace=namespace,
            creation_timestamp=created,
            annotations=annotations,
            labels={"app": config or "rc"},
        ),
        status=V1ReplicationControllerStatus(replicas=1, observed_generation=generation),
    )
