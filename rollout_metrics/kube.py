"""
Rollout status derivation for replication controllers.

Each rollout of a deployment config is a replication controller carrying
annotations that name the config, the deployment phase and whether the
rollout was cancelled. This module reads those annotations off the
``kubernetes`` client models and turns each object into a RolloutResource.
"""

from __future__ import annotations

from datetime import UTC, datetime

from kubernetes.client import V1ReplicationController

from rollout_metrics.models import RolloutResource, TerminationState

DEPLOYMENT_CONFIG_ANNOTATION = "openshift.io/deployment-config.name"
DEPLOYMENT_STATUS_ANNOTATION = "openshift.io/deployment.phase"
DEPLOYMENT_CANCELLED_ANNOTATION = "openshift.io/deployment.cancelled"
DEPLOYMENT_CANCELLED_ANNOTATION_VALUE = "true"

PHASE_COMPLETE = "Complete"
PHASE_FAILED = "Failed"

_EPOCH = datetime.fromtimestamp(0, tz=UTC)


def _annotation_for(rc: V1ReplicationController, key: str) -> str:
    if rc.metadata is None:
        return ""
    return (rc.metadata.annotations or {}).get(key, "")


def deployment_config_name_for(rc: V1ReplicationController) -> str:
    """Return the owning deployment config name, or "" if not annotated."""
    return _annotation_for(rc, DEPLOYMENT_CONFIG_ANNOTATION)


def deployment_status_for(rc: V1ReplicationController) -> str:
    """Return the raw deployment phase annotation (e.g. "Running")."""
    return _annotation_for(rc, DEPLOYMENT_STATUS_ANNOTATION)


def is_terminated_deployment(rc: V1ReplicationController) -> bool:
    return deployment_status_for(rc) in (PHASE_COMPLETE, PHASE_FAILED)


def is_deployment_cancelled(rc: V1ReplicationController) -> bool:
    return _annotation_for(rc, DEPLOYMENT_CANCELLED_ANNOTATION) == DEPLOYMENT_CANCELLED_ANNOTATION_VALUE


def is_failed_deployment(rc: V1ReplicationController) -> bool:
    return deployment_status_for(rc) == PHASE_FAILED


def is_complete_deployment(rc: V1ReplicationController) -> bool:
    return deployment_status_for(rc) == PHASE_COMPLETE


def termination_for(rc: V1ReplicationController) -> TerminationState:
    """Classify a replication controller.

    Only terminated rollouts are classified; among those, the cancelled
    annotation wins over the Failed/Complete phase.
    """
    if not is_terminated_deployment(rc):
        return TerminationState.NONE
    if is_deployment_cancelled(rc):
        return TerminationState.CANCELLED
    if is_failed_deployment(rc):
        return TerminationState.FAILED
    if is_complete_deployment(rc):
        return TerminationState.COMPLETE
    return TerminationState.NONE


def to_rollout(rc: V1ReplicationController) -> RolloutResource:
    """Convert a replication controller into a RolloutResource."""
    metadata = rc.metadata
    termination = termination_for(rc)
    return RolloutResource(
        name=deployment_config_name_for(rc),
        namespace=(metadata.namespace if metadata else None) or "",
        creation_timestamp=(metadata.creation_timestamp if metadata else None) or _EPOCH,
        observed_generation=(rc.status.observed_generation if rc.status else None) or 0,
        termination=termination,
        phase="" if termination is not TerminationState.NONE else deployment_status_for(rc),
    )
