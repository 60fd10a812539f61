"""
Shared pytest fixtures for rollout exporter tests.

Provides:
- Fixed clock for duration assertions
- FastAPI TestClient backed by a static lister
- Process lifecycle reset between tests
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from rollout_metrics.lifecycle import reset_lifecycle
from rollout_metrics.lister import StaticRolloutLister
from rollout_metrics.models import TerminationState
from tests.helpers import NOW, make_rollout


@pytest.fixture()
def fixed_clock() -> Callable[[], float]:
    return lambda: NOW


@pytest.fixture(autouse=True)
def _reset_process_lifecycle() -> Generator[None, None, None]:
    reset_lifecycle()
    yield
    reset_lifecycle()


@pytest.fixture()
def env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set standard env vars for testing. Returns the dict for inspection."""
    defaults: dict[str, str] = {
        "KUBE_NAMESPACE": "",
        "LOG_LEVEL": "info",
    }
    for key, value in defaults.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("KUBECONFIG", raising=False)
    monkeypatch.delenv("ROLLOUT_METRICS_TRACK_FIRST_FAILURE", raising=False)
    return defaults


@pytest.fixture()
def static_lister() -> StaticRolloutLister:
    return StaticRolloutLister(
        [
            make_rollout("frontend", phase="Running", generation=3),
            make_rollout("backend", termination=TerminationState.COMPLETE, phase=""),
            make_rollout("worker", termination=TerminationState.CANCELLED, phase=""),
        ]
    )


@pytest.fixture()
def client(
    env_vars: dict[str, str],
    static_lister: StaticRolloutLister,
) -> Generator[TestClient, None, None]:
    """FastAPI TestClient whose collector reads from ``static_lister``."""
    from rollout_metrics.main import app

    with patch("rollout_metrics.main._build_lister", return_value=static_lister):
        with TestClient(app, raise_server_exceptions=False) as c:
            yield c
