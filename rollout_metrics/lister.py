"""
Rollout listers: read-only sources of RolloutResource snapshots.

The collector only needs ``list()``. Uses Python's Protocol (structural
subtyping) so any object with that method can back the collector.

Usage::

    lister = KubeApiRolloutLister.from_settings(Settings.from_env())
    rollouts = lister.list()
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

import structlog
import urllib3.exceptions
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException

from rollout_metrics.config import ConfigError, Settings
from rollout_metrics.kube import to_rollout
from rollout_metrics.models import RolloutResource

logger = structlog.get_logger(__name__)


class DataSourceUnavailable(Exception):
    """Raised when the rollout list cannot be fetched."""


@runtime_checkable
class RolloutLister(Protocol):
    """Interface every rollout source must satisfy."""

    def list(self) -> list[RolloutResource]:
        """Return the full current list of rollouts.

        Raises:
            DataSourceUnavailable: If the list cannot be produced.
        """
        ...


class StaticRolloutLister:
    """Serves a fixed snapshot. Useful for tests and local runs."""

    def __init__(self, rollouts: Iterable[RolloutResource] = ()) -> None:
        self._rollouts = list(rollouts)

    def replace(self, rollouts: Iterable[RolloutResource]) -> None:
        self._rollouts = list(rollouts)

    def list(self) -> list[RolloutResource]:
        return list(self._rollouts)


def load_kube_credentials(kubeconfig: str | None = None) -> None:
    """Load API server credentials into the kubernetes client.

    An explicit kubeconfig wins. Otherwise the in-cluster service account is
    tried first, then the default kubeconfig location.

    Raises:
        ConfigError: If no usable configuration is found.
    """
    try:
        if kubeconfig:
            config.load_kube_config(config_file=kubeconfig)
            return
        try:
            config.load_incluster_config()
        except ConfigException:
            logger.info("lister.incluster_config_unavailable")
            config.load_kube_config()
    except (ConfigException, OSError) as exc:
        raise ConfigError(f"Cannot load Kubernetes configuration: {exc}") from exc


class KubeApiRolloutLister:
    """Lists replication controllers straight from the Kubernetes API server.

    Every call issues fresh paginated list requests; nothing is cached
    between scrapes.

    Args:
        api:             CoreV1Api client.
        namespace:       Namespace to list, or "" for all namespaces.
        timeout_seconds: Per-request timeout.
        page_size:       Items requested per call.
    """

    def __init__(
        self,
        api: client.CoreV1Api,
        *,
        namespace: str = "",
        timeout_seconds: float = 10.0,
        page_size: int = 500,
    ) -> None:
        self.api = api
        self.namespace = namespace
        self._timeout = timeout_seconds
        self._page_size = page_size

    @classmethod
    def from_settings(cls, settings: Settings) -> KubeApiRolloutLister:
        load_kube_credentials(settings.kubeconfig)
        return cls(
            client.CoreV1Api(),
            namespace=settings.namespace,
            timeout_seconds=settings.timeout_seconds,
            page_size=settings.page_size,
        )

    def _list_page(self, continue_token: str | None) -> client.V1ReplicationControllerList:
        kwargs: dict[str, Any] = {"limit": self._page_size, "_request_timeout": self._timeout}
        if continue_token:
            kwargs["_continue"] = continue_token
        if self.namespace:
            return self.api.list_namespaced_replication_controller(self.namespace, **kwargs)
        return self.api.list_replication_controller_for_all_namespaces(**kwargs)

    def list(self) -> list[RolloutResource]:
        """Fetch every replication controller and convert it.

        Raises:
            DataSourceUnavailable: On API errors, connection errors, or when
                the server hands back a continue token it already returned.
        """
        rollouts: list[RolloutResource] = []
        seen_tokens: set[str] = set()
        continue_token: str | None = None
        try:
            while True:
                page = self._list_page(continue_token)
                rollouts.extend(to_rollout(rc) for rc in page.items or [])
                continue_token = page.metadata._continue if page.metadata else None
                if not continue_token:
                    break
                if continue_token in seen_tokens:
                    logger.warning(
                        "lister.list.repeated_continue_token",
                        namespace=self.namespace or "*",
                        pages=len(seen_tokens) + 1,
                    )
                    raise DataSourceUnavailable(
                        "API server repeated a continue token; pagination would not terminate"
                    )
                seen_tokens.add(continue_token)

        except ApiException as exc:
            logger.debug(
                "lister.list.http_error",
                status_code=exc.status,
                reason=exc.reason,
                body=(exc.body or "")[:500],
            )
            raise DataSourceUnavailable(
                f"API server rejected list (HTTP {exc.status})"
            ) from exc
        except urllib3.exceptions.HTTPError as exc:
            logger.debug("lister.list.connection_error", error=str(exc))
            raise DataSourceUnavailable(f"API server unreachable: {exc}") from exc

        logger.debug("lister.list.ok", count=len(rollouts), namespace=self.namespace or "*")
        return rollouts
