"""
Exporter configuration, read from environment variables at call time.

Configuration:
    EXPORTER_HOST:                       Bind host (default: 0.0.0.0)
    EXPORTER_PORT:                       Bind port (default: 9101)
    KUBECONFIG:                          Kubeconfig file to load. When unset the
                                         in-cluster service account is used.
    KUBE_NAMESPACE:                      Restrict listing to one namespace (default: all)
    KUBE_TIMEOUT_SECONDS:                Per-request timeout (default: 10)
    KUBE_PAGE_SIZE:                      Items requested per list call (default: 500)
    ROLLOUT_METRICS_TRACK_FIRST_FAILURE: "true" lets the first failure of a
                                         deployment config seed the failure index
"""

from __future__ import annotations

import os
from dataclasses import dataclass


class ConfigError(ValueError):
    """Raised when the exporter cannot be configured."""


def _get_env(key: str, default: str = "") -> str:
    """Read env var at call time."""
    return os.getenv(key, default)


def _get_bool(key: str, default: bool) -> bool:
    raw = _get_env(key, "true" if default else "false").strip().lower()
    if raw in ("true", "1", "yes"):
        return True
    if raw in ("false", "0", "no", ""):
        return False
    raise ConfigError(f"{key} must be true or false, got {raw!r}")


def _get_number(key: str, default: str, kind: type[int] | type[float]) -> int | float:
    raw = _get_env(key, default)
    try:
        value = kind(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a {kind.__name__}, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    """Resolved exporter settings."""

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 9101
    kubeconfig: str | None = None
    namespace: str = ""
    timeout_seconds: float = 10.0
    page_size: int = 500
    track_first_failure: bool = False

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the current environment.

        Raises:
            ConfigError: If a numeric or boolean variable cannot be parsed.
        """
        return cls(
            host=_get_env("EXPORTER_HOST", "0.0.0.0"),  # noqa: S104
            port=int(_get_number("EXPORTER_PORT", "9101", int)),
            kubeconfig=_get_env("KUBECONFIG") or None,
            namespace=_get_env("KUBE_NAMESPACE"),
            timeout_seconds=float(_get_number("KUBE_TIMEOUT_SECONDS", "10", float)),
            page_size=int(_get_number("KUBE_PAGE_SIZE", "500", int)),
            track_first_failure=_get_bool("ROLLOUT_METRICS_TRACK_FIRST_FAILURE", False),
        )
