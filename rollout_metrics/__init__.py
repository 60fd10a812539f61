"""Prometheus exporter for deployment-config rollout health."""

__version__ = "0.1.0"
