"""Observability helpers."""

from tasktrail.observability.metrics import MetricsRegistry, metrics

__all__ = ["MetricsRegistry", "metrics"]
