"""Observability: Prometheus metrics for the completion layer."""

from learnforge.observability.metrics import metrics

__all__ = ["metrics"]
