"""Observability layer - logging and metrics."""

from briefing.observability.logging import bind_run_context, setup_logging
from briefing.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "bind_run_context", "MetricsCollector", "get_metrics"]
