"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from queue_worker.observability.logging import bind_context, clear_context, setup_logging
from queue_worker.observability.metrics import (
    CloudWatchMetricsSink,
    MetricsCollector,
    MetricsSink,
    build_metric_data,
    get_metrics,
    queue_dimensions,
    setup_metrics,
)
from queue_worker.observability.tracing import get_tracer, setup_tracing

__all__ = [
    "setup_logging",
    "bind_context",
    "clear_context",
    "setup_metrics",
    "get_metrics",
    "build_metric_data",
    "queue_dimensions",
    "MetricsSink",
    "MetricsCollector",
    "CloudWatchMetricsSink",
    "setup_tracing",
    "get_tracer",
]
