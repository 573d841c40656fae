"""
Type definitions for the queue worker.
Contains input/output type definitions for all functions, grouped by module.
"""

from queue_worker.types.job import (
    ExecutionOutcome,
    JobEnvelope,
    JobTypeHeader,
    JobTypeKey,
    PollConfiguration,
)
from queue_worker.types.message import RawMessage
from queue_worker.types.metrics import Dimension, MetricDatum

__all__ = [
    # Job types
    "JobTypeKey",
    "JobTypeHeader",
    "JobEnvelope",
    "PollConfiguration",
    "ExecutionOutcome",
    # Message types
    "RawMessage",
    # Metric types
    "Dimension",
    "MetricDatum",
]
