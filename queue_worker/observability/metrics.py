"""
Execution metrics.

Every poll iteration produces one batch of metric records, which is handed
to each configured sink. CloudWatch receives the batch as-is; Prometheus
folds it into counters and histograms.
"""

import logging
import socket
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import boto3
from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    start_http_server,
)

from queue_worker.config import Settings
from queue_worker.constants import (
    DIMENSION_ENVIRONMENT,
    DIMENSION_HOST,
    DIMENSION_JOB_TYPE,
    DIMENSION_QUEUE_NAME,
    METRIC_ERROR_COUNT,
    METRIC_EXECUTION_ATTEMPTS,
    METRIC_EXECUTION_COUNT,
    METRIC_EXECUTION_TIME,
    METRIC_MESSAGE_CHECK_COUNT,
    METRIC_MESSAGE_MISS_COUNT,
    METRIC_MESSAGE_RECEIVED_COUNT,
    METRIC_SUCCESS_COUNT,
    METRIC_TIME_TO_COMPLETION,
    PROM_ERRORS,
    PROM_EXECUTION_ATTEMPTS,
    PROM_EXECUTION_TIME,
    PROM_EXECUTIONS,
    PROM_MESSAGE_CHECKS,
    PROM_MESSAGE_MISSES,
    PROM_MESSAGES_RECEIVED,
    PROM_SUCCESSES,
    PROM_TIME_TO_COMPLETION,
    UNIT_COUNT,
    UNIT_MILLISECONDS,
)
from queue_worker.types.job import ExecutionOutcome
from queue_worker.types.metrics import Dimension, MetricDatum

logger = logging.getLogger(__name__)

# Global Prometheus collector instance
_metrics: "MetricsCollector | None" = None


def to_milliseconds(moment: datetime) -> int:
    """Convert a datetime to epoch milliseconds."""
    return round(moment.timestamp() * 1000)


def queue_dimensions(environment: str, queue_name: str, host: str | None = None) -> tuple[Dimension, ...]:
    """
    Build the dimensions attached to every metric of a queue.

    Args:
        environment: Deployment environment name.
        queue_name: Transport-level queue name.
        host: Host name. Defaults to the canonical name of this machine.
    """
    return (
        Dimension(name=DIMENSION_ENVIRONMENT, value=environment),
        Dimension(name=DIMENSION_QUEUE_NAME, value=queue_name),
        Dimension(name=DIMENSION_HOST, value=host or socket.getfqdn()),
    )


def build_metric_data(
    outcome: ExecutionOutcome,
    dimensions: Sequence[Dimension],
    timestamp: datetime | None = None,
) -> list[MetricDatum]:
    """
    Shape the metric batch for one poll iteration.

    Message-level counts are always present. Job-level metrics are only
    added when a message was received, and completion metrics only when
    it was handled successfully.

    Args:
        outcome: The iteration outcome.
        dimensions: Queue-level dimensions.
        timestamp: Timestamp for all records. Defaults to now.

    Returns:
        The metric records for the iteration.
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    message_dimensions = tuple(dimensions)
    job_dimensions = message_dimensions + (
        Dimension(name=DIMENSION_JOB_TYPE, value=outcome.job_type),
    )

    def datum(name: str, value: float, unit: str, dims: tuple[Dimension, ...]) -> MetricDatum:
        return MetricDatum(name=name, unit=unit, value=value, timestamp=timestamp, dimensions=dims)

    received = outcome.received
    metric_data = [
        datum(METRIC_MESSAGE_CHECK_COUNT, 1, UNIT_COUNT, message_dimensions),
        datum(METRIC_MESSAGE_RECEIVED_COUNT, 1 if received else 0, UNIT_COUNT, message_dimensions),
        datum(METRIC_MESSAGE_MISS_COUNT, 0 if received else 1, UNIT_COUNT, message_dimensions),
    ]

    if not received:
        return metric_data

    metric_data.extend([
        datum(METRIC_EXECUTION_COUNT, 1, UNIT_COUNT, job_dimensions),
        datum(METRIC_SUCCESS_COUNT, 1 if outcome.success else 0, UNIT_COUNT, job_dimensions),
        datum(METRIC_ERROR_COUNT, 0 if outcome.success else 1, UNIT_COUNT, job_dimensions),
        datum(METRIC_EXECUTION_TIME, outcome.duration_ms, UNIT_MILLISECONDS, job_dimensions),
    ])

    if outcome.success:
        message = outcome.message
        if message.sent_at is not None:
            metric_data.append(datum(
                METRIC_TIME_TO_COMPLETION,
                outcome.finished_at_ms - to_milliseconds(message.sent_at),
                UNIT_MILLISECONDS,
                job_dimensions,
            ))
        if message.receive_count is not None:
            metric_data.append(datum(
                METRIC_EXECUTION_ATTEMPTS,
                message.receive_count,
                UNIT_COUNT,
                job_dimensions,
            ))

    return metric_data


class MetricsSink(ABC):
    """Destination for per-iteration metric batches."""

    @abstractmethod
    def publish(self, metric_data: Sequence[MetricDatum]) -> None:
        """Publish one iteration's metric batch."""
        ...


class CloudWatchMetricsSink(MetricsSink):
    """Publishes metric batches to CloudWatch under a namespace."""

    def __init__(
        self,
        namespace: str,
        region_name: str | None = None,
        client: Any | None = None,
    ):
        self.namespace = namespace
        self._client = client or boto3.client("cloudwatch", region_name=region_name)

    def publish(self, metric_data: Sequence[MetricDatum]) -> None:
        self._client.put_metric_data(
            Namespace=self.namespace,
            MetricData=[
                {
                    "MetricName": datum.name,
                    "Timestamp": datum.timestamp,
                    "Unit": datum.unit,
                    "Value": datum.value,
                    "Dimensions": [
                        {"Name": d.name, "Value": d.value} for d in datum.dimensions
                    ],
                }
                for datum in metric_data
            ],
        )


class MetricsCollector(MetricsSink):
    """
    Prometheus metrics collector for the queue worker.

    Collects metrics for:
    - Message checks, receives and misses
    - Job executions, successes and errors
    - Execution time, time to completion and delivery attempts
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        queue_labels = ["environment", "queue", "host"]
        job_labels = queue_labels + ["job_type"]

        self.message_checks = Counter(
            PROM_MESSAGE_CHECKS,
            "Total number of queue polls",
            queue_labels,
            registry=self._registry,
        )

        self.messages_received = Counter(
            PROM_MESSAGES_RECEIVED,
            "Total number of polls that received a message",
            queue_labels,
            registry=self._registry,
        )

        self.message_misses = Counter(
            PROM_MESSAGE_MISSES,
            "Total number of polls that found the queue empty",
            queue_labels,
            registry=self._registry,
        )

        self.executions = Counter(
            PROM_EXECUTIONS,
            "Total number of job executions",
            job_labels,
            registry=self._registry,
        )

        self.successes = Counter(
            PROM_SUCCESSES,
            "Total number of successful job executions",
            job_labels,
            registry=self._registry,
        )

        self.errors = Counter(
            PROM_ERRORS,
            "Total number of failed job executions",
            job_labels,
            registry=self._registry,
        )

        self.execution_time = Histogram(
            PROM_EXECUTION_TIME,
            "Job execution duration in seconds",
            job_labels,
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
            registry=self._registry,
        )

        self.time_to_completion = Histogram(
            PROM_TIME_TO_COMPLETION,
            "Seconds from message send to successful completion",
            job_labels,
            buckets=(0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0, 900.0, 3600.0),
            registry=self._registry,
        )

        self.execution_attempts = Histogram(
            PROM_EXECUTION_ATTEMPTS,
            "Deliveries needed for a successful execution",
            job_labels,
            buckets=(1, 2, 3, 5, 10, 25),
            registry=self._registry,
        )

        self._counters = {
            METRIC_MESSAGE_CHECK_COUNT: self.message_checks,
            METRIC_MESSAGE_RECEIVED_COUNT: self.messages_received,
            METRIC_MESSAGE_MISS_COUNT: self.message_misses,
            METRIC_EXECUTION_COUNT: self.executions,
            METRIC_SUCCESS_COUNT: self.successes,
            METRIC_ERROR_COUNT: self.errors,
        }
        # Millisecond timers are observed in seconds
        self._histograms = {
            METRIC_EXECUTION_TIME: (self.execution_time, 1000.0),
            METRIC_TIME_TO_COMPLETION: (self.time_to_completion, 1000.0),
            METRIC_EXECUTION_ATTEMPTS: (self.execution_attempts, 1.0),
        }

    @staticmethod
    def _labels(datum: MetricDatum) -> dict[str, str]:
        labels = {
            "environment": datum.dimension(DIMENSION_ENVIRONMENT) or "",
            "queue": datum.dimension(DIMENSION_QUEUE_NAME) or "",
            "host": datum.dimension(DIMENSION_HOST) or "",
        }
        job_type = datum.dimension(DIMENSION_JOB_TYPE)
        if job_type is not None:
            labels["job_type"] = job_type
        return labels

    def publish(self, metric_data: Sequence[MetricDatum]) -> None:
        for datum in metric_data:
            if datum.name in self._counters:
                self._counters[datum.name].labels(**self._labels(datum)).inc(datum.value)
            elif datum.name in self._histograms:
                histogram, divisor = self._histograms[datum.name]
                histogram.labels(**self._labels(datum)).observe(datum.value / divisor)
            else:
                logger.warning(f"Unknown metric: {datum.name}")


def setup_metrics(settings: Settings) -> list[MetricsSink]:
    """
    Set up the metrics sinks enabled by configuration.

    CloudWatch is enabled when a namespace is configured; Prometheus when
    a port is configured, in which case its HTTP exporter is started.

    Args:
        settings: Application settings.

    Returns:
        The enabled sinks, possibly empty.
    """
    sinks: list[MetricsSink] = []

    if settings.cloudwatch_namespace:
        sinks.append(CloudWatchMetricsSink(
            namespace=settings.cloudwatch_namespace,
            region_name=settings.aws_region,
        ))

    if settings.prometheus_port:
        start_http_server(settings.prometheus_port)
        sinks.append(get_metrics())
        logger.info(f"Prometheus metrics exposed on port {settings.prometheus_port}")

    return sinks


def get_metrics() -> MetricsCollector:
    """
    Get the Prometheus metrics collector instance.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
