"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class DeliveryAttribute(StrEnum):
    """
    Delivery metadata that can be requested from the transport
    along with each message.
    """

    SENT_AT = "sent_at"
    RECEIVE_COUNT = "receive_count"
    FIRST_RECEIVED_AT = "first_received_at"


class TransportKind(StrEnum):
    """Queue transport implementations selectable from configuration."""

    SQS = "sqs"
    MEMORY = "memory"


# SQS system attribute names for each delivery attribute
SQS_ATTRIBUTE_NAMES: dict[DeliveryAttribute, str] = {
    DeliveryAttribute.SENT_AT: "SentTimestamp",
    DeliveryAttribute.RECEIVE_COUNT: "ApproximateReceiveCount",
    DeliveryAttribute.FIRST_RECEIVED_AT: "ApproximateFirstReceiveTimestamp",
}

# Default values
DEFAULT_POLL_INTERVAL_SECONDS = 1.0
DEFAULT_VISIBILITY_TIMEOUT_SECONDS = 60
DEFAULT_ATTRIBUTES: tuple[DeliveryAttribute, ...] = (
    DeliveryAttribute.SENT_AT,
    DeliveryAttribute.RECEIVE_COUNT,
    DeliveryAttribute.FIRST_RECEIVED_AT,
)
UNKNOWN_JOB_TYPE = "unknown"

# Metric names
METRIC_MESSAGE_CHECK_COUNT = "MessageCheckCount"
METRIC_MESSAGE_RECEIVED_COUNT = "MessageReceivedCount"
METRIC_MESSAGE_MISS_COUNT = "MessageMissCount"
METRIC_EXECUTION_COUNT = "ExecutionCount"
METRIC_SUCCESS_COUNT = "SuccessCount"
METRIC_ERROR_COUNT = "ErrorCount"
METRIC_EXECUTION_TIME = "ExecutionTime"
METRIC_TIME_TO_COMPLETION = "TimeToCompletion"
METRIC_EXECUTION_ATTEMPTS = "ExecutionAttempts"

# Metric units
UNIT_COUNT = "Count"
UNIT_MILLISECONDS = "Milliseconds"

# Metric dimension names
DIMENSION_ENVIRONMENT = "Environment"
DIMENSION_QUEUE_NAME = "SQSQueueName"
DIMENSION_HOST = "Host"
DIMENSION_JOB_TYPE = "JobType"

# Trace span names
SPAN_EXECUTE_JOB = "execute_job"
SPAN_RECEIVE_MESSAGE = "receive_message"

# Signals that request a graceful shutdown
SHUTDOWN_SIGNALS = ("SIGHUP", "SIGINT", "SIGTERM")

# Prometheus metric names
PROM_MESSAGE_CHECKS = "queue_worker_message_checks_total"
PROM_MESSAGES_RECEIVED = "queue_worker_messages_received_total"
PROM_MESSAGE_MISSES = "queue_worker_message_misses_total"
PROM_EXECUTIONS = "queue_worker_executions_total"
PROM_SUCCESSES = "queue_worker_successes_total"
PROM_ERRORS = "queue_worker_errors_total"
PROM_EXECUTION_TIME = "queue_worker_execution_time_seconds"
PROM_TIME_TO_COMPLETION = "queue_worker_time_to_completion_seconds"
PROM_EXECUTION_ATTEMPTS = "queue_worker_execution_attempts"
