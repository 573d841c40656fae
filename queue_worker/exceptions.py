"""
Exception hierarchy for the queue worker.

Every failure the poll loop can count as a failed iteration derives from
QueueWorkerError, so the loop can catch the whole family at the iteration
boundary and re-raise it unchanged when configured to.
"""

from typing import Any


class QueueWorkerError(Exception):
    """Base class for all queue worker errors."""


class ConfigurationError(QueueWorkerError):
    """Required configuration is missing or invalid."""


class TransportError(QueueWorkerError):
    """The queue transport failed to receive, send or acknowledge a message."""

    def __init__(self, message: str, operation: str | None = None):
        self.operation = operation
        super().__init__(message)


class DecodeError(QueueWorkerError):
    """The message body is not a well-formed job record."""

    def __init__(self, message: str, body: str | None = None, job_type: str | None = None):
        self.body = body
        self.job_type = job_type
        super().__init__(message)


class DefinitionNotFound(QueueWorkerError):
    """No job definition is registered for the message's type and version."""

    def __init__(self, job_type: str, version: int):
        self.job_type = job_type
        self.version = version
        super().__init__(f"No job definition registered for {job_type} v{version}")


class AttemptLimitExceeded(QueueWorkerError):
    """The message has been delivered more times than the job allows."""

    def __init__(self, job_type: str, receive_count: int, max_attempt_count: int):
        self.job_type = job_type
        self.receive_count = receive_count
        self.max_attempt_count = max_attempt_count
        super().__init__(
            f"Max attempt count reached for {job_type}: "
            f"received {receive_count} times, limit is {max_attempt_count}"
        )


class HandlerExecutionError(QueueWorkerError):
    """The job's own execution logic raised."""

    def __init__(self, job_type: str, error: BaseException):
        self.job_type = job_type
        self.error = error
        super().__init__(f"Job {job_type} failed: {error}")


class DuplicateDefinitionError(QueueWorkerError):
    """A job definition is already registered for the same type and version."""

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Job definition already registered for {key}")


class RegistryFrozenError(QueueWorkerError):
    """The job registry no longer accepts registrations."""
