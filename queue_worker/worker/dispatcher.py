"""
Message dispatch: decode, resolve, hydrate, execute.

The dispatcher never retries. A failed message is left on the queue and
retried through redelivery once its visibility timeout expires, until the
job's attempt ceiling rejects it.
"""

import logging
import time
from collections.abc import Callable

from pydantic import ValidationError

from queue_worker.constants import SPAN_EXECUTE_JOB, UNKNOWN_JOB_TYPE
from queue_worker.exceptions import DecodeError, HandlerExecutionError, QueueWorkerError
from queue_worker.jobs.definition import JobDefinition
from queue_worker.observability.tracing import get_tracer, set_span_attributes
from queue_worker.types.job import ExecutionOutcome, JobEnvelope, JobTypeHeader
from queue_worker.types.message import RawMessage
from queue_worker.worker.resolution import JobResolutionPolicy

logger = logging.getLogger(__name__)

# Type alias for message handlers
JobHandler = Callable[[JobDefinition, RawMessage], None]


def execute_job(job: JobDefinition, message: RawMessage) -> None:
    """Default handler: run the job's own execute()."""
    job.execute(message)


def _read_job_type(body: str) -> str | None:
    """Read just the job type from a record whose envelope failed validation."""
    try:
        return JobTypeHeader.model_validate_json(body).type
    except ValidationError:
        return None


def _now_ms() -> int:
    return round(time.time() * 1000)


class MessageDispatcher:
    """Turns one raw message into one job execution and its outcome."""

    def __init__(
        self,
        resolution: JobResolutionPolicy,
        clock_ms: Callable[[], int] = _now_ms,
    ):
        self._resolution = resolution
        self._clock_ms = clock_ms

    def dispatch(
        self,
        message: RawMessage,
        handler: JobHandler = execute_job,
        started_at_ms: int | None = None,
    ) -> ExecutionOutcome:
        """
        Dispatch a message to its job definition.

        Args:
            message: The received message.
            handler: Called with the hydrated job and the message.
            started_at_ms: When the iteration started. Defaults to now.

        Returns:
            The outcome; on failure its error holds the tagged exception.
        """
        started_at_ms = started_at_ms if started_at_ms is not None else self._clock_ms()
        job_type = UNKNOWN_JOB_TYPE

        try:
            envelope = self._decode(message)
            job_type = envelope.type

            definition_class = self._resolution.resolve(envelope.key, message.receive_count)
            job = self._hydrate(definition_class, message)

            logger.info(
                "Executing job",
                extra={
                    "job_type": job_type,
                    "version": envelope.version,
                    "message_id": message.message_id,
                    "receive_count": message.receive_count,
                },
            )

            with get_tracer().start_as_current_span(SPAN_EXECUTE_JOB) as span:
                set_span_attributes(
                    span,
                    job_type=job_type,
                    job_version=envelope.version,
                    message_id=message.message_id,
                    receive_count=message.receive_count,
                )
                try:
                    handler(job, message)
                except Exception as e:
                    raise HandlerExecutionError(job_type, e) from e

        except QueueWorkerError as e:
            if isinstance(e, DecodeError) and e.job_type is not None:
                job_type = e.job_type
            return ExecutionOutcome(
                success=False,
                job_type=job_type,
                started_at_ms=started_at_ms,
                finished_at_ms=self._clock_ms(),
                message=message,
                error=e,
            )

        return ExecutionOutcome(
            success=True,
            job_type=job_type,
            started_at_ms=started_at_ms,
            finished_at_ms=self._clock_ms(),
            message=message,
        )

    @staticmethod
    def _decode(message: RawMessage) -> JobEnvelope:
        try:
            return JobEnvelope.model_validate_json(message.body)
        except ValidationError as e:
            raise DecodeError(
                f"Message is not a valid job record: {e}",
                body=message.body,
                job_type=_read_job_type(message.body),
            ) from e

    @staticmethod
    def _hydrate(definition_class: type[JobDefinition], message: RawMessage) -> JobDefinition:
        try:
            return definition_class.hydrate(message.body)
        except Exception as e:
            raise DecodeError(
                f"Message does not match {definition_class.__name__}: {e}",
                body=message.body,
            ) from e
