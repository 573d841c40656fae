"""
Poll loop for executing queued jobs.

The loop pulls one message at a time from the transport, dispatches it to
its registered job definition and reports the outcome, until the iteration
budget runs out, the queue stays idle for too long, or a shutdown signal
arrives. Signals and idle expiry are only honored between iterations; a
message being handled is always finished first.

There is no timeout on job execution: a job that hangs blocks the loop.
"""

import logging
import time
from collections.abc import Callable, Sequence

from queue_worker.constants import SPAN_RECEIVE_MESSAGE, UNKNOWN_JOB_TYPE
from queue_worker.exceptions import QueueWorkerError, TransportError
from queue_worker.jobs.registry import JobRegistry
from queue_worker.observability.metrics import MetricsSink, build_metric_data, queue_dimensions
from queue_worker.observability.tracing import get_tracer, set_span_attributes
from queue_worker.transport.base import QueueTransport
from queue_worker.types.job import ExecutionOutcome, PollConfiguration
from queue_worker.types.message import RawMessage
from queue_worker.types.metrics import Dimension
from queue_worker.worker.accounting import ExecutionAccounting, RunState
from queue_worker.worker.dispatcher import JobHandler, MessageDispatcher, execute_job
from queue_worker.worker.resolution import JobResolutionPolicy
from queue_worker.worker.shutdown import ShutdownController

logger = logging.getLogger(__name__)


class PollLoop:
    """
    Job worker that polls a queue and executes jobs one at a time.

    Features:
    - At-least-once processing: only successfully handled messages are acknowledged
    - Per-job attempt ceilings based on the message receive count
    - Graceful shutdown on SIGHUP/SIGINT/SIGTERM
    - Idle timeout and maximum iteration count
    """

    def __init__(
        self,
        transport: QueueTransport,
        registry: JobRegistry,
        sinks: Sequence[MetricsSink] = (),
        environment: str = "development",
        dimensions: Sequence[Dimension] | None = None,
        shutdown: ShutdownController | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the poll loop.

        Args:
            transport: Queue to receive messages from.
            registry: Registered job definitions.
            sinks: Metrics sinks that receive one batch per iteration.
            environment: Environment name reported with every metric.
            dimensions: Metric dimensions. Built from the environment,
                queue name and host name when not given.
            shutdown: Shutdown controller. A new one is created if not given.
            clock: Returns the current time in seconds.
            sleep: Sleeps between empty polls.
        """
        self._transport = transport
        self._sinks = list(sinks)
        self._dimensions = tuple(
            dimensions if dimensions is not None else queue_dimensions(environment, transport.name)
        )
        self._clock = clock
        self._sleep = sleep
        self.shutdown = shutdown or ShutdownController()
        self._dispatcher = MessageDispatcher(
            JobResolutionPolicy(registry),
            clock_ms=self._now_ms,
        )

    def _now_ms(self) -> int:
        return round(self._clock() * 1000)

    def run(self, config: PollConfiguration | None = None, handler: JobHandler | None = None) -> None:
        """
        Poll until a termination condition is met.

        Args:
            config: Poll configuration. Defaults to PollConfiguration().
            handler: Called with each hydrated job and its raw message.
                Defaults to calling the job's execute(). A custom handler
                is responsible for executing the job itself.

        Raises:
            QueueWorkerError: The first failure, if config.raise_exceptions is set.
        """
        config = config or PollConfiguration()
        handler = handler or execute_job

        logger.info(
            "Polling started",
            extra={
                "queue": self._transport.name,
                "visibility_timeout": config.visibility_timeout,
                "idle_timeout": config.idle_timeout,
                "max_executions": config.max_executions,
            },
        )

        with self.shutdown.installed():
            state = self._poll(config, handler)

        logger.info(
            "Shutdown successful",
            extra={"queue": self._transport.name, "iterations": state.iterations},
        )

    def _poll(self, config: PollConfiguration, handler: JobHandler) -> RunState:
        accounting = ExecutionAccounting(config)
        state = accounting.start(self._clock())

        while accounting.should_continue(state, self._clock()):
            message: RawMessage | None = None
            job_type = UNKNOWN_JOB_TYPE
            started_at_ms = self._now_ms()

            try:
                message = self._receive(config)

                if message is None:
                    outcome = ExecutionOutcome(
                        success=True,
                        job_type=job_type,
                        started_at_ms=started_at_ms,
                        finished_at_ms=self._now_ms(),
                    )
                else:
                    accounting.record_message(state, self._clock())
                    outcome = self._dispatcher.dispatch(message, handler, started_at_ms)
                    job_type = outcome.job_type
                    if outcome.error is not None:
                        raise outcome.error
                    self._acknowledge(message)

                self._emit(outcome)

                if accounting.idle_expired(state, self._clock()):
                    logger.info("Idle timeout reached", extra={"queue": self._transport.name})
                    break

                if message is None and config.poll_interval != 0:
                    self._sleep(config.poll_interval)

            except QueueWorkerError as e:
                self._emit(ExecutionOutcome(
                    success=False,
                    job_type=job_type,
                    started_at_ms=started_at_ms,
                    finished_at_ms=self._now_ms(),
                    message=message,
                    error=e,
                ))

                if config.raise_exceptions:
                    raise

                logger.exception(
                    f"Unable to process message: {e}",
                    extra={
                        "queue": self._transport.name,
                        "job_type": job_type,
                        "message_id": message.message_id if message else None,
                        "body": message.body if message else None,
                    },
                )

            accounting.record_iteration(state)

            if self.shutdown.shutdown_requested:
                break

        return state

    def _receive(self, config: PollConfiguration) -> RawMessage | None:
        with get_tracer().start_as_current_span(SPAN_RECEIVE_MESSAGE) as span:
            set_span_attributes(
                span,
                queue=self._transport.name,
                visibility_timeout=config.visibility_timeout,
            )
            try:
                message = self._transport.receive_one(
                    config.visibility_timeout,
                    config.attributes,
                    config.wait_time_seconds,
                )
            except QueueWorkerError:
                raise
            except Exception as e:
                raise TransportError(f"Receive failed: {e}", operation="receive") from e

            span.set_attribute("received", message is not None)
            if message is not None:
                set_span_attributes(
                    span,
                    message_id=message.message_id,
                    receive_count=message.receive_count,
                )
            return message

    def _acknowledge(self, message: RawMessage) -> None:
        try:
            self._transport.acknowledge(message)
        except QueueWorkerError:
            raise
        except Exception as e:
            raise TransportError(f"Acknowledge failed: {e}", operation="acknowledge") from e

    def _emit(self, outcome: ExecutionOutcome) -> None:
        if not self._sinks:
            return

        metric_data = build_metric_data(outcome, self._dimensions)
        for sink in self._sinks:
            try:
                sink.publish(metric_data)
            except Exception:
                logger.exception(
                    "Failed to publish metrics",
                    extra={"sink": type(sink).__name__},
                )
