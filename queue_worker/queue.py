"""
Named job queues.

A JobQueue binds a transport to a default visibility timeout and offers
enqueueing and polling. A QueueDirectory holds the queues an application
defines at startup, keyed by logical queue type, with an optional default.
"""

import logging
from collections.abc import Callable
from typing import Any

from queue_worker.config import Settings
from queue_worker.constants import TransportKind
from queue_worker.jobs.definition import JobDefinition
from queue_worker.jobs.registry import JobRegistry
from queue_worker.observability.metrics import MetricsSink
from queue_worker.transport.base import QueueTransport
from queue_worker.transport.memory import InMemoryTransport
from queue_worker.transport.sqs import SQSTransport
from queue_worker.types.job import PollConfiguration
from queue_worker.worker.dispatcher import JobHandler
from queue_worker.worker.poller import PollLoop

logger = logging.getLogger(__name__)


class JobQueue:
    """A queue of jobs on one transport."""

    def __init__(
        self,
        queue_type: str,
        transport: QueueTransport,
        visibility_timeout: int,
    ):
        self.queue_type = queue_type
        self.transport = transport
        self.visibility_timeout = visibility_timeout

    @property
    def name(self) -> str:
        return self.transport.name

    def enqueue(self, job: JobDefinition | str) -> str:
        """
        Send a job to the queue.

        Args:
            job: A job definition, or an already-serialized job record.

        Returns:
            The transport-assigned message id.
        """
        if isinstance(job, JobDefinition):
            body = job.to_json()
        elif isinstance(job, str):
            body = job
        else:
            raise TypeError(f"enqueue expects a JobDefinition or a raw string, got {type(job).__name__}")

        return self.transport.send(body)

    def poller(self, registry: JobRegistry, **kwargs: Any) -> PollLoop:
        """Build a poll loop for this queue."""
        return PollLoop(self.transport, registry, **kwargs)

    def poll(
        self,
        registry: JobRegistry,
        handler: JobHandler | None = None,
        sinks: tuple[MetricsSink, ...] = (),
        environment: str = "development",
        **options: Any,
    ) -> None:
        """
        Poll this queue until a termination condition is met.

        Args:
            registry: Registered job definitions.
            handler: Optional custom handler, see PollLoop.run().
            sinks: Metrics sinks.
            environment: Environment name reported with metrics.
            **options: PollConfiguration fields. visibility_timeout
                defaults to the queue's own.
        """
        options.setdefault("visibility_timeout", self.visibility_timeout)
        config = PollConfiguration(**options)
        self.poller(registry, sinks=sinks, environment=environment).run(config, handler)


class QueueDirectory:
    """
    The queues an application works with.
    Populated at startup with define_queue().
    """

    def __init__(
        self,
        settings: Settings,
        transport_factory: Callable[[str], QueueTransport] | None = None,
    ):
        """
        Args:
            settings: Application settings (prefix, environment, transport).
            transport_factory: Builds a transport for a queue name.
                Defaults to the transport selected in settings.
        """
        self._settings = settings
        self._transport_factory = transport_factory or self._default_transport
        self._queues: dict[str, JobQueue] = {}
        self._default: JobQueue | None = None

    def _default_transport(self, queue_name: str) -> QueueTransport:
        if self._settings.transport == TransportKind.MEMORY:
            return InMemoryTransport(name=queue_name)
        return SQSTransport(queue_name, region_name=self._settings.aws_region)

    def define_queue(
        self,
        queue_type: str,
        visibility_timeout: int | None = None,
        default: bool = False,
    ) -> JobQueue:
        """
        Define a queue for a logical queue type.

        Args:
            queue_type: Logical queue type, part of the queue name.
            visibility_timeout: Default visibility timeout for polling.
            default: Make this the default queue.

        Returns:
            The new queue.
        """
        queue_name = self._settings.queue_name(queue_type)
        queue = JobQueue(
            queue_type=queue_type,
            transport=self._transport_factory(queue_name),
            visibility_timeout=(
                visibility_timeout
                if visibility_timeout is not None
                else self._settings.default_visibility_timeout
            ),
        )
        self._queues[queue_type] = queue

        if default:
            self._default = queue

        logger.info(
            "Defined queue",
            extra={"queue_type": queue_type, "queue": queue_name, "default": default},
        )
        return queue

    def get_queue(self, queue_type: str) -> JobQueue:
        """
        Get a defined queue.

        Raises:
            KeyError: If no queue was defined for the type.
        """
        try:
            return self._queues[queue_type]
        except KeyError:
            raise KeyError(f"No queue defined for type: {queue_type}") from None

    @property
    def default_queue(self) -> JobQueue | None:
        return self._default
