"""
Test helpers: fakes, recording doubles and job definitions shared by the tests.

Import them directly::

    from tests.helpers import FakeClock, FooJob, make_message
"""

import json
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, ClassVar

from pydantic import field_validator

from queue_worker.constants import DeliveryAttribute
from queue_worker.jobs.definition import JobDefinition
from queue_worker.jobs.registry import JobRegistry
from queue_worker.observability.metrics import MetricsSink
from queue_worker.transport.base import QueueTransport
from queue_worker.types.message import RawMessage
from queue_worker.types.metrics import MetricDatum

START_TIME = 1_700_000_000.0


class FakeClock:
    """Controllable wall clock; sleeping advances it instantly."""

    def __init__(self, start: float = START_TIME):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingSink(MetricsSink):
    """Metrics sink that keeps every published batch."""

    def __init__(self) -> None:
        self.batches: list[list[MetricDatum]] = []

    def publish(self, metric_data: Sequence[MetricDatum]) -> None:
        self.batches.append(list(metric_data))

    def values(self, name: str) -> list[float]:
        """All values published for a metric name, in order."""
        return [d.value for batch in self.batches for d in batch if d.name == name]


class RecordingHandler:
    """Custom poll handler that records its calls."""

    def __init__(self, error: Exception | None = None):
        self.calls: list[tuple[JobDefinition, RawMessage]] = []
        self.error = error

    def __call__(self, job: JobDefinition, message: RawMessage) -> None:
        self.calls.append((job, message))
        if self.error is not None:
            raise self.error


class ScriptedTransport(QueueTransport):
    """
    Transport that replays a fixed script of receive results.

    Each entry is a message to return, None for an empty poll, or an
    exception to raise. Once the script runs out, polls are empty.
    """

    def __init__(self, script: Sequence[Any] = (), name: str = "scripted-queue"):
        self.name = name
        self._script = list(script)
        self.receive_calls: list[dict[str, Any]] = []
        self.sent: list[str] = []
        self.acknowledged: list[RawMessage] = []

    def receive_one(
        self,
        visibility_timeout: int,
        attributes: Sequence[DeliveryAttribute],
        wait_time_seconds: int = 0,
    ) -> RawMessage | None:
        self.receive_calls.append({
            "visibility_timeout": visibility_timeout,
            "attributes": tuple(attributes),
            "wait_time_seconds": wait_time_seconds,
        })
        if not self._script:
            return None
        entry = self._script.pop(0)
        if isinstance(entry, Exception):
            raise entry
        return entry

    def send(self, body: str) -> str:
        self.sent.append(body)
        return str(uuid.uuid4())

    def acknowledge(self, message: RawMessage) -> None:
        self.acknowledged.append(message)


class FooJob(JobDefinition):
    """Job used across the tests: type Foo, version 1, at most 3 attempts."""

    job_type: ClassVar[str] = "Foo"
    job_version: ClassVar[int] = 1
    max_attempt_count: ClassVar[int | None] = 3

    name: str = "foo"


class UnlimitedJob(JobDefinition):
    """Job without an attempt ceiling."""

    job_type: ClassVar[str] = "Unlimited"
    job_version: ClassVar[int] = 2

    count: int


class PickyJob(JobDefinition):
    """Job whose validator raises something other than ValueError."""

    job_type: ClassVar[str] = "Picky"
    job_version: ClassVar[int] = 1

    size: int

    @field_validator("size")
    @classmethod
    def check_size(cls, value: int) -> int:
        if value < 0:
            raise TypeError("size must be positive")
        return value


def make_message(
    body: dict[str, Any] | str,
    receive_count: int | None = 1,
    sent_at: datetime | None = None,
) -> RawMessage:
    """Build a raw message as a transport would deliver it."""
    return RawMessage(
        body=body if isinstance(body, str) else json.dumps(body),
        receipt_handle=str(uuid.uuid4()),
        message_id=str(uuid.uuid4()),
        receive_count=receive_count,
        sent_at=sent_at or datetime.fromtimestamp(START_TIME - 5, tz=timezone.utc),
    )


# Registry loadable by import path, as the worker entry point does
example_registry = JobRegistry()
example_registry.register(FooJob)

not_a_registry = object()
