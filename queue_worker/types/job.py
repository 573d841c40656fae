"""
Job-related type definitions for internal use.
"""

from dataclasses import dataclass
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

from queue_worker.constants import (
    DEFAULT_ATTRIBUTES,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_VISIBILITY_TIMEOUT_SECONDS,
    DeliveryAttribute,
)
from queue_worker.exceptions import QueueWorkerError
from queue_worker.types.message import RawMessage


class JobTypeKey(NamedTuple):
    """Identifies which registered job definition handles a message."""

    type: str
    version: int

    def __str__(self) -> str:
        return f"{self.type} v{self.version}"


class JobTypeHeader(BaseModel):
    """The type field alone, read when the full envelope does not validate."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(min_length=1)


class JobEnvelope(BaseModel):
    """
    Job record structure carried in a message body.

    Only type and version are interpreted by the worker; the remaining
    fields belong to the job definition.
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(min_length=1)
    version: int

    @property
    def key(self) -> JobTypeKey:
        return JobTypeKey(self.type, self.version)


class PollConfiguration(BaseModel):
    """
    Settings for a single poll run.
    Immutable for the duration of the run.
    """

    model_config = ConfigDict(frozen=True)

    visibility_timeout: int = Field(default=DEFAULT_VISIBILITY_TIMEOUT_SECONDS, ge=0)
    attributes: tuple[DeliveryAttribute, ...] = DEFAULT_ATTRIBUTES
    raise_exceptions: bool = False
    idle_timeout: float | None = Field(default=None, ge=0)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, ge=0)
    max_executions: int | None = Field(default=None, ge=0)
    wait_time_seconds: int = Field(default=0, ge=0)


@dataclass
class ExecutionOutcome:
    """
    Result of a single poll iteration.
    Produced per iteration and consumed immediately by the metrics sinks.
    """

    success: bool
    job_type: str
    started_at_ms: int
    finished_at_ms: int
    message: RawMessage | None = None
    error: QueueWorkerError | None = None

    @property
    def received(self) -> bool:
        """Check if a message was received in this iteration."""
        return self.message is not None

    @property
    def attempts(self) -> int | None:
        """Get the number of times the message has been delivered."""
        return self.message.receive_count if self.message else None

    @property
    def duration_ms(self) -> int:
        """Get the iteration's elapsed wall-clock time in milliseconds."""
        return self.finished_at_ms - self.started_at_ms
