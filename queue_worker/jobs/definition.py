"""
Job definition base class.

A job definition is a pydantic model describing one unit of work. Its
fields are the job's parameters; the class-level job_type and job_version
identify it on the wire, and max_attempt_count caps how many times a
message for it may be delivered before it is treated as permanently failing.

Job definitions must be idempotent - a message may be delivered and
executed more than once.

Example:
    class SendEmail(JobDefinition):
        job_type = "send_email"
        job_version = 1
        max_attempt_count = 3

        recipient: str

        def execute(self, message: RawMessage) -> None:
            ...
"""

import json
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from queue_worker.types.job import JobTypeKey
from queue_worker.types.message import RawMessage


class JobDefinition(BaseModel):
    """Base class for all executable job definitions."""

    model_config = ConfigDict(extra="ignore")

    job_type: ClassVar[str]
    job_version: ClassVar[int] = 1
    max_attempt_count: ClassVar[int | None] = None

    @classmethod
    def type_key(cls) -> JobTypeKey:
        """Get the (type, version) key this definition is registered under."""
        return JobTypeKey(cls.job_type, cls.job_version)

    @classmethod
    def hydrate(cls, body: str | bytes) -> "JobDefinition":
        """
        Build a job instance from a message body.

        Raises:
            pydantic.ValidationError: If the body does not match the definition.
        """
        return cls.model_validate_json(body)

    def to_payload(self) -> dict[str, Any]:
        """Get the wire representation, including type and version."""
        return {
            "type": self.job_type,
            "version": self.job_version,
            **self.model_dump(mode="json"),
        }

    def to_json(self) -> str:
        """Serialize the job for sending to a queue."""
        return json.dumps(self.to_payload())

    def execute(self, message: RawMessage) -> None:
        """
        Run the job.

        Args:
            message: The message the job was hydrated from.
        """
        raise NotImplementedError(f"{type(self).__name__} must implement execute()")
