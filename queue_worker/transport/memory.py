"""
In-process queue transport.

Implements visibility timeouts and receive counts the same way a hosted
queue does, so the worker behaves identically against it. Used for local
runs and tests; the clock is injectable.
"""

import logging
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from queue_worker.constants import DeliveryAttribute
from queue_worker.exceptions import TransportError
from queue_worker.transport.base import QueueTransport
from queue_worker.types.message import RawMessage

logger = logging.getLogger(__name__)


@dataclass
class _StoredMessage:
    message_id: str
    body: str
    sent_at: float
    receive_count: int = 0
    first_received_at: float | None = None
    visible_at: float = 0.0
    receipt_handle: str | None = None


def _to_datetime(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


class InMemoryTransport(QueueTransport):
    """A FIFO queue held in memory."""

    def __init__(self, name: str = "memory", clock: Callable[[], float] = time.time):
        self.name = name
        self._clock = clock
        self._messages: list[_StoredMessage] = []

    def send(self, body: str) -> str:
        now = self._clock()
        message = _StoredMessage(
            message_id=str(uuid.uuid4()),
            body=body,
            sent_at=now,
            visible_at=now,
        )
        self._messages.append(message)
        logger.debug("Message sent", extra={"queue": self.name, "message_id": message.message_id})
        return message.message_id

    def receive_one(
        self,
        visibility_timeout: int,
        attributes: Sequence[DeliveryAttribute],
        wait_time_seconds: int = 0,
    ) -> RawMessage | None:
        now = self._clock()

        for stored in self._messages:
            if stored.visible_at > now:
                continue

            stored.receive_count += 1
            if stored.first_received_at is None:
                stored.first_received_at = now
            stored.visible_at = now + visibility_timeout
            stored.receipt_handle = str(uuid.uuid4())

            return RawMessage(
                body=stored.body,
                receipt_handle=stored.receipt_handle,
                message_id=stored.message_id,
                receive_count=(
                    stored.receive_count
                    if DeliveryAttribute.RECEIVE_COUNT in attributes
                    else None
                ),
                sent_at=(
                    _to_datetime(stored.sent_at)
                    if DeliveryAttribute.SENT_AT in attributes
                    else None
                ),
                first_received_at=(
                    _to_datetime(stored.first_received_at)
                    if DeliveryAttribute.FIRST_RECEIVED_AT in attributes
                    else None
                ),
            )

        return None

    def acknowledge(self, message: RawMessage) -> None:
        for index, stored in enumerate(self._messages):
            if stored.receipt_handle == message.receipt_handle:
                del self._messages[index]
                return

        raise TransportError(
            f"Unknown receipt handle for message {message.message_id}",
            operation="acknowledge",
        )

    def __len__(self) -> int:
        return len(self._messages)
