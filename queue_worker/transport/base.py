"""
Queue transport interface.

Delivery is at-least-once: a received message stays on the queue, hidden
for its visibility timeout, until it is acknowledged. Messages that are
never acknowledged become visible again and are redelivered with a
higher receive count.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from queue_worker.constants import DeliveryAttribute
from queue_worker.types.message import RawMessage


class QueueTransport(ABC):
    """Base class for queue transports."""

    name: str

    @abstractmethod
    def receive_one(
        self,
        visibility_timeout: int,
        attributes: Sequence[DeliveryAttribute],
        wait_time_seconds: int = 0,
    ) -> RawMessage | None:
        """
        Receive at most one message.

        Args:
            visibility_timeout: Seconds the message stays hidden from other receivers.
            attributes: Delivery metadata to populate on the message.
            wait_time_seconds: Long-poll wait, if the transport supports it.

        Returns:
            The message, or None if the queue had nothing visible.

        Raises:
            TransportError: If the transport could not be reached.
        """
        ...

    @abstractmethod
    def send(self, body: str) -> str:
        """
        Send a message.

        Returns:
            The transport-assigned message id.

        Raises:
            TransportError: If the message could not be sent.
        """
        ...

    @abstractmethod
    def acknowledge(self, message: RawMessage) -> None:
        """
        Remove a processed message from the queue.

        Raises:
            TransportError: If the message could not be removed.
        """
        ...
