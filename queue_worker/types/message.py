"""
Queue message type definitions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class RawMessage:
    """
    A message as delivered by the queue transport.

    The transport owns the message until it is acknowledged; the worker
    only reads these fields. Delivery metadata is None when it was not
    requested from the transport.
    """

    body: str
    receipt_handle: str
    message_id: str
    receive_count: int | None = None
    sent_at: datetime | None = None
    first_received_at: datetime | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
