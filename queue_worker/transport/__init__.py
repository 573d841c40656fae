"""
Queue transports.
"""

from queue_worker.transport.base import QueueTransport
from queue_worker.transport.memory import InMemoryTransport
from queue_worker.transport.sqs import SQSTransport

__all__ = [
    "QueueTransport",
    "InMemoryTransport",
    "SQSTransport",
]
