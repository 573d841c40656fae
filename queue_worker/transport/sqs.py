"""
AWS SQS queue transport.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from queue_worker.constants import SQS_ATTRIBUTE_NAMES, DeliveryAttribute
from queue_worker.exceptions import TransportError
from queue_worker.transport.base import QueueTransport
from queue_worker.types.message import RawMessage

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str | None) -> datetime | None:
    """Convert an SQS epoch-milliseconds attribute to a datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


class SQSTransport(QueueTransport):
    """
    Queue transport backed by an SQS queue.

    The queue is created on first use if it does not exist yet;
    create_queue is idempotent for an existing queue with the same
    attributes.
    """

    def __init__(
        self,
        queue_name: str,
        region_name: str | None = None,
        client: Any | None = None,
    ):
        self.name = queue_name
        self._client = client or boto3.client("sqs", region_name=region_name)
        self._queue_url: str | None = None

    @property
    def queue_url(self) -> str:
        """Get the queue URL, creating the queue on first access."""
        if self._queue_url is None:
            try:
                response = self._client.create_queue(QueueName=self.name)
            except (BotoCoreError, ClientError) as e:
                raise TransportError(
                    f"Failed to resolve queue {self.name}: {e}",
                    operation="create_queue",
                ) from e
            self._queue_url = response["QueueUrl"]
            logger.info("Resolved SQS queue", extra={"queue": self.name, "queue_url": self._queue_url})
        return self._queue_url

    def send(self, body: str) -> str:
        try:
            response = self._client.send_message(QueueUrl=self.queue_url, MessageBody=body)
        except (BotoCoreError, ClientError) as e:
            raise TransportError(
                f"Failed to send message to {self.name}: {e}",
                operation="send",
            ) from e

        logger.debug("Message sent", extra={"queue": self.name, "message_id": response["MessageId"]})
        return response["MessageId"]

    def receive_one(
        self,
        visibility_timeout: int,
        attributes: Sequence[DeliveryAttribute],
        wait_time_seconds: int = 0,
    ) -> RawMessage | None:
        attribute_names = [SQS_ATTRIBUTE_NAMES[DeliveryAttribute(a)] for a in attributes]

        try:
            response = self._client.receive_message(
                QueueUrl=self.queue_url,
                MessageSystemAttributeNames=attribute_names,
                MaxNumberOfMessages=1,
                VisibilityTimeout=visibility_timeout,
                WaitTimeSeconds=wait_time_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            raise TransportError(
                f"Failed to receive message from {self.name}: {e}",
                operation="receive",
            ) from e

        messages = response.get("Messages", [])
        if not messages:
            return None

        message = messages[0]
        system_attributes = message.get("Attributes", {})
        receive_count = system_attributes.get(SQS_ATTRIBUTE_NAMES[DeliveryAttribute.RECEIVE_COUNT])

        return RawMessage(
            body=message["Body"],
            receipt_handle=message["ReceiptHandle"],
            message_id=message["MessageId"],
            receive_count=int(receive_count) if receive_count is not None else None,
            sent_at=_parse_timestamp(
                system_attributes.get(SQS_ATTRIBUTE_NAMES[DeliveryAttribute.SENT_AT])
            ),
            first_received_at=_parse_timestamp(
                system_attributes.get(SQS_ATTRIBUTE_NAMES[DeliveryAttribute.FIRST_RECEIVED_AT])
            ),
            attributes=dict(system_attributes),
        )

    def acknowledge(self, message: RawMessage) -> None:
        try:
            self._client.delete_message(
                QueueUrl=self.queue_url,
                ReceiptHandle=message.receipt_handle,
            )
        except (BotoCoreError, ClientError) as e:
            raise TransportError(
                f"Failed to delete message {message.message_id}: {e}",
                operation="acknowledge",
            ) from e
