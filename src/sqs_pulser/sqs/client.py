"""SQSQueueClient — IQueueClient over aiobotocore."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import TransportError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..models import MessageAttributeValue
    from .connection import SQSConnectionManager


_TRANSPORT_ERRORS = (BotoCoreError, ClientError)


class SQSQueueClient:
    """SQS adapter implementing IQueueClient.

    botocore failures are re-raised as TransportError with the original chained.
    """

    def __init__(self, connection: SQSConnectionManager) -> None:
        self._connection = connection

    async def send_message(
        self,
        queue_url: str,
        body: str,
        attributes: Mapping[str, MessageAttributeValue] | None = None,
        delay_seconds: int = 0,
    ) -> str:
        send_kwargs: dict[str, Any] = {
            "QueueUrl": queue_url,
            "MessageBody": body,
            "DelaySeconds": delay_seconds,
        }
        if attributes:
            send_kwargs["MessageAttributes"] = {
                key: value.to_sqs() for key, value in attributes.items()
            }
        try:
            client = await self._connection.get_client()
            out = await client.send_message(**send_kwargs)
        except _TRANSPORT_ERRORS as e:
            raise TransportError(f"send message to {queue_url}: {e}") from e
        return str(out["MessageId"])

    async def receive_messages(
        self,
        queue_url: str,
        *,
        max_messages: int = 1,
        wait_time_seconds: int = 20,
    ) -> list[dict[str, Any]]:
        try:
            client = await self._connection.get_client()
            out = await client.receive_message(
                QueueUrl=queue_url,
                MaxNumberOfMessages=max_messages,
                WaitTimeSeconds=wait_time_seconds,
                AttributeNames=["All"],
                MessageAttributeNames=["All"],
            )
        except _TRANSPORT_ERRORS as e:
            raise TransportError(f"receive message from {queue_url}: {e}") from e
        return list(out.get("Messages", []))

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        try:
            client = await self._connection.get_client()
            await client.delete_message(QueueUrl=queue_url, ReceiptHandle=receipt_handle)
        except _TRANSPORT_ERRORS as e:
            raise TransportError(f"delete message from {queue_url}: {e}") from e

    async def get_queue_url(self, queue_name: str) -> str:
        try:
            client = await self._connection.get_client()
            out = await client.get_queue_url(QueueName=queue_name)
        except _TRANSPORT_ERRORS as e:
            raise TransportError(str(e)) from e
        return str(out["QueueUrl"])
