"""In-memory queue client for tests and local experiments."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from .clock import SystemClock
from .exceptions import TransportError
from .scheduler import EPOCH

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .clock import Clock
    from .models import MessageAttributeValue

QUEUE_URL_PREFIX = "memory://queue/"


@dataclass
class StoredMessage:
    message_id: str
    body: str
    attributes: dict[str, MessageAttributeValue]
    sent_at: datetime
    visible_at: datetime
    delay_seconds: int
    receipt_handle: str | None = None
    receive_count: int = 0

    def to_raw(self) -> dict[str, Any]:
        """Return the ``ReceiveMessage`` API shape of this message."""
        sent_ms = (self.sent_at - EPOCH) // timedelta(milliseconds=1)
        raw: dict[str, Any] = {
            "MessageId": self.message_id,
            "ReceiptHandle": self.receipt_handle,
            "Body": self.body,
            "Attributes": {
                "SentTimestamp": str(sent_ms),
                "ApproximateReceiveCount": str(self.receive_count),
            },
        }
        if self.attributes:
            raw["MessageAttributes"] = {
                key: value.to_sqs() for key, value in self.attributes.items()
            }
        return raw


@dataclass
class _Queue:
    name: str
    url: str
    messages: list[StoredMessage] = field(default_factory=list)


class InMemoryQueueClient:
    """IQueueClient keeping queues in process memory.

    Honours ``DelaySeconds`` and a fixed visibility timeout against the given
    clock, so a :class:`~sqs_pulser.clock.FixedClock` can step through hops.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        *,
        visibility_timeout: timedelta = timedelta(seconds=30),
    ) -> None:
        self._clock = clock or SystemClock()
        self._visibility_timeout = visibility_timeout
        self._queues: dict[str, _Queue] = {}
        self.sent: list[tuple[str, StoredMessage]] = []

    def create_queue(self, name: str) -> str:
        """Create (or return) the queue named *name*; returns its URL."""
        url = f"{QUEUE_URL_PREFIX}{name}"
        self._queues.setdefault(url, _Queue(name=name, url=url))
        return url

    def messages(self, queue_url: str) -> list[StoredMessage]:
        """Messages currently stored in the queue, visible or not."""
        return list(self._queue(queue_url).messages)

    def _queue(self, queue_url: str) -> _Queue:
        try:
            return self._queues[queue_url]
        except KeyError:
            raise TransportError(f"queue does not exist: {queue_url}") from None

    async def send_message(
        self,
        queue_url: str,
        body: str,
        attributes: Mapping[str, MessageAttributeValue] | None = None,
        delay_seconds: int = 0,
    ) -> str:
        queue = self._queue(queue_url)
        if not 0 <= delay_seconds <= 900:
            raise TransportError(f"invalid DelaySeconds: {delay_seconds}")
        now = self._clock.now()
        stored = StoredMessage(
            message_id=str(uuid.uuid4()),
            body=body,
            attributes=dict(attributes or {}),
            sent_at=now,
            visible_at=now + timedelta(seconds=delay_seconds),
            delay_seconds=delay_seconds,
        )
        queue.messages.append(stored)
        self.sent.append((queue_url, stored))
        return stored.message_id

    async def receive_messages(
        self,
        queue_url: str,
        *,
        max_messages: int = 1,
        wait_time_seconds: int = 20,  # noqa: ARG002
    ) -> list[dict[str, Any]]:
        # No long polling: always returns at once, but yields to the event loop.
        await asyncio.sleep(0)
        queue = self._queue(queue_url)
        now = self._clock.now()
        received: list[dict[str, Any]] = []
        for stored in queue.messages:
            if len(received) >= max_messages:
                break
            if stored.visible_at > now:
                continue
            stored.receipt_handle = uuid.uuid4().hex
            stored.receive_count += 1
            stored.visible_at = now + self._visibility_timeout
            received.append(stored.to_raw())
        return received

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        queue = self._queue(queue_url)
        for stored in queue.messages:
            if stored.receipt_handle == receipt_handle:
                queue.messages.remove(stored)
                return
        raise TransportError(f"receipt handle is invalid: {receipt_handle}")

    async def get_queue_url(self, queue_name: str) -> str:
        url = f"{QUEUE_URL_PREFIX}{queue_name}"
        if url not in self._queues:
            raise TransportError(f"queue does not exist: {queue_name}")
        return url
