"""Route one message: emit it now, or send it round the incoming queue again."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .attributes import (
    extract_original_attributes,
    extract_sent_timestamp,
    stamp_original_attributes,
)
from .clock import SystemClock
from .context import message_context
from .models import OriginalAttributes
from .scheduler import MAX_DELAY, delay_duration, delay_seconds

if TYPE_CHECKING:
    from datetime import datetime, timedelta

    from .clock import Clock
    from .config import PulserConfig
    from .models import MessageAttributeValue, QueueMessage
    from .ports import IQueueClient

logger = logging.getLogger("sqs_pulser.router")


class Route(str, enum.Enum):
    EMIT = "emit"
    REQUEUE = "requeue"


@dataclass(frozen=True)
class OutgoingMessage:
    """The copy to send: where, after how long, and with which attributes."""

    original: OriginalAttributes
    route: Route
    queue_url: str
    body: str
    attributes: dict[str, MessageAttributeValue]
    delay: timedelta
    delay_seconds: int


@dataclass(frozen=True)
class RouteResult:
    original: OriginalAttributes
    route: Route
    queue_url: str
    delay_seconds: int
    sent_message_id: str


class MessageRouter:
    """Decides and dispatches the next hop of each message.

    The anchor (original message id and send time) is taken from the message
    on first sight and re-stamped onto every copy, so each hop recomputes the
    remaining delay against the same emit instant.
    """

    def __init__(
        self,
        client: IQueueClient,
        config: PulserConfig,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._clock = clock or SystemClock()

    @property
    def config(self) -> PulserConfig:
        return self._config

    def resolve_original(self, message: QueueMessage) -> OriginalAttributes:
        """Return the message's anchor, creating it on first sighting."""
        original = extract_original_attributes(message)
        if original is not None:
            logger.info(
                "handle extended message, originalMessageID=%s "
                "originalSentTimestamp=%d",
                original.message_id,
                original.sent_timestamp,
            )
            return original
        logger.debug("handle 1st time message")
        sent_timestamp = extract_sent_timestamp(message)
        logger.info("handle 1st time message, sentTimestamp=%d", sent_timestamp)
        return OriginalAttributes(
            message_id=message.message_id,
            sent_timestamp=sent_timestamp,
        )

    def plan(self, message: QueueMessage, now: datetime) -> OutgoingMessage:
        """Build the next copy of *message* without sending it."""
        original = self.resolve_original(message)
        delay = delay_duration(
            original, self._config.emit_interval, self._config.offset, now
        )
        attributes = stamp_original_attributes(message.message_attributes, original)
        if delay <= MAX_DELAY:
            route = Route.EMIT
            queue_url = self._config.outgoing_queue_url
            seconds = delay_seconds(delay)
        else:
            route = Route.REQUEUE
            queue_url = self._config.incoming_queue_url
            seconds = delay_seconds(MAX_DELAY)
        return OutgoingMessage(
            original=original,
            route=route,
            queue_url=queue_url,
            body=message.body,
            attributes=attributes,
            delay=delay,
            delay_seconds=seconds,
        )

    async def handle(self, message: QueueMessage) -> RouteResult:
        """Route one message; extraction and send errors propagate."""
        with message_context(message.message_id):
            logger.debug("received message: %r", message)
            outgoing = self.plan(message, self._clock.now())
            if outgoing.route is Route.EMIT:
                logger.info("no extended, ready to emit delay=%s", outgoing.delay)
            else:
                logger.info("need extended, resend queue totalDelay=%s", outgoing.delay)
            sent_id = await self._client.send_message(
                outgoing.queue_url,
                outgoing.body,
                outgoing.attributes,
                delay_seconds=outgoing.delay_seconds,
            )
            logger.info("send to %s, message id=%s", outgoing.queue_url, sent_id)
            return RouteResult(
                original=outgoing.original,
                route=outgoing.route,
                queue_url=outgoing.queue_url,
                delay_seconds=outgoing.delay_seconds,
                sent_message_id=sent_id,
            )
