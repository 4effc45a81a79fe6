"""PollLoop — receive one message at a time, route it, delete the source copy."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Any

from .attributes import parse_message
from .context import message_context
from .exceptions import PulserError, TransportError

if TYPE_CHECKING:
    from .ports import IQueueClient
    from .router import MessageRouter

logger = logging.getLogger("sqs_pulser.poller")


class PollLoop:
    """Sequential long-poll worker over the incoming queue.

    Each cycle receives at most one message, hands it to the router and
    deletes the received copy once the next hop was sent. A failed copy is
    left in the queue; it reappears after its visibility timeout and the
    queue's own redrive policy decides when to give up on it.

    Implements ``IBackgroundWorker`` (``start`` / ``stop``); :meth:`run` can
    also be awaited directly and ends when its task is cancelled.
    """

    def __init__(
        self,
        client: IQueueClient,
        router: MessageRouter,
        *,
        wait_time_seconds: int = 20,
        receive_backoff: float = 1.0,
    ) -> None:
        self._client = client
        self._router = router
        self._queue_url = router.config.incoming_queue_url
        self._wait_time_seconds = wait_time_seconds
        self._receive_backoff = receive_backoff
        self._running = False
        self._stopping = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        self._running = False
        self._stopping.set()
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(self._task, timeout=5.0)
            self._task = None
        logger.info("stop polling: %s", self._queue_url)

    async def run(self) -> None:
        """Poll until stopped or cancelled."""
        self._running = True
        logger.info("start polling: %s", self._queue_url)
        try:
            while self._running:
                try:
                    await self.run_once()
                except TransportError as e:
                    logger.warning("receive message: %s", e)
                    await self._backoff()
                except Exception:
                    logger.exception("unexpected error in poll loop")
                    await self._backoff()
                # A client may answer without ever suspending.
                await asyncio.sleep(0)
        finally:
            self._running = False

    async def run_once(self) -> int:
        """Execute a single receive cycle; returns the number of messages relayed.

        Raises TransportError when the receive itself fails.
        """
        raws = await self._client.receive_messages(
            self._queue_url,
            max_messages=1,
            wait_time_seconds=self._wait_time_seconds,
        )
        relayed = 0
        for raw in raws:
            if await self._process(raw):
                relayed += 1
        return relayed

    async def _process(self, raw: dict[str, Any]) -> bool:
        message_id = raw.get("MessageId")
        receipt_handle = raw.get("ReceiptHandle")
        with message_context(message_id):
            logger.info("receive message handle=%s", receipt_handle)
            try:
                message = parse_message(raw)
                await self._router.handle(message)
            except PulserError as e:
                logger.error("failed to handle message. %s", e)
                return False
            if not receipt_handle:
                logger.error("failed to delete message: no receipt handle")
                return False
            try:
                await self._client.delete_message(self._queue_url, receipt_handle)
            except TransportError as e:
                logger.error(
                    "failed to delete message: %s, handle=%s", e, receipt_handle
                )
                return False
            logger.info("success")
            return True

    async def _backoff(self) -> None:
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(
                self._stopping.wait(), timeout=self._receive_backoff
            )
