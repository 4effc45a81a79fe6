"""Tests for PollLoop."""

from __future__ import annotations

import asyncio
import time
from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from helpers import INCOMING_URL, RECEIPT_HANDLE, anchor_attributes, api_message

from sqs_pulser.clock import FixedClock
from sqs_pulser.config import PulserConfig
from sqs_pulser.exceptions import TransportError
from sqs_pulser.memory import InMemoryQueueClient
from sqs_pulser.poller import PollLoop
from sqs_pulser.ports import IBackgroundWorker
from sqs_pulser.router import MessageRouter


@pytest.fixture
def router(
    mock_client: MagicMock, config: PulserConfig, clock: FixedClock
) -> MessageRouter:
    return MessageRouter(mock_client, config, clock=clock)


def test_poll_loop_is_a_background_worker(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    assert isinstance(PollLoop(mock_client, router), IBackgroundWorker)


@pytest.mark.asyncio
async def test_run_once_routes_then_deletes(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    mock_client.receive_messages.return_value = [
        api_message(message_attributes=anchor_attributes())
    ]
    poll = PollLoop(mock_client, router, wait_time_seconds=7)

    assert await poll.run_once() == 1

    mock_client.receive_messages.assert_awaited_once_with(
        INCOMING_URL, max_messages=1, wait_time_seconds=7
    )
    mock_client.send_message.assert_awaited_once()
    mock_client.delete_message.assert_awaited_once_with(INCOMING_URL, RECEIPT_HANDLE)


@pytest.mark.asyncio
async def test_run_once_with_empty_receive(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    poll = PollLoop(mock_client, router)
    assert await poll.run_once() == 0
    mock_client.send_message.assert_not_called()
    mock_client.delete_message.assert_not_called()


@pytest.mark.asyncio
async def test_handling_failure_leaves_message_for_redelivery(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    attrs = anchor_attributes(original_sent="not-a-number")
    mock_client.receive_messages.return_value = [api_message(message_attributes=attrs)]
    poll = PollLoop(mock_client, router)

    assert await poll.run_once() == 0

    mock_client.send_message.assert_not_called()
    mock_client.delete_message.assert_not_called()


@pytest.mark.asyncio
async def test_far_future_anchor_is_relayed(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    attrs = anchor_attributes(original_sent="9223372036854775807")
    mock_client.receive_messages.return_value = [api_message(message_attributes=attrs)]
    poll = PollLoop(mock_client, router)

    assert await poll.run_once() == 1

    assert mock_client.send_message.call_args.args[0] == INCOMING_URL
    mock_client.delete_message.assert_awaited_once_with(INCOMING_URL, RECEIPT_HANDLE)


@pytest.mark.asyncio
async def test_send_failure_leaves_message_for_redelivery(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    mock_client.receive_messages.return_value = [api_message()]
    mock_client.send_message = AsyncMock(side_effect=TransportError("down"))
    poll = PollLoop(mock_client, router)

    assert await poll.run_once() == 0
    mock_client.delete_message.assert_not_called()


@pytest.mark.asyncio
async def test_malformed_message_is_not_deleted(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    raw = api_message(
        message_attributes={"x": {"DataType": "Decimal", "StringValue": "1"}}
    )
    mock_client.receive_messages.return_value = [raw]
    poll = PollLoop(mock_client, router)

    assert await poll.run_once() == 0
    mock_client.delete_message.assert_not_called()


@pytest.mark.asyncio
async def test_delete_failure_is_logged_not_raised(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    mock_client.receive_messages.return_value = [api_message()]
    mock_client.delete_message = AsyncMock(side_effect=TransportError("gone"))
    poll = PollLoop(mock_client, router)

    assert await poll.run_once() == 0
    mock_client.send_message.assert_awaited_once()


@pytest.mark.asyncio
async def test_receive_failure_propagates_from_run_once(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    mock_client.receive_messages = AsyncMock(side_effect=TransportError("boom"))
    poll = PollLoop(mock_client, router)
    with pytest.raises(TransportError):
        await poll.run_once()


@pytest.mark.asyncio
async def test_run_backs_off_and_retries_after_receive_failure(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    mock_client.receive_messages = AsyncMock(side_effect=TransportError("boom"))
    poll = PollLoop(mock_client, router, receive_backoff=0.01)

    await poll.start()
    await asyncio.sleep(0.1)
    await poll.stop()

    assert 2 <= mock_client.receive_messages.await_count < 20
    assert poll.running is False


@pytest.mark.asyncio
async def test_unexpected_error_does_not_end_the_loop(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    mock_client.receive_messages = AsyncMock(side_effect=RuntimeError("bug"))
    poll = PollLoop(mock_client, router, receive_backoff=0.01)

    await poll.start()
    await asyncio.sleep(0.05)
    assert poll.running is True
    await poll.stop()
    assert mock_client.receive_messages.await_count >= 2


@pytest.mark.asyncio
async def test_stop_aborts_in_flight_receive(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    started = asyncio.Event()

    async def long_poll(*args: Any, **kwargs: Any) -> list[dict[str, Any]]:
        started.set()
        await asyncio.sleep(3600)
        return []

    mock_client.receive_messages = AsyncMock(side_effect=long_poll)
    poll = PollLoop(mock_client, router)
    await poll.start()
    await asyncio.wait_for(started.wait(), timeout=1.0)

    t0 = time.monotonic()
    await poll.stop()

    assert time.monotonic() - t0 < 1.0
    assert poll.running is False


@pytest.mark.asyncio
async def test_cancelling_run_ends_the_loop(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    async def short_poll(*args: Any, **kwargs: Any) -> list[dict[str, Any]]:
        await asyncio.sleep(0.001)
        return []

    mock_client.receive_messages = AsyncMock(side_effect=short_poll)
    poll = PollLoop(mock_client, router)
    task = asyncio.create_task(poll.run())
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(task, timeout=1.0)
    assert poll.running is False


@pytest.mark.asyncio
async def test_loop_yields_when_receive_never_suspends(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    # AsyncMock returns without suspending; the loop must still let others run.
    poll = PollLoop(mock_client, router)
    await poll.start()
    await asyncio.sleep(0.01)

    assert poll.running is True
    await asyncio.wait_for(poll.stop(), timeout=1.0)

    assert poll.running is False
    assert mock_client.receive_messages.await_count >= 1


@pytest.mark.asyncio
async def test_loop_yields_when_every_receive_relays(
    mock_client: MagicMock, router: MessageRouter
) -> None:
    mock_client.receive_messages.return_value = [api_message()]
    poll = PollLoop(mock_client, router)
    await poll.start()
    await asyncio.sleep(0.01)
    await asyncio.wait_for(poll.stop(), timeout=1.0)

    assert mock_client.delete_message.await_count >= 1


@pytest.mark.asyncio
async def test_relays_from_incoming_to_outgoing_in_memory(clock: FixedClock) -> None:
    client = InMemoryQueueClient(clock)
    incoming = client.create_queue("incoming")
    outgoing = client.create_queue("outgoing")
    config = PulserConfig(
        incoming_queue_url=incoming,
        outgoing_queue_url=outgoing,
        emit_interval=timedelta(minutes=15),
    )
    poll = PollLoop(client, MessageRouter(client, config, clock=clock))
    await client.send_message(incoming, "hello")

    assert await poll.run_once() == 1

    assert client.messages(incoming) == []
    (emitted,) = client.messages(outgoing)
    assert emitted.body == "hello"
    # sent at 21:28:00 -> emit at 21:30:00
    assert emitted.delay_seconds == 120
