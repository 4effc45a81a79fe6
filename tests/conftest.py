"""Pytest fixtures for sqs-pulser tests."""

from __future__ import annotations

import os
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from helpers import INCOMING_URL, OUTGOING_URL, utc

from sqs_pulser.clock import FixedClock
from sqs_pulser.config import PulserConfig


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(utc("2018-12-17T21:28:00Z"))


@pytest.fixture
def config() -> PulserConfig:
    return PulserConfig(
        incoming_queue_url=INCOMING_URL,
        outgoing_queue_url=OUTGOING_URL,
        emit_interval=timedelta(minutes=15),
        offset=timedelta(0),
    )


@pytest.fixture
def mock_client() -> MagicMock:
    client = MagicMock()
    client.send_message = AsyncMock(return_value="sent-message-id")
    client.receive_messages = AsyncMock(return_value=[])
    client.delete_message = AsyncMock(return_value=None)
    client.get_queue_url = AsyncMock()
    return client


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep settings read by PulserOptions independent of the host shell."""
    for name in list(os.environ):
        if name.startswith(("SQS_PULSER_", "SQPULSER_")):
            monkeypatch.delenv(name)
    for name in ("AWS_REGION", "AWS_DEFAULT_REGION"):
        monkeypatch.delenv(name, raising=False)
