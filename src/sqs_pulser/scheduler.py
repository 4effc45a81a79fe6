"""Pulse arithmetic — when may a message be emitted, and how long until then.

All functions are pure. The emit instant is the next interval boundary after
the original send time, counted from the Unix epoch, shifted by ``offset``::

    emit_time = floor(sent_time / interval) * interval + interval + offset

The offset is applied as given; a negative offset can move the emit instant
before the boundary it was added to.

The arithmetic runs on integer microseconds so every int64 anchor is accepted,
including ones far outside the range of :class:`~datetime.datetime`.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import OriginalAttributes

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Ceiling on DelaySeconds for a single SQS send.
MAX_DELAY = timedelta(seconds=900)

_MICROSECOND = timedelta(microseconds=1)
_LONGEST_MICROS = timedelta.max // _MICROSECOND


def _micros(delta: timedelta) -> int:
    return delta // _MICROSECOND


def emit_timestamp(
    original: OriginalAttributes,
    interval: timedelta,
    offset: timedelta,
) -> int:
    """Return the emit instant in microseconds since the Unix epoch."""
    if interval <= timedelta(0):
        raise ValueError("interval must be positive")
    step = _micros(interval)
    sent = original.sent_timestamp * 1000
    return (sent // step) * step + step + _micros(offset)


def sent_time(original: OriginalAttributes) -> datetime:
    """Return the anchor's send time as an aware UTC datetime.

    Raises OverflowError when the anchor lies outside the datetime range.
    """
    return EPOCH + timedelta(milliseconds=original.sent_timestamp)


def emit_time(
    original: OriginalAttributes,
    interval: timedelta,
    offset: timedelta,
) -> datetime:
    """Return the pulse instant at which the message becomes due.

    Raises OverflowError when that instant lies outside the datetime range.
    """
    return EPOCH + timedelta(microseconds=emit_timestamp(original, interval, offset))


def delay_duration(
    original: OriginalAttributes,
    interval: timedelta,
    offset: timedelta,
    now: datetime,
) -> timedelta:
    """Return the time left until the emit instant.

    Never negative; capped at ``timedelta.max`` for anchors too far ahead to
    represent.
    """
    remaining = emit_timestamp(original, interval, offset) - _micros(now - EPOCH)
    if remaining <= 0:
        return timedelta(0)
    if remaining >= _LONGEST_MICROS:
        return timedelta.max
    return timedelta(microseconds=remaining)


def delay_seconds(delay: timedelta) -> int:
    """Whole seconds of *delay*, truncated (the unit ``DelaySeconds`` takes)."""
    return int(delay // timedelta(seconds=1))
