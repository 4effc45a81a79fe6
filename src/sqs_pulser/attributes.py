"""Anchor attribute codec — read, validate and stamp the original attributes."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .exceptions import (
    AttributeMissingError,
    AttributeParseError,
    AttributeTypeMismatchError,
    MessageFormatError,
)
from .models import (
    INT64_MAX,
    INT64_MIN,
    NumberAttributeValue,
    OriginalAttributes,
    QueueMessage,
    StringAttributeValue,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .models import MessageAttributeValue

ORIGINAL_MESSAGE_ID_KEY = "OriginalMessageID"
ORIGINAL_SENT_TIMESTAMP_KEY = "OriginalSentTimestamp"
SENT_TIMESTAMP_KEY = "SentTimestamp"

_INT_RE = re.compile(r"[+-]?[0-9]+")


def parse_int64(value: str) -> int:
    """Parse a base-10 int64; raises ValueError on anything else."""
    if not _INT_RE.fullmatch(value):
        raise ValueError(f"invalid syntax: {value!r}")
    number = int(value)
    if not INT64_MIN <= number <= INT64_MAX:
        raise ValueError(f"value out of range: {value!r}")
    return number


def parse_message(raw: Mapping[str, Any]) -> QueueMessage:
    """Validate a raw queue message (API response or Lambda record)."""
    try:
        return QueueMessage.model_validate(raw)
    except ValidationError as e:
        raise MessageFormatError(str(e)) from e


def extract_original_attributes(message: QueueMessage) -> OriginalAttributes | None:
    """Return the anchor carried by *message*, or None on first sighting."""
    attrs = message.message_attributes
    if not attrs:
        return None
    original_id = attrs.get(ORIGINAL_MESSAGE_ID_KEY)
    if original_id is None:
        return None
    if (
        not isinstance(original_id, StringAttributeValue)
        or original_id.data_type != "String"
    ):
        raise AttributeTypeMismatchError(
            f"original message id attribute type is mismatch: {original_id.data_type}",
            key=ORIGINAL_MESSAGE_ID_KEY,
        )
    if not original_id.string_value:
        raise AttributeMissingError(
            "original message id attribute value is empty",
            key=ORIGINAL_MESSAGE_ID_KEY,
        )
    original_sent = attrs.get(ORIGINAL_SENT_TIMESTAMP_KEY)
    if original_sent is None:
        raise AttributeMissingError(
            f"original message id {original_id.string_value}, "
            "but not set sent timestamp",
            key=ORIGINAL_SENT_TIMESTAMP_KEY,
        )
    if (
        not isinstance(original_sent, NumberAttributeValue)
        or original_sent.data_type != "Number"
    ):
        raise AttributeTypeMismatchError(
            f"original sent timestamp attribute type is mismatch: "
            f"{original_sent.data_type}",
            key=ORIGINAL_SENT_TIMESTAMP_KEY,
        )
    try:
        sent_timestamp = parse_int64(original_sent.string_value)
    except ValueError as e:
        raise AttributeParseError(
            f"original sent timestamp attribute value parse failed: {e}",
            key=ORIGINAL_SENT_TIMESTAMP_KEY,
        ) from e
    return OriginalAttributes(
        message_id=original_id.string_value,
        sent_timestamp=sent_timestamp,
    )


def extract_sent_timestamp(message: QueueMessage) -> int:
    """Return the queue-managed ``SentTimestamp`` (epoch milliseconds)."""
    if message.attributes is None:
        raise AttributeMissingError("attributes not found")
    value = message.attributes.get(SENT_TIMESTAMP_KEY)
    if value is None:
        raise AttributeMissingError(
            f"attribute {SENT_TIMESTAMP_KEY} not found", key=SENT_TIMESTAMP_KEY
        )
    try:
        return parse_int64(value)
    except ValueError as e:
        raise AttributeParseError(
            f"sent timestamp attribute value parse failed: {e}",
            key=SENT_TIMESTAMP_KEY,
        ) from e


def stamp_original_attributes(
    attributes: Mapping[str, MessageAttributeValue] | None,
    original: OriginalAttributes,
) -> dict[str, MessageAttributeValue]:
    """Return a copy of *attributes* with the two anchor keys set."""
    stamped: dict[str, MessageAttributeValue] = dict(attributes or {})
    stamped[ORIGINAL_MESSAGE_ID_KEY] = StringAttributeValue(
        string_value=original.message_id
    )
    stamped[ORIGINAL_SENT_TIMESTAMP_KEY] = NumberAttributeValue(
        string_value=str(original.sent_timestamp)
    )
    return stamped
