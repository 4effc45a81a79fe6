"""sqs-pulser — relay SQS messages and release them on a periodic pulse."""

from __future__ import annotations

from .app import Pulser, open_pulser
from .attributes import (
    ORIGINAL_MESSAGE_ID_KEY,
    ORIGINAL_SENT_TIMESTAMP_KEY,
    extract_original_attributes,
    extract_sent_timestamp,
    parse_message,
    stamp_original_attributes,
)
from .batch import BatchHandler, ItemResult
from .clock import Clock, FixedClock, SystemClock
from .config import PulserConfig, PulserOptions, parse_duration, resolve_config
from .exceptions import (
    AttributeMissingError,
    AttributeParseError,
    AttributeTypeMismatchError,
    BatchItemFailedError,
    ConfigurationError,
    MessageAttributeError,
    MessageFormatError,
    PulserError,
    TransportError,
)
from .memory import InMemoryQueueClient
from .models import (
    BatchItemFailure,
    BatchResponse,
    BinaryAttributeValue,
    NumberAttributeValue,
    OriginalAttributes,
    QueueMessage,
    StringAttributeValue,
)
from .poller import PollLoop
from .ports import IBackgroundWorker, IQueueClient
from .router import MessageRouter, OutgoingMessage, Route, RouteResult
from .scheduler import (
    MAX_DELAY,
    delay_duration,
    emit_time,
    emit_timestamp,
    sent_time,
)

__version__ = "0.1.0"

__all__ = [
    "MAX_DELAY",
    "ORIGINAL_MESSAGE_ID_KEY",
    "ORIGINAL_SENT_TIMESTAMP_KEY",
    "AttributeMissingError",
    "AttributeParseError",
    "AttributeTypeMismatchError",
    "BatchHandler",
    "BatchItemFailedError",
    "BatchItemFailure",
    "BatchResponse",
    "BinaryAttributeValue",
    "Clock",
    "ConfigurationError",
    "FixedClock",
    "IBackgroundWorker",
    "IQueueClient",
    "InMemoryQueueClient",
    "ItemResult",
    "MessageAttributeError",
    "MessageFormatError",
    "MessageRouter",
    "NumberAttributeValue",
    "OriginalAttributes",
    "OutgoingMessage",
    "PollLoop",
    "Pulser",
    "PulserConfig",
    "PulserError",
    "PulserOptions",
    "QueueMessage",
    "Route",
    "RouteResult",
    "StringAttributeValue",
    "SystemClock",
    "TransportError",
    "__version__",
    "delay_duration",
    "emit_time",
    "emit_timestamp",
    "extract_original_attributes",
    "extract_sent_timestamp",
    "open_pulser",
    "parse_duration",
    "parse_message",
    "resolve_config",
    "sent_time",
    "stamp_original_attributes",
]
