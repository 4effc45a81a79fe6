"""Exceptions for sqs-pulser."""

from __future__ import annotations


class PulserError(Exception):
    """Root exception for sqs-pulser."""


class ConfigurationError(PulserError):
    """Raised when the relay cannot be configured (fatal at startup)."""


class MessageAttributeError(PulserError):
    """Base class for errors reading the anchor or queue-managed attributes."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


class AttributeMissingError(MessageAttributeError):
    """Raised when a required attribute (or the attribute set) is absent or empty."""


class AttributeTypeMismatchError(MessageAttributeError):
    """Raised when a reserved attribute carries the wrong data type."""


class AttributeParseError(MessageAttributeError):
    """Raised when an attribute value is not a base-10 int64."""


class MessageFormatError(PulserError):
    """Raised when a raw message or event record fails validation."""


class TransportError(PulserError):
    """Raised when a send, receive, delete or queue URL lookup fails."""


class BatchItemFailedError(PulserError):
    """Raised when the only record of a batch fails.

    A batch of one cannot be partially retried, so the whole invocation fails.
    """

    def __init__(self, message: str, message_id: str | None = None) -> None:
        self.message_id = message_id
        super().__init__(message)
