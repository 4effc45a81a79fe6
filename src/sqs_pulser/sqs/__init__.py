"""SQS transport adapter."""

from __future__ import annotations

from .client import SQSQueueClient
from .connection import SQSConnectionManager

__all__ = [
    "SQSConnectionManager",
    "SQSQueueClient",
]
