"""Queue transport and worker lifecycle protocols."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .models import MessageAttributeValue


@runtime_checkable
class IQueueClient(Protocol):
    """
    Port for the queue operations the relay consumes.

    Adapters raise :class:`~sqs_pulser.exceptions.TransportError` on failure.
    """

    async def send_message(
        self,
        queue_url: str,
        body: str,
        attributes: Mapping[str, MessageAttributeValue] | None = None,
        delay_seconds: int = 0,
    ) -> str:
        """Send *body* to *queue_url* and return the id the queue assigned."""
        ...

    async def receive_messages(
        self,
        queue_url: str,
        *,
        max_messages: int = 1,
        wait_time_seconds: int = 20,
    ) -> list[dict[str, Any]]:
        """
        Receive raw messages with all queue-managed and user attributes.

        Returns the ``ReceiveMessage`` API message dicts, possibly empty.
        """
        ...

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        """Delete a received copy."""
        ...

    async def get_queue_url(self, queue_name: str) -> str:
        """Resolve a queue name to its URL."""
        ...


@runtime_checkable
class IBackgroundWorker(Protocol):
    """Lifecycle protocol for long-running workers."""

    async def start(self) -> None:
        """Start the background process."""
        ...

    async def stop(self) -> None:
        """Stop the background process gracefully."""
        ...
