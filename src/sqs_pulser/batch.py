"""BatchHandler — route a finite batch of records and report per-item failures."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .attributes import parse_message
from .context import message_context
from .exceptions import BatchItemFailedError, MessageFormatError
from .models import BatchItemFailure, BatchResponse

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from .router import MessageRouter

logger = logging.getLogger("sqs_pulser.batch")


@dataclass(frozen=True)
class ItemResult:
    message_id: str
    ok: bool
    error: str | None = None


def _records_of(event: Mapping[str, Any] | Sequence[Any]) -> list[Any]:
    if isinstance(event, dict):
        records = event.get("Records")
        if not isinstance(records, list):
            raise MessageFormatError("event has no Records list, maybe not sqs event")
        return records
    if isinstance(event, list):
        return event
    raise MessageFormatError(
        f"unsupported event type {type(event).__name__}, maybe not sqs event"
    )


def _record_message_id(record: Any) -> str | None:
    if not isinstance(record, dict):
        return None
    message_id = record.get("messageId", record.get("MessageId"))
    if isinstance(message_id, str) and message_id:
        return message_id
    return None


class BatchHandler:
    """Processes one SQS event invocation.

    Records are routed one after another in input order. Whatever goes wrong
    with a record is contained to that record and reported as a batch item
    failure, so the queue retries only the failed ones.

    A batch holding a single record that fails raises
    :class:`~sqs_pulser.exceptions.BatchItemFailedError` instead: a batch of
    one cannot be partially retried.
    """

    def __init__(self, router: MessageRouter) -> None:
        self._router = router

    async def process_record(self, record: Mapping[str, Any]) -> ItemResult:
        """Route one record; never raises."""
        message_id = _record_message_id(record) or ""
        with message_context(message_id):
            try:
                message = parse_message(record)
                await self._router.handle(message)
            except Exception as e:  # noqa: BLE001
                logger.error("failed to handle record: %s", e, exc_info=True)
                return ItemResult(message_id=message_id, ok=False, error=str(e))
        return ItemResult(message_id=message_id, ok=True)

    async def handle(self, event: Mapping[str, Any] | Sequence[Any]) -> BatchResponse:
        """Process every record of *event* and return the partial failure response.

        Raises:
            MessageFormatError: the event is not an SQS event (a record has no
                message id).
            BatchItemFailedError: the batch held one record and it failed.
        """
        records = _records_of(event)
        for record in records:
            if _record_message_id(record) is None:
                raise MessageFormatError("message id is empty, maybe not sqs event")

        results = [await self.process_record(record) for record in records]
        failures = [
            BatchItemFailure(item_identifier=result.message_id)
            for result in results
            if not result.ok
        ]
        logger.info(
            "processed %d record(s), %d failed", len(results), len(failures)
        )
        if len(records) == 1 and len(failures) == 1:
            raise BatchItemFailedError(
                f"failure message id: {failures[0].item_identifier}",
                message_id=failures[0].item_identifier,
            )
        return BatchResponse(batch_item_failures=failures)
