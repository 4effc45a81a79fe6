"""Current message id, carried across awaits for log tagging."""

from __future__ import annotations

import contextlib
from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

_message_id: ContextVar[str | None] = ContextVar("message_id", default=None)


def get_message_id() -> str | None:
    """Get the id of the message being handled, if any."""
    return _message_id.get()


@contextlib.contextmanager
def message_context(message_id: str | None) -> Iterator[None]:
    """Tag everything logged inside the block with *message_id*."""
    token = _message_id.set(message_id)
    try:
        yield
    finally:
        _message_id.reset(token)
