"""AWS Lambda entry point: ``sqs_pulser.aws_lambda.handler``.

Configuration comes from ``SQS_PULSER_*`` environment variables. Queue names
are resolved once per execution environment and the resulting immutable config
is reused by every invocation; each invocation runs its own event loop and SQS
client.
"""

from __future__ import annotations

import asyncio
from typing import Any

from .app import Pulser
from .config import PulserConfig, PulserOptions, load_options, resolve_config
from .logging import configure_logging
from .sqs import SQSConnectionManager, SQSQueueClient

_config: PulserConfig | None = None
_logging_configured = False


def _configure_logging_once(options: PulserOptions) -> None:
    global _logging_configured
    if _logging_configured:
        return
    configure_logging(options.log_level, options.log_format)
    _logging_configured = True


async def handle_event(event: Any, options: PulserOptions) -> dict[str, Any]:
    global _config
    async with SQSConnectionManager(
        options.region_name, endpoint_url=options.endpoint_url
    ) as connection:
        client = SQSQueueClient(connection)
        if _config is None:
            _config = await resolve_config(options, client)
        return await Pulser(client, _config).handle_event(event)


def handler(event: Any, context: Any) -> dict[str, Any]:  # noqa: ARG001
    """Lambda handler for SQS event source mappings with partial batch response."""
    options = load_options()
    _configure_logging_once(options)
    return asyncio.run(handle_event(event, options))
