"""Pulser — wires configuration, queue client and the two runners together."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import TYPE_CHECKING, Any

from .batch import BatchHandler
from .config import RunMode, detect_run_mode, resolve_config
from .exceptions import ConfigurationError
from .poller import PollLoop
from .router import MessageRouter
from .sqs import SQSConnectionManager, SQSQueueClient

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping, Sequence

    from .clock import Clock
    from .config import PulserConfig, PulserOptions
    from .ports import IQueueClient

logger = logging.getLogger("sqs_pulser.app")

LAMBDA_HANDLER = "sqs_pulser.aws_lambda.handler"

TRAP_SIGNALS = tuple(
    sig
    for sig in (
        getattr(signal, "SIGHUP", None),
        signal.SIGINT,
        signal.SIGTERM,
    )
    if sig is not None
)


class Pulser:
    """The relay: one immutable config, one queue client, one router."""

    def __init__(
        self,
        client: IQueueClient,
        config: PulserConfig,
        *,
        clock: Clock | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.router = MessageRouter(client, config, clock=clock)

    @classmethod
    async def create(
        cls,
        options: PulserOptions,
        client: IQueueClient,
        *,
        clock: Clock | None = None,
    ) -> Pulser:
        """Resolve *options* against *client* and build the relay."""
        config = await resolve_config(options, client)
        return cls(client, config, clock=clock)

    def poll_loop(self, **kwargs: Any) -> PollLoop:
        return PollLoop(self.client, self.router, **kwargs)

    def batch_handler(self) -> BatchHandler:
        return BatchHandler(self.router)

    async def handle_event(
        self, event: Mapping[str, Any] | Sequence[Any]
    ) -> dict[str, Any]:
        """Handle one SQS event invocation; returns the partial batch response."""
        response = await self.batch_handler().handle(event)
        return response.to_dict()

    async def run(
        self,
        *,
        environ: Mapping[str, str] | None = None,
        stop_event: asyncio.Event | None = None,
        **poll_kwargs: Any,
    ) -> None:
        """Run the poll loop until SIGHUP/SIGINT/SIGTERM (or *stop_event*).

        Inside AWS Lambda the runtime drives the batch handler instead, so this
        refuses to start there.
        """
        if detect_run_mode(environ) is RunMode.LAMBDA:
            raise ConfigurationError(
                "running inside AWS Lambda; configure the function handler "
                f"as {LAMBDA_HANDLER}"
            )
        stop = stop_event or asyncio.Event()
        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []
        for sig in TRAP_SIGNALS:
            # Not available on Windows or outside the main thread.
            with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
                loop.add_signal_handler(sig, stop.set)
                installed.append(sig)

        poll = self.poll_loop(**poll_kwargs)
        await poll.start()
        try:
            await stop.wait()
        finally:
            await poll.stop()
            for sig in installed:
                loop.remove_signal_handler(sig)


@contextlib.asynccontextmanager
async def open_pulser(
    options: PulserOptions,
    *,
    clock: Clock | None = None,
) -> AsyncIterator[Pulser]:
    """Open an SQS connection, resolve the queues and yield the relay."""
    async with SQSConnectionManager(
        options.region_name, endpoint_url=options.endpoint_url
    ) as connection:
        pulser = await Pulser.create(options, SQSQueueClient(connection), clock=clock)
        yield pulser
