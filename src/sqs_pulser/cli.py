"""Command line entry point: ``sqs-pulser``.

Settings come from ``SQS_PULSER_*`` environment variables; flags given on the
command line override them.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import re
import sys
from typing import TYPE_CHECKING

from . import __version__
from .app import open_pulser
from .config import PulserOptions, load_options
from .exceptions import ConfigurationError, PulserError
from .logging import LOG_FORMATS, LOG_LEVELS, configure_logging

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = logging.getLogger("sqs_pulser.cli")

_DURATION_FLAGS = ("--emit-interval", "--offset")
_NEGATIVE_VALUE_RE = re.compile(r"-[0-9.]")


def build_parser() -> argparse.ArgumentParser:
    """Build the parser; only flags actually given appear in the namespace."""
    parser = argparse.ArgumentParser(
        prog="sqs-pulser",
        description=(
            "sqs-pulser relays SQS messages and emits them in a pulsatile cycle"
        ),
        argument_default=argparse.SUPPRESS,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--in-queue-url", dest="incoming_queue_url", help="Incoming SQS queue URL"
    )
    parser.add_argument(
        "--out-queue-url", dest="outgoing_queue_url", help="Outgoing SQS queue URL"
    )
    parser.add_argument(
        "--in", dest="incoming_queue_name", help="Incoming SQS queue name"
    )
    parser.add_argument(
        "--out", dest="outgoing_queue_name", help="Outgoing SQS queue name"
    )
    parser.add_argument(
        "--emit-interval",
        help="message emit interval, e.g. 15m or 1h (default: 15m)",
    )
    parser.add_argument(
        "--offset",
        help="message emit offset, may be negative (default: 0m)",
    )
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=tuple(LOG_LEVELS),
        help="log level (default: info)",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        help="log format (default: text)",
    )
    parser.add_argument(
        "--region", dest="region_name", help="AWS region of the queues"
    )
    parser.add_argument(
        "--endpoint-url", help="custom SQS endpoint URL (e.g. localstack)"
    )
    return parser


def join_negative_values(argv: Sequence[str]) -> list[str]:
    """Rewrite ``--offset -10m`` as ``--offset=-10m``.

    argparse reads a dash-leading word as the next option, so a negative
    duration has to be attached to its flag.
    """
    args = list(argv)
    joined: list[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--":
            joined.extend(args[i:])
            break
        if (
            arg in _DURATION_FLAGS
            and i + 1 < len(args)
            and _NEGATIVE_VALUE_RE.match(args[i + 1])
        ):
            joined.append(f"{arg}={args[i + 1]}")
            i += 2
            continue
        joined.append(arg)
        i += 1
    return joined


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]
    return build_parser().parse_args(join_negative_values(argv))


def options_from_args(args: argparse.Namespace) -> PulserOptions:
    """Environment settings with the given flags laid over them."""
    return load_options(**vars(args))


async def serve(
    options: PulserOptions, environ: Mapping[str, str] | None = None
) -> None:
    async with open_pulser(options) as pulser:
        await pulser.run(environ=environ)


def main(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    args = parse_args(argv)
    try:
        options = options_from_args(args)
    except ConfigurationError as e:
        configure_logging()
        logger.error("%s", e)
        return 1
    configure_logging(options.log_level, options.log_format)
    try:
        asyncio.run(serve(options, environ))
    except PulserError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
