"""Configuration — raw options, the resolved immutable config, and helpers."""

from __future__ import annotations

import enum
import logging
import os
import re
from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError, TransportError
from .logging import LOG_FORMATS, LOG_LEVELS

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .ports import IQueueClient

logger = logging.getLogger("sqs_pulser.config")

ENV_PREFIX = "SQS_PULSER_"
LEGACY_ENV_PREFIX = "SQPULSER_"

_UNITS: dict[str, Decimal] = {
    "ns": Decimal("0.000000001"),
    "us": Decimal("0.000001"),
    "µs": Decimal("0.000001"),  # noqa: RUF001
    "μs": Decimal("0.000001"),  # noqa: RUF001
    "ms": Decimal("0.001"),
    "s": Decimal(1),
    "m": Decimal(60),
    "h": Decimal(3600),
}
_UNIT_PATTERN = "ns|us|µs|μs|ms|s|m|h"  # noqa: RUF001
_NUMBER_PATTERN = r"\d+(?:\.\d*)?|\.\d+"
_DURATION_RE = re.compile(rf"^[+-]?(?:(?:{_NUMBER_PATTERN})(?:{_UNIT_PATTERN}))+$")
_COMPONENT_RE = re.compile(rf"({_NUMBER_PATTERN})({_UNIT_PATTERN})")


def parse_duration(text: str) -> timedelta:
    """Parse a Go-style duration such as ``15m``, ``1h30m`` or ``-5m``.

    Precision is truncated to microseconds.
    """
    value = text.strip()
    if value in ("0", "+0", "-0"):
        return timedelta(0)
    if not _DURATION_RE.match(value):
        raise ValueError(f"invalid duration {text!r}")
    seconds = sum(
        (Decimal(number) * _UNITS[unit] for number, unit in _COMPONENT_RE.findall(value)),
        Decimal(0),
    )
    delta = timedelta(microseconds=int(seconds * 1_000_000))
    return -delta if value.startswith("-") else delta


class RunMode(str, enum.Enum):
    POLL = "poll"
    LAMBDA = "lambda"


def detect_run_mode(environ: Mapping[str, str] | None = None) -> RunMode:
    """Lambda when the hosting environment says so, otherwise the poll loop."""
    env = os.environ if environ is None else environ
    if env.get("AWS_EXECUTION_ENV", "").startswith("AWS_Lambda") or env.get(
        "AWS_LAMBDA_RUNTIME_API"
    ):
        return RunMode.LAMBDA
    return RunMode.POLL


def _env(name: str) -> AliasChoices:
    return AliasChoices(f"{ENV_PREFIX}{name}", f"{LEGACY_ENV_PREFIX}{name}")


class PulserOptions(BaseSettings):
    """Options as supplied by the operator; queues may be given by URL or name.

    Every field is read from an ``SQS_PULSER_*`` environment variable, with the
    older ``SQPULSER_*`` spelling accepted as a fallback. Keyword arguments
    take precedence over the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        populate_by_name=True,
    )

    incoming_queue_url: str | None = Field(
        default=None,
        validation_alias=_env("IN_QUEUE_URL"),
        description="Incoming SQS queue URL",
    )
    outgoing_queue_url: str | None = Field(
        default=None,
        validation_alias=_env("OUT_QUEUE_URL"),
        description="Outgoing SQS queue URL",
    )
    incoming_queue_name: str | None = Field(
        default=None,
        validation_alias=_env("IN"),
        description="Incoming SQS queue name",
    )
    outgoing_queue_name: str | None = Field(
        default=None,
        validation_alias=_env("OUT"),
        description="Outgoing SQS queue name",
    )
    emit_interval: timedelta = Field(
        default=timedelta(minutes=15),
        validation_alias=_env("EMIT_INTERVAL"),
        description="Message emit interval",
    )
    offset: timedelta = Field(
        default=timedelta(0),
        validation_alias=_env("OFFSET"),
        description="Message emit offset, may be negative",
    )
    log_level: str = Field(
        default="info",
        validation_alias=_env("LOG_LEVEL"),
        description="Minimum log level",
    )
    log_format: str = Field(
        default="text",
        validation_alias=_env("LOG_FORMAT"),
        description="Log line format",
    )
    region_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION"),
        description="AWS region of the queues",
    )
    endpoint_url: str | None = Field(
        default=None,
        validation_alias=_env("ENDPOINT_URL"),
        description="Custom SQS endpoint URL",
    )

    @field_validator("emit_interval", "offset", mode="before")
    @classmethod
    def _parse_duration_string(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_duration(value)
        return value

    @field_validator(
        "incoming_queue_url",
        "outgoing_queue_url",
        "incoming_queue_name",
        "outgoing_queue_name",
        "region_name",
        "endpoint_url",
        mode="before",
    )
    @classmethod
    def _blank_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"expected one of {tuple(LOG_LEVELS)}")
        return level

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        fmt = value.strip().lower()
        if fmt not in LOG_FORMATS:
            raise ValueError(f"expected one of {LOG_FORMATS}")
        return fmt


def load_options(**overrides: object) -> PulserOptions:
    """Read options from the environment, with ``overrides`` taking precedence.

    Raises:
        ConfigurationError: a value does not validate.
    """
    try:
        return PulserOptions(**overrides)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


class PulserConfig(BaseModel):
    """Resolved configuration, built once at startup and shared read-only."""

    model_config = ConfigDict(frozen=True)

    incoming_queue_url: str = Field(min_length=1)
    outgoing_queue_url: str = Field(min_length=1)
    emit_interval: timedelta
    offset: timedelta = timedelta(0)

    @field_validator("emit_interval")
    @classmethod
    def _positive_interval(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("emit interval must be positive")
        return value


async def _resolve_queue_url(
    label: str,
    url: str | None,
    name: str | None,
    client: IQueueClient,
) -> str:
    if url:
        return url
    if not name:
        raise ConfigurationError(
            f"either {label} queue url or {label} queue name is required"
        )
    logger.info("try get %s queue url: queue name `%s`", label, name)
    try:
        return await client.get_queue_url(name)
    except TransportError as e:
        raise TransportError(f"can not get {label} queue url: {e}") from e


async def resolve_config(options: PulserOptions, client: IQueueClient) -> PulserConfig:
    """Resolve queue names to URLs and validate the result.

    Raises:
        ConfigurationError: a queue is missing or the durations are invalid.
        TransportError: a queue name could not be resolved.
    """
    incoming = await _resolve_queue_url(
        "incoming", options.incoming_queue_url, options.incoming_queue_name, client
    )
    outgoing = await _resolve_queue_url(
        "outgoing", options.outgoing_queue_url, options.outgoing_queue_name, client
    )
    try:
        return PulserConfig(
            incoming_queue_url=incoming,
            outgoing_queue_url=outgoing,
            emit_interval=options.emit_interval,
            offset=options.offset,
        )
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
