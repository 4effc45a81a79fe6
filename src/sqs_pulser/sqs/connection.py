"""SQS client management."""

from __future__ import annotations

import logging
from typing import Any

from aiobotocore.session import AioSession, get_session

logger = logging.getLogger("sqs_pulser.sqs")


class SQSConnectionManager:
    """Owns one aiobotocore SQS client, created lazily on first use."""

    def __init__(
        self,
        region_name: str | None = None,
        *,
        endpoint_url: str | None = None,
        session: AioSession | None = None,
        **client_kwargs: Any,
    ) -> None:
        """Configure region, optional endpoint (e.g. localstack) and session."""
        self._region = region_name
        self._session = session or get_session()
        self._client_kwargs = dict(client_kwargs)
        if endpoint_url:
            self._client_kwargs["endpoint_url"] = endpoint_url
        self._client: Any = None
        self._client_cm: Any = None

    async def get_client(self) -> Any:
        """Return the shared SQS client; create it if needed."""
        if self._client is None:
            self._client_cm = self._session.create_client(
                "sqs",
                region_name=self._region,
                **self._client_kwargs,
            )
            self._client = await self._client_cm.__aenter__()
            logger.debug("SQS client created (region=%s)", self._region)
        return self._client

    async def close(self) -> None:
        """Close the client if open."""
        if self._client_cm is not None:
            await self._client_cm.__aexit__(None, None, None)
            self._client_cm = None
            self._client = None

    async def __aenter__(self) -> SQSConnectionManager:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
