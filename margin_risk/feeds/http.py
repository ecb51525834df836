"""Poll an HTTP endpoint for the latest account snapshot."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import AsyncIterator

import aiohttp
import certifi

from ..config import AccountFeedConfig
from ..models import AccountUpdate
from .jsonl import parse_record

logger = logging.getLogger(__name__)


class HttpAccountFeed:
    """Account feed backed by a JSON endpoint.

    The endpoint may return the account row itself or a list of rows (as a
    PostgREST ``select`` does); the first row is used. Failed polls are
    logged and skipped, so the stream only ends when the consumer stops.
    """

    def __init__(self, config: AccountFeedConfig) -> None:
        if not config.url:
            raise ValueError("Account feed URL is not configured")
        self.url = config.url
        self.poll_interval = config.poll_interval_seconds
        self.timeout = config.timeout
        self.auth_token = config.auth_token

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    async def fetch_update(self) -> AccountUpdate | None:
        """Fetch one snapshot, or None if the poll failed."""
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    self.url,
                    headers=self._headers(),
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        logger.error("Account feed poll failed: HTTP %s", response.status)
                        return None
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            logger.error("Account feed poll failed: %s", e)
            return None

        if isinstance(data, list):
            data = data[0] if data else None
        update = parse_record(data)
        if update is None:
            logger.warning("Account feed returned no account data")
        return update

    async def updates(self) -> AsyncIterator[AccountUpdate]:
        logger.info(
            "Polling account feed %s every %d seconds", self.url, self.poll_interval
        )
        while True:
            update = await self.fetch_update()
            if update is not None:
                yield update
            await asyncio.sleep(self.poll_interval)
