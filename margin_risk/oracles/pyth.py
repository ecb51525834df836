"""Pyth Network price oracle service."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Iterable

import aiohttp
import certifi

from ..config import PythConfig

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15


def _normalize_feed_id(feed_id: str) -> str:
    """Hermes returns ids without the 0x prefix that docs often show."""
    feed_id = feed_id.strip().lower()
    return feed_id[2:] if feed_id.startswith("0x") else feed_id


def parse_price(price_data: dict) -> float:
    """Convert a Hermes ``price`` object (integer mantissa + exponent) to float."""
    price_raw = int(price_data.get("price", 0))
    expo = int(price_data.get("expo", 0))
    return price_raw * (10**expo)


class PythOracle:
    """Fetch latest prices for position symbols from Pyth Hermes."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = {
            symbol: _normalize_feed_id(feed_id)
            for symbol, feed_id in config.feeds.items()
        }

    async def fetch_prices(
        self, symbols: Iterable[str] | None = None
    ) -> dict[str, float]:
        """Fetch current prices; on any failure return what was parsed (possibly {})."""
        prices: dict[str, float] = {}

        feeds = self.price_feeds
        if symbols is not None:
            wanted = set(symbols)
            feeds = {k: v for k, v in self.price_feeds.items() if k in wanted}

        # Several symbols may share one feed
        id_to_symbols: dict[str, list[str]] = {}
        for symbol, feed_id in feeds.items():
            id_to_symbols.setdefault(feed_id, []).append(symbol)

        if not id_to_symbols:
            return prices

        params = [("ids[]", feed_id) for feed_id in sorted(id_to_symbols)]
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)
        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    self.hermes_url, params=params, timeout=timeout
                ) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return prices
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, ValueError) as e:
            logger.error("Error fetching prices from Pyth: %s", e)
            return prices

        items = data.get("parsed") if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.error("Unexpected Pyth response shape: %s", type(data).__name__)
            return prices

        for item in items:
            if not isinstance(item, dict):
                continue
            feed_id = _normalize_feed_id(str(item.get("id", "")))
            if feed_id not in id_to_symbols:
                continue
            price_data = item.get("price")
            if not isinstance(price_data, dict):
                logger.warning("Missing Pyth price for feed %s", feed_id)
                continue
            try:
                price = parse_price(price_data)
            except (TypeError, ValueError):
                logger.warning("Unparsable Pyth price for feed %s", feed_id)
                continue
            for symbol in id_to_symbols[feed_id]:
                prices[symbol] = price

        for symbol, price in sorted(prices.items()):
            logger.debug("Pyth price %s: %.6f", symbol, price)
        missing = sorted(set(feeds) - set(prices))
        if missing:
            logger.warning("No Pyth price for: %s", ", ".join(missing))

        return prices
