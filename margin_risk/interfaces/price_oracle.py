"""Price oracle protocol — latest prices for open positions."""
from typing import Iterable, Protocol


class PriceOracle(Protocol):
    """Source of current prices keyed by position symbol.

    Symbols with no quote are left out of the result rather than mapped to 0.
    """

    async def fetch_prices(
        self, symbols: Iterable[str] | None = None
    ) -> dict[str, float]: ...
