"""Unrealized profit and loss."""
from __future__ import annotations

from ..models import Direction, PnLResult


def calculate_pnl(
    entry_price: float,
    current_price: float,
    direction: str | Direction,
    units: float,
    leverage: float = 1.0,
) -> PnLResult:
    """Compute P&L for a position marked at ``current_price``.

    ``pnl_percentage`` is relative to the capital behind the position:
    the full notional with the default ``leverage`` of 1, or the posted
    margin (notional / leverage) otherwise. A zero notional gives 0%.
    A flat position counts as a profit.
    """
    side = Direction.parse(direction)
    if side is Direction.BUY:
        pnl = units * (current_price - entry_price)
    else:
        pnl = units * (entry_price - current_price)

    capital = units * entry_price / leverage if leverage else 0.0
    pnl_percentage = pnl / capital * 100 if capital else 0.0

    return PnLResult(pnl=pnl, pnl_percentage=pnl_percentage, is_profit=pnl >= 0)
