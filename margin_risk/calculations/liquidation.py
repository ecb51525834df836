"""Margin-call and liquidation trigger prices for a single position."""
from __future__ import annotations

from ..leverage import DEFAULT_LEVERAGE_TABLE, LeverageTable
from ..models import (
    AssetClass,
    Direction,
    OpenPosition,
    PositionSnapshot,
    PositionStatus,
)
from .pnl import calculate_pnl

# Fraction of the posted margin still left when the trigger fires.
LIQUIDATION_THRESHOLD = 0.2
MARGIN_CALL_THRESHOLD = 0.5


def calculate_margin_used(
    entry_price: float,
    position_size: float,
    asset_class: str | AssetClass,
    table: LeverageTable = DEFAULT_LEVERAGE_TABLE,
) -> float:
    return entry_price * position_size / table.leverage_for(asset_class)


def calculate_liquidation_price(
    direction: str | Direction,
    entry_price: float,
    position_size: float,
    asset_class: str | AssetClass,
    margin_level_threshold: float = LIQUIDATION_THRESHOLD,
    table: LeverageTable = DEFAULT_LEVERAGE_TABLE,
) -> float:
    """Price at which the position's equity falls to ``threshold`` x margin used.

    The position can absorb a loss of ``margin_used * (1 - threshold)``
    before the trigger fires, so a higher threshold gives a price closer to
    entry. Long trigger prices are floored at 0; a zero-size position
    returns the entry price.
    """
    side = Direction.parse(direction)
    if not position_size:
        return entry_price

    margin_used = calculate_margin_used(entry_price, position_size, asset_class, table)
    absorbable_loss = margin_used * (1 - margin_level_threshold)
    price_move = absorbable_loss / position_size

    if side is Direction.BUY:
        return max(0.0, entry_price - price_move)
    return entry_price + price_move


def calculate_margin_call_price(
    direction: str | Direction,
    entry_price: float,
    position_size: float,
    asset_class: str | AssetClass,
    margin_level_threshold: float = MARGIN_CALL_THRESHOLD,
    table: LeverageTable = DEFAULT_LEVERAGE_TABLE,
) -> float:
    """Same calculation as liquidation with the less extreme margin-call threshold."""
    return calculate_liquidation_price(
        direction,
        entry_price,
        position_size,
        asset_class,
        margin_level_threshold=margin_level_threshold,
        table=table,
    )


def _price_breached(side: Direction, current_price: float, trigger_price: float) -> bool:
    if side is Direction.BUY:
        return current_price <= trigger_price
    return current_price >= trigger_price


def needs_liquidation(
    direction: str | Direction,
    entry_price: float,
    current_price: float,
    position_size: float,
    asset_class: str | AssetClass,
    margin_level: float = LIQUIDATION_THRESHOLD,
    table: LeverageTable = DEFAULT_LEVERAGE_TABLE,
) -> bool:
    """True once ``current_price`` reaches the liquidation price."""
    side = Direction.parse(direction)
    liquidation_price = calculate_liquidation_price(
        side, entry_price, position_size, asset_class, margin_level, table
    )
    return _price_breached(side, current_price, liquidation_price)


def evaluate_position(
    position: OpenPosition,
    current_price: float,
    *,
    table: LeverageTable = DEFAULT_LEVERAGE_TABLE,
    margin_call_threshold: float = MARGIN_CALL_THRESHOLD,
    liquidation_threshold: float = LIQUIDATION_THRESHOLD,
) -> PositionSnapshot:
    """Value an open position and classify it against both trigger prices."""
    leverage = table.leverage_for(position.asset_class)
    margin_used = calculate_margin_used(
        position.entry_price, position.units, position.asset_class, table
    )
    pnl = calculate_pnl(
        position.entry_price,
        current_price,
        position.direction,
        position.units,
        leverage=leverage,
    )
    margin_call_price = calculate_liquidation_price(
        position.direction,
        position.entry_price,
        position.units,
        position.asset_class,
        margin_call_threshold,
        table,
    )
    liquidation_price = calculate_liquidation_price(
        position.direction,
        position.entry_price,
        position.units,
        position.asset_class,
        liquidation_threshold,
        table,
    )

    if _price_breached(position.direction, current_price, liquidation_price):
        status = PositionStatus.LIQUIDATION
    elif _price_breached(position.direction, current_price, margin_call_price):
        status = PositionStatus.MARGIN_CALL
    else:
        status = PositionStatus.OPEN

    return PositionSnapshot(
        position=position,
        current_price=current_price,
        leverage=leverage,
        margin_used=margin_used,
        pnl=pnl,
        margin_call_price=margin_call_price,
        liquidation_price=liquidation_price,
        status=status,
    )
