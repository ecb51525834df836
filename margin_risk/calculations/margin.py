"""Margin, fee and affordability calculations — pure, no I/O."""
from __future__ import annotations

import math

from ..leverage import DEFAULT_LEVERAGE_TABLE, LeverageTable
from ..models import AssetClass, TradeCalculationInput, TradeCalculationResult

# Flat 0.1% of position value.
FEE_RATE = 0.001


def parse_amount(text: str | float | None) -> float:
    """Parse a free-text amount from user input.

    Blank, unparsable, NaN and infinite input all become 0, so callers never
    see NaN downstream.

    Examples:
        "1000" → 1000.0
        "1.5e3" → 1500.0
        "abc" → 0.0
    """
    if text is None:
        return 0.0
    try:
        value = float(text)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def calculate_position_value(units: float, current_price: float) -> float:
    return units * current_price


def calculate_margin_required(
    asset_class: str | AssetClass,
    position_value: float,
    table: LeverageTable = DEFAULT_LEVERAGE_TABLE,
) -> float:
    """Collateral required to hold ``position_value`` at the asset's leverage."""
    return position_value / table.leverage_for(asset_class)


def calculate_max_position_size(
    asset_class: str | AssetClass,
    available_funds: float,
    current_price: float,
    table: LeverageTable = DEFAULT_LEVERAGE_TABLE,
) -> float:
    """Maximum units affordable with ``available_funds`` as margin.

    A non-positive price yields 0 rather than dividing by zero.
    """
    if current_price <= 0:
        return 0.0
    leverage = table.leverage_for(asset_class)
    return available_funds * leverage / current_price


def calculate_fee(position_value: float, fee_rate: float = FEE_RATE) -> float:
    return position_value * fee_rate


def calculate_trade(
    trade: TradeCalculationInput,
    *,
    table: LeverageTable = DEFAULT_LEVERAGE_TABLE,
    fee_rate: float = FEE_RATE,
    include_fee: bool = False,
) -> TradeCalculationResult:
    """Derive position value, margin, fee and affordability for a trade ticket.

    ``can_afford`` compares available funds against the margin alone unless
    ``include_fee`` is set, in which case the fee is added before comparing.
    Zero units produce a zero-valued, affordable result; rejecting a
    zero-size trade is the caller's decision.
    """
    leverage = table.leverage_for(trade.asset_class)
    position_value = calculate_position_value(trade.units, trade.current_price)
    margin_required = position_value / leverage
    fee = calculate_fee(position_value, fee_rate)
    total = margin_required + fee
    required = total if include_fee else margin_required

    return TradeCalculationResult(
        position_value=position_value,
        leverage=leverage,
        margin_required=margin_required,
        fee=fee,
        total=total,
        can_afford=trade.available_funds >= required,
    )
