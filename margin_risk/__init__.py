"""Margin, leverage, P&L and risk-level calculations for CFD accounts."""
from .calculations import (
    calculate_liquidation_price,
    calculate_margin_call_price,
    calculate_margin_required,
    calculate_max_position_size,
    calculate_pnl,
    calculate_trade,
    needs_liquidation,
)
from .leverage import DEFAULT_LEVERAGE_TABLE, LeverageTable, get_leverage_for_asset_type
from .models import AssetClass, Direction, RiskLevel
from .risk import calculate_margin_level, get_risk_level

__version__ = "0.1.0"

__all__ = [
    "AssetClass",
    "DEFAULT_LEVERAGE_TABLE",
    "Direction",
    "LeverageTable",
    "RiskLevel",
    "calculate_liquidation_price",
    "calculate_margin_call_price",
    "calculate_margin_level",
    "calculate_margin_required",
    "calculate_max_position_size",
    "calculate_pnl",
    "calculate_trade",
    "get_leverage_for_asset_type",
    "get_risk_level",
    "needs_liquidation",
]
