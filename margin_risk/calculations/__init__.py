"""Pure margin, P&L and liquidation calculators."""
from .liquidation import (
    calculate_liquidation_price,
    calculate_margin_call_price,
    calculate_margin_used,
    evaluate_position,
    needs_liquidation,
)
from .margin import (
    calculate_margin_required,
    calculate_max_position_size,
    calculate_trade,
    parse_amount,
)
from .pnl import calculate_pnl

__all__ = [
    "calculate_liquidation_price",
    "calculate_margin_call_price",
    "calculate_margin_required",
    "calculate_margin_used",
    "calculate_max_position_size",
    "calculate_pnl",
    "calculate_trade",
    "evaluate_position",
    "needs_liquidation",
    "parse_amount",
]
