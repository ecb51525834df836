"""Account-level risk classification and helper metrics — pure, no I/O."""
from __future__ import annotations

from dataclasses import dataclass

from .models import AssetClass, RiskLevel, resolve_asset_class

# Margin level (%) must be strictly above each breakpoint to stay in the tier.
SAFE_ABOVE = 100.0
WARNING_ABOVE = 50.0
DANGER_ABOVE = 20.0


def calculate_margin_level(equity: float, used_margin: float) -> float:
    """Margin level in percent: equity / used margin x 100.

    A zero used margin is replaced by 1 so an account with no open
    positions reports its equity x 100 instead of dividing by zero.
    """
    return equity / (used_margin or 1) * 100


def get_risk_level(margin_level: float) -> RiskLevel:
    """Map a margin level percentage to a risk tier. Ties fall to the lower tier."""
    if margin_level > SAFE_ABOVE:
        return RiskLevel.SAFE
    if margin_level > WARNING_ABOVE:
        return RiskLevel.WARNING
    if margin_level > DANGER_ABOVE:
        return RiskLevel.DANGER
    return RiskLevel.CRITICAL


def calculate_drawdown(highest_equity: float, current_equity: float) -> float:
    """Drawdown from the equity peak, in percent."""
    if highest_equity <= 0:
        return 0.0
    return (highest_equity - current_equity) / highest_equity * 100


def calculate_equity_heat(used_margin: float, equity: float) -> float:
    """Share of equity tied up as margin, in percent."""
    if equity <= 0:
        return 0.0
    return used_margin / equity * 100


def calculate_risk_reward_ratio(
    entry_price: float,
    take_profit: float | None,
    stop_loss: float | None,
) -> str:
    """Risk-to-reward ratio in "1:x" form, or "N/A" when it cannot be computed."""
    if not take_profit or not stop_loss or entry_price <= 0:
        return "N/A"

    potential_profit = abs(take_profit - entry_price)
    potential_loss = abs(stop_loss - entry_price)
    if potential_loss == 0:
        return "N/A"

    return f"1:{potential_profit / potential_loss:.2f}"


def calculate_position_size(
    account_balance: float,
    risk_percentage: float,
    stop_loss_percentage: float,
) -> float:
    """Position value that loses ``risk_percentage`` of the balance at the stop."""
    if stop_loss_percentage <= 0:
        return 0.0
    risk_amount = account_balance * (risk_percentage / 100)
    return risk_amount / (stop_loss_percentage / 100)


def calculate_value_at_risk(
    position_value: float,
    volatility: float,
    confidence_level: float = 0.95,
) -> float:
    """Parametric one-period VaR under a normal assumption (95% or 99%)."""
    z_score = 1.65 if confidence_level == 0.95 else 2.33
    return position_value * volatility * z_score


@dataclass(frozen=True)
class MarginCallWarning:
    is_warning: bool
    is_margin_call: bool
    severity: RiskLevel


def margin_call_warning(
    margin_level: float, margin_call_level: float = 1.0
) -> MarginCallWarning:
    """Compare a margin ratio (1.0 == 100%) with the broker's margin-call level.

    The warning band starts 50% above the margin-call level.
    """
    warning_level = margin_call_level * 1.5
    if margin_level <= margin_call_level:
        severity = RiskLevel.DANGER
    elif margin_level <= warning_level:
        severity = RiskLevel.WARNING
    else:
        severity = RiskLevel.SAFE

    return MarginCallWarning(
        is_warning=margin_level <= warning_level,
        is_margin_call=margin_level <= margin_call_level,
        severity=severity,
    )


# ---------------------------------------------------------------------------
# Per-asset risk limits
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RiskLimits:
    max_position_size: float
    max_leverage: float
    min_margin_required: float
    max_slippage: float
    max_daily_loss: float


RISK_LIMITS: dict[AssetClass, RiskLimits] = {
    AssetClass.CRYPTO: RiskLimits(
        max_position_size=10_000,
        max_leverage=20,
        min_margin_required=0.1,
        max_slippage=0.01,
        max_daily_loss=1_000,
    ),
    AssetClass.FOREX: RiskLimits(
        max_position_size=100_000,
        max_leverage=30,
        min_margin_required=0.0333,
        max_slippage=0.002,
        max_daily_loss=2_000,
    ),
    AssetClass.STOCKS: RiskLimits(
        max_position_size=50_000,
        max_leverage=4,
        min_margin_required=0.25,
        max_slippage=0.005,
        max_daily_loss=1_500,
    ),
    AssetClass.COMMODITIES: RiskLimits(
        max_position_size=75_000,
        max_leverage=10,
        min_margin_required=0.15,
        max_slippage=0.008,
        max_daily_loss=1_800,
    ),
}


@dataclass(frozen=True)
class RiskValidationResult:
    is_valid: bool
    message: str = ""


def validate_risk_limits(
    asset_class: str | AssetClass,
    position_size: float,
    available_margin: float,
    *,
    leverage: float | None = None,
    current_daily_loss: float | None = None,
    estimated_slippage: float | None = None,
    limits: dict[AssetClass, RiskLimits] | None = None,
) -> RiskValidationResult:
    """Check a proposed trade against the per-asset limits.

    Rules are checked in order (size, leverage, margin, daily loss,
    slippage) and the first failure is reported.
    """
    table = RISK_LIMITS if limits is None else limits
    resolved = resolve_asset_class(asset_class)
    limit = table.get(resolved) if resolved is not None else None
    if limit is None:
        return RiskValidationResult(False, f"No risk limits for asset class '{asset_class}'")

    if position_size > limit.max_position_size:
        return RiskValidationResult(
            False,
            f"Position size exceeds maximum limit of {limit.max_position_size:,.0f} USD",
        )

    if leverage and leverage > limit.max_leverage:
        return RiskValidationResult(
            False, f"Leverage exceeds maximum limit of {limit.max_leverage:g}x"
        )

    required_margin = position_size * limit.min_margin_required
    if available_margin < required_margin:
        return RiskValidationResult(
            False,
            f"Insufficient margin. Required: {required_margin:,.2f} USD, "
            f"Available: {available_margin:,.2f} USD",
        )

    if current_daily_loss and abs(current_daily_loss) > limit.max_daily_loss:
        return RiskValidationResult(
            False, f"Daily loss limit of {limit.max_daily_loss:,.0f} USD has been reached"
        )

    if estimated_slippage and estimated_slippage > limit.max_slippage:
        return RiskValidationResult(
            False,
            f"Estimated slippage of {estimated_slippage * 100:.2f}% exceeds maximum "
            f"limit of {limit.max_slippage * 100:.2f}%",
        )

    return RiskValidationResult(True)
