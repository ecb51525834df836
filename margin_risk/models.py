"""Data models — all frozen (immutable)."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any


class AssetClass(str, Enum):
    CRYPTO = "crypto"
    FOREX = "forex"
    STOCKS = "stocks"
    INDICES = "indices"
    COMMODITIES = "commodities"

    @classmethod
    def parse(cls, value: str | AssetClass) -> AssetClass:
        """Parse an asset class name, accepting singular and long-form aliases."""
        if isinstance(value, AssetClass):
            return value
        key = value.strip().lower()
        resolved = _ASSET_CLASS_ALIASES.get(key)
        if resolved is None:
            raise ValueError(f"Unknown asset class '{value}'")
        return resolved


_ASSET_CLASS_ALIASES: dict[str, AssetClass] = {
    "crypto": AssetClass.CRYPTO,
    "cryptocurrency": AssetClass.CRYPTO,
    "forex": AssetClass.FOREX,
    "fx": AssetClass.FOREX,
    "stock": AssetClass.STOCKS,
    "stocks": AssetClass.STOCKS,
    "index": AssetClass.INDICES,
    "indices": AssetClass.INDICES,
    "commodity": AssetClass.COMMODITIES,
    "commodities": AssetClass.COMMODITIES,
}


def resolve_asset_class(value: str | AssetClass) -> AssetClass | None:
    """Return the matching asset class, or None when the name is unknown."""
    try:
        return AssetClass.parse(value)
    except ValueError:
        return None


class Direction(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value: str | Direction) -> Direction:
        if isinstance(value, Direction):
            return value
        key = value.strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown direction '{value}' (expected buy or sell)")


class RiskLevel(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"
    CRITICAL = "critical"

    @property
    def severity(self) -> int:
        return _RISK_SEVERITY[self]


_RISK_SEVERITY = {
    RiskLevel.SAFE: 0,
    RiskLevel.WARNING: 1,
    RiskLevel.DANGER: 2,
    RiskLevel.CRITICAL: 3,
}


class PositionStatus(str, Enum):
    OPEN = "open"
    MARGIN_CALL = "margin_call"
    LIQUIDATION = "liquidation"

    @property
    def severity(self) -> int:
        return _POSITION_SEVERITY[self]


_POSITION_SEVERITY = {
    PositionStatus.OPEN: 0,
    PositionStatus.MARGIN_CALL: 1,
    PositionStatus.LIQUIDATION: 2,
}


@dataclass(frozen=True)
class LeverageConfig:
    """Leverage limits for one asset class."""

    asset_class: AssetClass
    max_leverage: float
    min_margin_fraction: float


@dataclass(frozen=True)
class TradeCalculationInput:
    asset_class: str
    current_price: float
    direction: Direction
    units: float
    available_funds: float


@dataclass(frozen=True)
class TradeCalculationResult:
    position_value: float
    leverage: float
    margin_required: float
    fee: float
    total: float
    can_afford: bool


@dataclass(frozen=True)
class PnLResult:
    pnl: float
    pnl_percentage: float
    is_profit: bool


def _number(value: Any) -> float:
    """Coerce a raw payload field to float; missing, null or unparsable reads as 0."""
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


@dataclass(frozen=True)
class AccountUpdate:
    """One account snapshot delivered by an account feed."""

    equity: float
    used_margin: float
    balance: float = 0.0
    available_funds: float = 0.0
    unrealized_pnl: float = 0.0

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> AccountUpdate:
        """Build from a raw feed record (``user_account`` row shape)."""
        return cls(
            equity=_number(payload.get("equity")),
            used_margin=_number(payload.get("used_margin")),
            balance=_number(payload.get("cash_balance", payload.get("balance"))),
            available_funds=_number(payload.get("available_funds")),
            unrealized_pnl=_number(payload.get("unrealized_pnl")),
        )


@dataclass(frozen=True)
class OpenPosition:
    """An open position watched by the monitor."""

    label: str
    symbol: str
    asset_class: str
    direction: Direction
    entry_price: float
    units: float


@dataclass(frozen=True)
class PositionSnapshot:
    """An open position valued at a current price."""

    position: OpenPosition
    current_price: float
    leverage: float
    margin_used: float
    pnl: PnLResult
    margin_call_price: float
    liquidation_price: float
    status: PositionStatus


@dataclass(frozen=True)
class RiskTransition:
    """A change between two consecutive levels seen by a tracker."""

    previous: RiskLevel | PositionStatus
    current: RiskLevel | PositionStatus

    @property
    def is_escalation(self) -> bool:
        return self.current.severity > self.previous.severity
