"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .calculations.liquidation import LIQUIDATION_THRESHOLD, MARGIN_CALL_THRESHOLD
from .calculations.margin import FEE_RATE
from .leverage import DEFAULT_LEVERAGE, LeverageTable
from .models import AssetClass, Direction, OpenPosition, resolve_asset_class

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeverageSettings:
    default: float = DEFAULT_LEVERAGE
    assets: dict[str, float] = field(default_factory=dict)

    def table(self) -> LeverageTable:
        return LeverageTable(default=self.default).with_overrides(self.assets)


@dataclass(frozen=True)
class TradingConfig:
    fee_rate: float = FEE_RATE
    include_fee_in_affordability: bool = False


@dataclass(frozen=True)
class RiskConfig:
    margin_call_threshold: float = MARGIN_CALL_THRESHOLD
    liquidation_threshold: float = LIQUIDATION_THRESHOLD


@dataclass(frozen=True)
class MonitorConfig:
    check_interval_minutes: int = 5


@dataclass(frozen=True)
class AccountFeedConfig:
    url: str = ""
    poll_interval_seconds: int = 30
    timeout: int = 30
    auth_token: str = ""


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "pyth"
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class EmailConfig:
    enabled: bool = False
    alert_email: str = ""
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    sender_email: str = ""
    sender_password: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    email: EmailConfig = field(default_factory=EmailConfig)


@dataclass(frozen=True)
class AppConfig:
    leverage: LeverageSettings = field(default_factory=LeverageSettings)
    trading: TradingConfig = field(default_factory=TradingConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    account_feed: AccountFeedConfig = field(default_factory=AccountFeedConfig)
    positions: tuple[OpenPosition, ...] = ()
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_leverage(raw: dict[str, Any]) -> LeverageSettings:
    return LeverageSettings(
        default=float(raw.get("default", DEFAULT_LEVERAGE)),
        assets={str(k): float(v) for k, v in raw.get("assets", {}).items()},
    )


def _build_trading(raw: dict[str, Any]) -> TradingConfig:
    return TradingConfig(
        fee_rate=float(raw.get("fee_rate", FEE_RATE)),
        include_fee_in_affordability=bool(
            raw.get("include_fee_in_affordability", False)
        ),
    )


def _build_risk(raw: dict[str, Any]) -> RiskConfig:
    return RiskConfig(
        margin_call_threshold=float(
            raw.get("margin_call_threshold", MARGIN_CALL_THRESHOLD)
        ),
        liquidation_threshold=float(
            raw.get("liquidation_threshold", LIQUIDATION_THRESHOLD)
        ),
    )


def _build_monitor(raw: dict[str, Any]) -> MonitorConfig:
    return MonitorConfig(
        check_interval_minutes=int(raw.get("check_interval_minutes", 5)),
    )


def _build_account_feed(raw: dict[str, Any]) -> AccountFeedConfig:
    return AccountFeedConfig(
        url=raw.get("url", ""),
        poll_interval_seconds=int(raw.get("poll_interval_seconds", 30)),
        timeout=int(raw.get("timeout", 30)),
        auth_token=raw.get("auth_token", ""),
    )


def _build_positions(raw: list[dict[str, Any]]) -> tuple[OpenPosition, ...]:
    positions: list[OpenPosition] = []
    for i, p in enumerate(raw):
        symbol = str(p.get("symbol", ""))
        positions.append(
            OpenPosition(
                label=str(p.get("label") or symbol or f"position-{i + 1}"),
                symbol=symbol,
                asset_class=str(p.get("asset_class", "")),
                direction=Direction.parse(str(p.get("direction", "buy"))),
                entry_price=float(p.get("entry_price", 0.0)),
                units=float(p.get("units", 0.0)),
            )
        )
    return tuple(positions)


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "pyth"),
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds=dict(pyth_raw.get("feeds", {})),
        ),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    em = raw.get("email", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
        email=EmailConfig(
            enabled=bool(em.get("enabled", False)),
            alert_email=em.get("alert_email", ""),
            smtp_server=em.get("smtp_server", "smtp.gmail.com"),
            smtp_port=int(em.get("smtp_port", 587)),
            sender_email=em.get("sender_email", ""),
            sender_password=em.get("sender_password", ""),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    try:
        positions = _build_positions(raw.get("positions", []))
    except ValueError as e:
        raise ValueError(f"Invalid position: {e}") from e

    cfg = AppConfig(
        leverage=_build_leverage(raw.get("leverage", {})),
        trading=_build_trading(raw.get("trading", {})),
        risk=_build_risk(raw.get("risk", {})),
        monitor=_build_monitor(raw.get("monitor", {})),
        account_feed=_build_account_feed(raw.get("account_feed", {})),
        positions=positions,
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
        notifications=_build_notifications(raw.get("notifications", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if cfg.leverage.default < 1:
        raise ValueError(f"Default leverage must be at least 1, got {cfg.leverage.default:g}")

    for name, value in cfg.leverage.assets.items():
        try:
            AssetClass.parse(name)
        except ValueError as e:
            raise ValueError(f"Leverage override: {e}") from e
        if value < 1:
            raise ValueError(f"Leverage for '{name}' must be at least 1, got {value:g}")

    if cfg.trading.fee_rate < 0:
        raise ValueError("Fee rate cannot be negative")

    for name in ("margin_call_threshold", "liquidation_threshold"):
        value = getattr(cfg.risk, name)
        if not 0 < value <= 1:
            raise ValueError(f"Risk {name} must be in (0, 1], got {value}")
    if cfg.risk.liquidation_threshold >= cfg.risk.margin_call_threshold:
        raise ValueError(
            "Liquidation threshold must be below the margin call threshold"
        )

    labels: set[str] = set()
    for position in cfg.positions:
        if position.label in labels:
            raise ValueError(f"Duplicate position label '{position.label}'")
        labels.add(position.label)
        if not position.symbol:
            raise ValueError(f"Position '{position.label}' has no symbol")
        if position.entry_price <= 0:
            raise ValueError(f"Position '{position.label}' needs a positive entry_price")
        if position.units <= 0:
            raise ValueError(f"Position '{position.label}' needs positive units")
        if resolve_asset_class(position.asset_class) is None:
            logger.warning(
                "Position '%s' has unknown asset class '%s'; using default leverage",
                position.label,
                position.asset_class,
            )
        if position.symbol not in cfg.price_oracle.pyth.feeds:
            logger.warning(
                "Position '%s' symbol '%s' has no price feed configured",
                position.label,
                position.symbol,
            )
