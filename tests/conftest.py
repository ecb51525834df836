"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from margin_risk.config import (
    AccountFeedConfig,
    AppConfig,
    EmailConfig,
    LeverageSettings,
    MonitorConfig,
    NotificationsConfig,
    PriceOracleConfig,
    PythConfig,
    RiskConfig,
    TelegramConfig,
    TradingConfig,
)
from margin_risk.models import AccountUpdate, Direction, OpenPosition


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def btc_long() -> OpenPosition:
    # crypto 50:1 -> margin used 1000 * 1 / 50 = 20
    return OpenPosition(
        label="btc-long",
        symbol="BTC",
        asset_class="crypto",
        direction=Direction.BUY,
        entry_price=1000.0,
        units=1.0,
    )


@pytest.fixture()
def eurusd_short() -> OpenPosition:
    return OpenPosition(
        label="eurusd-short",
        symbol="EURUSD",
        asset_class="forex",
        direction=Direction.SELL,
        entry_price=1.10,
        units=1000.0,
    )


@pytest.fixture()
def safe_update() -> AccountUpdate:
    return AccountUpdate(equity=10000.0, used_margin=500.0, available_funds=9500.0)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config(btc_long: OpenPosition, eurusd_short: OpenPosition) -> AppConfig:
    return AppConfig(
        leverage=LeverageSettings(default=10.0, assets={}),
        trading=TradingConfig(fee_rate=0.001, include_fee_in_affordability=False),
        risk=RiskConfig(margin_call_threshold=0.5, liquidation_threshold=0.2),
        monitor=MonitorConfig(check_interval_minutes=1),
        account_feed=AccountFeedConfig(url="https://accounts.example.com/me"),
        positions=(btc_long, eurusd_short),
        price_oracle=PriceOracleConfig(
            provider="pyth",
            pyth=PythConfig(
                hermes_url="https://hermes.example.com",
                feeds={"BTC": "aaa111", "EURUSD": "bbb222"},
            ),
        ),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
            email=EmailConfig(enabled=False),
        ),
    )


SAMPLE_YAML = textwrap.dedent("""\
    leverage:
      default: 10
      assets:
        crypto: 25
    trading:
      fee_rate: 0.002
      include_fee_in_affordability: true
    risk:
      margin_call_threshold: 0.6
      liquidation_threshold: 0.3
    monitor:
      check_interval_minutes: 2
    account_feed:
      url: "https://accounts.example.com/me"
      poll_interval_seconds: 10
    positions:
      - label: btc-long
        symbol: BTC
        asset_class: crypto
        direction: BUY
        entry_price: 65000
        units: 0.5
    price_oracle:
      provider: pyth
      pyth:
        hermes_url: "https://hermes.example.com"
        feeds: {BTC: "aaa"}
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
      email:
        enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
