"""Unit tests for risk classification and account risk helpers."""
from __future__ import annotations

import pytest

from margin_risk.models import AssetClass, RiskLevel
from margin_risk.risk import (
    RiskLimits,
    calculate_drawdown,
    calculate_equity_heat,
    calculate_margin_level,
    calculate_position_size,
    calculate_risk_reward_ratio,
    calculate_value_at_risk,
    get_risk_level,
    margin_call_warning,
    validate_risk_limits,
)


class TestGetRiskLevel:
    @pytest.mark.parametrize(
        "margin_level, expected",
        [
            (1000.0, RiskLevel.SAFE),
            (100.01, RiskLevel.SAFE),
            (100.0, RiskLevel.WARNING),
            (80.0, RiskLevel.WARNING),
            (50.01, RiskLevel.WARNING),
            (50.0, RiskLevel.DANGER),
            (20.01, RiskLevel.DANGER),
            (20.0, RiskLevel.CRITICAL),
            (0.0, RiskLevel.CRITICAL),
            (-15.0, RiskLevel.CRITICAL),
        ],
    )
    def test_boundaries(self, margin_level: float, expected: RiskLevel) -> None:
        assert get_risk_level(margin_level) is expected

    def test_nan_is_critical(self) -> None:
        assert get_risk_level(float("nan")) is RiskLevel.CRITICAL

    def test_values_are_strings(self) -> None:
        assert get_risk_level(80.0) == "warning"


class TestMarginLevel:
    def test_account_scenario(self) -> None:
        level = calculate_margin_level(400.0, 500.0)
        assert level == pytest.approx(80.0)
        assert get_risk_level(level) is RiskLevel.WARNING

    def test_zero_used_margin_substitutes_one(self) -> None:
        assert calculate_margin_level(250.0, 0.0) == pytest.approx(25000.0)


class TestAccountMetrics:
    def test_drawdown(self) -> None:
        assert calculate_drawdown(10000.0, 8000.0) == pytest.approx(20.0)
        assert calculate_drawdown(0.0, 100.0) == 0.0

    def test_equity_heat(self) -> None:
        assert calculate_equity_heat(250.0, 1000.0) == pytest.approx(25.0)
        assert calculate_equity_heat(250.0, 0.0) == 0.0

    def test_risk_reward(self) -> None:
        assert calculate_risk_reward_ratio(100.0, 120.0, 90.0) == "1:2.00"

    @pytest.mark.parametrize(
        "entry, tp, sl",
        [(100.0, None, 90.0), (100.0, 120.0, None), (0.0, 120.0, 90.0), (100.0, 120.0, 100.0)],
    )
    def test_risk_reward_not_available(self, entry, tp, sl) -> None:
        assert calculate_risk_reward_ratio(entry, tp, sl) == "N/A"

    def test_position_size(self) -> None:
        # risk 1% of 10k = 100 with a 2% stop -> 5000
        assert calculate_position_size(10000.0, 1.0, 2.0) == pytest.approx(5000.0)
        assert calculate_position_size(10000.0, 1.0, 0.0) == 0.0

    def test_value_at_risk(self) -> None:
        assert calculate_value_at_risk(1000.0, 0.1) == pytest.approx(165.0)
        assert calculate_value_at_risk(1000.0, 0.1, 0.99) == pytest.approx(233.0)


class TestMarginCallWarning:
    def test_safe(self) -> None:
        w = margin_call_warning(2.0)
        assert (w.is_warning, w.is_margin_call, w.severity) == (False, False, RiskLevel.SAFE)

    def test_warning_band(self) -> None:
        w = margin_call_warning(1.5)
        assert (w.is_warning, w.is_margin_call, w.severity) == (True, False, RiskLevel.WARNING)

    def test_margin_call(self) -> None:
        w = margin_call_warning(1.0)
        assert (w.is_warning, w.is_margin_call, w.severity) == (True, True, RiskLevel.DANGER)


class TestValidateRiskLimits:
    def test_valid(self) -> None:
        result = validate_risk_limits("crypto", 5000.0, 1000.0)
        assert result.is_valid is True
        assert result.message == ""

    def test_position_too_large(self) -> None:
        result = validate_risk_limits("crypto", 20000.0, 10000.0)
        assert result.is_valid is False
        assert "Position size" in result.message

    def test_leverage_too_high(self) -> None:
        result = validate_risk_limits("stocks", 1000.0, 1000.0, leverage=5)
        assert not result.is_valid
        assert "Leverage" in result.message

    def test_insufficient_margin(self) -> None:
        result = validate_risk_limits("stocks", 1000.0, 100.0)
        assert not result.is_valid
        assert "Insufficient margin" in result.message

    def test_daily_loss(self) -> None:
        result = validate_risk_limits("forex", 1000.0, 1000.0, current_daily_loss=-2500.0)
        assert not result.is_valid
        assert "Daily loss" in result.message

    def test_slippage(self) -> None:
        result = validate_risk_limits("commodities", 1000.0, 1000.0, estimated_slippage=0.01)
        assert not result.is_valid
        assert "slippage" in result.message

    def test_class_without_limits(self) -> None:
        assert not validate_risk_limits("indices", 1.0, 1.0).is_valid
        assert not validate_risk_limits("bonds", 1.0, 1.0).is_valid

    def test_custom_limits(self) -> None:
        limits = {AssetClass.INDICES: RiskLimits(100.0, 10, 0.1, 0.01, 50.0)}
        assert validate_risk_limits("index", 50.0, 10.0, limits=limits).is_valid
