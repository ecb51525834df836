"""Fixed leverage ratios per asset class."""
from __future__ import annotations

from dataclasses import dataclass, field

from .models import AssetClass, LeverageConfig, resolve_asset_class

# Crypto, indices and commodities 50:1 (2% margin), stocks 20:1 (5%),
# forex 100:1 (1%).
FIXED_LEVERAGE: dict[AssetClass, float] = {
    AssetClass.CRYPTO: 50.0,
    AssetClass.FOREX: 100.0,
    AssetClass.STOCKS: 20.0,
    AssetClass.INDICES: 50.0,
    AssetClass.COMMODITIES: 50.0,
}

DEFAULT_LEVERAGE = 10.0


@dataclass(frozen=True)
class LeverageTable:
    """Asset class -> maximum leverage, with one fallback for unknown classes.

    Leverages are expected to be at least 1 (1:1, full margin). The table
    does not check this itself.
    """

    leverages: dict[AssetClass, float] = field(
        default_factory=lambda: dict(FIXED_LEVERAGE)
    )
    default: float = DEFAULT_LEVERAGE

    def leverage_for(self, asset_class: str | AssetClass) -> float:
        """Look up leverage case-insensitively; unknown classes get the default."""
        resolved = resolve_asset_class(asset_class)
        if resolved is None:
            return self.default
        return self.leverages.get(resolved, self.default)

    def config_for(self, asset_class: str | AssetClass) -> LeverageConfig:
        """Limits for a known asset class.

        Unlike ``leverage_for`` this accessor is strict: an unknown class
        raises ``ValueError``. ``min_margin_fraction`` stays within (0, 1]
        only for leverages of at least 1, which ``load_config`` enforces.
        """
        resolved = AssetClass.parse(asset_class)
        leverage = self.leverage_for(resolved)
        return LeverageConfig(
            asset_class=resolved,
            max_leverage=leverage,
            min_margin_fraction=1.0 / leverage,
        )

    def with_overrides(self, overrides: dict[str, float]) -> LeverageTable:
        """Return a copy with some asset classes re-priced."""
        leverages = dict(self.leverages)
        for name, value in overrides.items():
            leverages[AssetClass.parse(name)] = float(value)
        return LeverageTable(leverages=leverages, default=self.default)


DEFAULT_LEVERAGE_TABLE = LeverageTable()


def get_leverage_for_asset_type(
    asset_class: str | AssetClass, table: LeverageTable = DEFAULT_LEVERAGE_TABLE
) -> float:
    """Get the leverage ratio for an asset class.

    Matching ignores case and surrounding whitespace and accepts singular
    forms ("stock", "index", "commodity") and "cryptocurrency". Anything
    else falls back to ``table.default`` without raising.
    """
    return table.leverage_for(asset_class)


def format_leverage_ratio(leverage: float) -> str:
    """Format a leverage value as a ratio, e.g. 100 -> "100:1"."""
    if float(leverage).is_integer():
        return f"{int(leverage)}:1"
    return f"{leverage:g}:1"
