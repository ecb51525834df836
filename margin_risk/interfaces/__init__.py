"""Protocol interfaces for the margin risk monitor."""
from .account_feed import AccountFeed
from .notifier import Notifier
from .price_oracle import PriceOracle

__all__ = ["AccountFeed", "Notifier", "PriceOracle"]
