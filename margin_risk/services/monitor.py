"""Risk monitoring orchestration — account margin level and open positions."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ..calculations.liquidation import evaluate_position
from ..config import AppConfig
from ..interfaces.account_feed import AccountFeed
from ..interfaces.notifier import Notifier
from ..interfaces.price_oracle import PriceOracle
from ..leverage import format_leverage_ratio
from ..models import (
    AccountUpdate,
    PositionSnapshot,
    PositionStatus,
    RiskLevel,
    RiskTransition,
)
from ..notifications import EmailNotifier, TelegramNotifier
from ..oracles import PythOracle
from ..risk import calculate_margin_level, get_risk_level
from .tracker import LevelTracker, PositionTrackers, notice_for

logger = logging.getLogger(__name__)

_LEVEL_LABELS = {
    RiskLevel.SAFE: "✅ Safe",
    RiskLevel.WARNING: "⚠️ Warning",
    RiskLevel.DANGER: "🔶 Margin call",
    RiskLevel.CRITICAL: "🚨 Critical",
    PositionStatus.OPEN: "✅ Open",
    PositionStatus.MARGIN_CALL: "🔶 Margin call",
    PositionStatus.LIQUIDATION: "🚨 Liquidation",
}


class RiskMonitor:
    """Classifies account and position risk and notifies on level changes.

    Account updates are taken from an ``AccountFeed`` in delivery order.
    Open positions come from config and are priced through the oracle.
    Each stream keeps its own ``LevelTracker`` state, so a notice goes out
    once per change and repeated identical levels stay quiet.
    """

    def __init__(self, config: AppConfig, feed: AccountFeed | None = None) -> None:
        self._config = config
        self._table = config.leverage.table()
        self._risk = config.risk
        self._feed = feed

        self._oracle: PriceOracle = PythOracle(config.price_oracle.pyth)

        self._notifiers: list[Notifier] = []
        if config.notifications.telegram.enabled:
            self._notifiers.append(TelegramNotifier(config.notifications.telegram))
        if config.notifications.email.enabled:
            self._notifiers.append(EmailNotifier(config.notifications.email))

        self._account_tracker: LevelTracker[RiskLevel] = LevelTracker(RiskLevel.SAFE)
        self._position_trackers = PositionTrackers()

    @property
    def account_level(self) -> RiskLevel:
        return self._account_tracker.level

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    @staticmethod
    def _status_label(level: RiskLevel | PositionStatus) -> str:
        return _LEVEL_LABELS[level]

    def _build_account_message(
        self, update: AccountUpdate, margin_level: float, transition: RiskTransition
    ) -> str:
        notice = notice_for(transition)
        return (
            f"{notice.message}\n"
            f"\n"
            f"Risk: {self._status_label(transition.previous)} → "
            f"{self._status_label(transition.current)}\n"
            f"Margin level: {margin_level:,.2f}%\n"
            f"Equity: ${update.equity:,.2f}\n"
            f"Used margin: ${update.used_margin:,.2f}\n"
            f"Available: ${update.available_funds:,.2f}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    def _build_position_summary(self, snapshot: PositionSnapshot) -> str:
        position = snapshot.position
        return (
            f"{position.label} · {position.symbol} · "
            f"{position.direction.value.upper()} {position.units:,.4f} @ "
            f"{position.entry_price:,.5f}\n"
            f"  {self._status_label(snapshot.status)}\n"
            f"  Price: {snapshot.current_price:,.5f} · "
            f"Leverage {format_leverage_ratio(snapshot.leverage)}\n"
            f"  P&L: ${snapshot.pnl.pnl:,.2f} ({snapshot.pnl.pnl_percentage:+.2f}%)\n"
            f"  Margin call: {snapshot.margin_call_price:,.5f} · "
            f"Liquidation: {snapshot.liquidation_price:,.5f}"
        )

    def _build_position_message(
        self, snapshot: PositionSnapshot, transition: RiskTransition
    ) -> str:
        notice = notice_for(transition)
        return (
            f"{notice.message}\n"
            f"\n"
            f"{self._build_position_summary(snapshot)}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = False) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    async def _notify(self, transition: RiskTransition, message: str, suffix: str = "") -> None:
        notice = notice_for(transition)
        subject = f"{notice.subject} {suffix}".strip()
        if notice.is_alert:
            await self._send_alert(message, subject=subject)
        else:
            await self._send_log(f"{subject}\n\n{message}", silent=True)

    # ------------------------------------------------------------------
    # Account margin level
    # ------------------------------------------------------------------

    async def process_update(self, update: AccountUpdate) -> RiskTransition | None:
        """Classify one account update and notify if the risk level changed."""
        margin_level = calculate_margin_level(update.equity, update.used_margin)
        level = get_risk_level(margin_level)
        logger.info(
            "Account — equity $%.2f  used margin $%.2f  margin level %.2f%%  risk %s",
            update.equity,
            update.used_margin,
            margin_level,
            level.value,
        )

        transition = self._account_tracker.update(level)
        if transition is None:
            return None

        logger.warning(
            "Account risk level changed: %s -> %s",
            transition.previous.value,
            transition.current.value,
        )
        await self._notify(
            transition, self._build_account_message(update, margin_level, transition)
        )
        return transition

    async def watch_account(self) -> int:
        """Consume the account feed until it ends. Returns the update count."""
        if self._feed is None:
            raise RuntimeError("No account feed configured")

        count = 0
        async for update in self._feed.updates():
            count += 1
            await self.process_update(update)
        logger.info("Account feed ended after %d updates", count)
        return count

    # ------------------------------------------------------------------
    # Open positions
    # ------------------------------------------------------------------

    async def evaluate_positions(self) -> list[PositionSnapshot]:
        """Price every configured position; positions without a price are skipped."""
        positions = self._config.positions
        if not positions:
            return []

        prices = await self._oracle.fetch_prices(sorted({p.symbol for p in positions}))

        snapshots: list[PositionSnapshot] = []
        for position in positions:
            price = prices.get(position.symbol)
            if price is None:
                logger.warning(
                    "No price for %s (%s); skipping", position.symbol, position.label
                )
                continue
            snapshots.append(
                evaluate_position(
                    position,
                    price,
                    table=self._table,
                    margin_call_threshold=self._risk.margin_call_threshold,
                    liquidation_threshold=self._risk.liquidation_threshold,
                )
            )
        return snapshots

    async def check_and_alert(self) -> list[PositionSnapshot]:
        """Check all positions once and notify on status changes."""
        snapshots = await self.evaluate_positions()
        if not self._config.positions:
            logger.info("No positions configured")
            return snapshots

        for snapshot in snapshots:
            position = snapshot.position
            logger.info(
                "Position — %s · %s  price %.5f  P&L $%.2f (%.2f%%)  status %s",
                position.label,
                position.symbol,
                snapshot.current_price,
                snapshot.pnl.pnl,
                snapshot.pnl.pnl_percentage,
                snapshot.status.value,
            )

            transition = self._position_trackers.update(position.label, snapshot.status)
            if transition is not None:
                await self._notify(
                    transition,
                    self._build_position_message(snapshot, transition),
                    suffix=f"— {position.label}",
                )
        return snapshots

    async def generate_daily_report(self) -> None:
        """Send a summary of every position that could be priced."""
        snapshots = await self.evaluate_positions()

        if snapshots:
            body = "\n\n".join(self._build_position_summary(s) for s in snapshots)
            total_pnl = sum(s.pnl.pnl for s in snapshots)
            total_margin = sum(s.margin_used for s in snapshots)
            body += (
                f"\n\nTotal P&L: ${total_pnl:,.2f}\n"
                f"Total margin used: ${total_margin:,.2f}"
            )
        else:
            body = "No open positions found."

        report = (
            f"📋 Daily Margin Risk Report\n"
            f"\n"
            f"Account risk: {self._status_label(self.account_level)}\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )

        await self._send_alert(report, subject="📋 Daily Margin Risk Report")
        logger.info("Daily report sent")

    async def run_continuous(self, check_interval_minutes: int | None = None) -> None:
        """Run the position check loop forever."""
        interval = check_interval_minutes or self._config.monitor.check_interval_minutes
        logger.info(
            "Starting continuous monitoring (checking every %d minutes)", interval
        )

        while True:
            try:
                await self.check_and_alert()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in monitoring loop: %s", e)
                await asyncio.sleep(60)
