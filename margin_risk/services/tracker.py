"""Level-change tracking — turns a stream of levels into one-shot notices."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..models import PositionStatus, RiskLevel, RiskTransition

logger = logging.getLogger(__name__)

L = TypeVar("L", RiskLevel, PositionStatus)


@dataclass(frozen=True)
class Notice:
    """What to send when a level is entered."""

    subject: str
    message: str
    is_alert: bool


# Keyed by the level being entered, whatever the previous level was.
TRANSITION_NOTICES: dict[RiskLevel | PositionStatus, Notice] = {
    RiskLevel.SAFE: Notice(
        subject="✅ Margin level restored",
        message="Margin level is back above the safe threshold.",
        is_alert=False,
    ),
    RiskLevel.WARNING: Notice(
        subject="⚠️ WARNING: Low margin level",
        message="Margin level warning: approaching margin call threshold.",
        is_alert=True,
    ),
    RiskLevel.DANGER: Notice(
        subject="🔶 MARGIN CALL",
        message="Margin call alert: add funds to avoid liquidation.",
        is_alert=True,
    ),
    RiskLevel.CRITICAL: Notice(
        subject="🚨 CRITICAL: Liquidation risk!",
        message="Critical alert: positions at risk of immediate liquidation.",
        is_alert=True,
    ),
    PositionStatus.OPEN: Notice(
        subject="✅ Position recovered",
        message="Price moved back away from the margin-call level.",
        is_alert=False,
    ),
    PositionStatus.MARGIN_CALL: Notice(
        subject="🔶 MARGIN CALL: Position",
        message="Price reached the margin-call level. Add funds or reduce the position.",
        is_alert=True,
    ),
    PositionStatus.LIQUIDATION: Notice(
        subject="🚨 LIQUIDATION: Position",
        message="Price reached the liquidation level. The position will be force-closed.",
        is_alert=True,
    ),
}


def notice_for(transition: RiskTransition) -> Notice:
    return TRANSITION_NOTICES[transition.current]


class LevelTracker(Generic[L]):
    """Remember the last level and report only changes."""

    def __init__(self, initial: L) -> None:
        self._level: L = initial

    @property
    def level(self) -> L:
        return self._level

    def update(self, new_level: L) -> RiskTransition | None:
        """Record ``new_level``; return the transition if it differs from the last one."""
        if new_level == self._level:
            return None
        transition = RiskTransition(previous=self._level, current=new_level)
        logger.debug("Level change %s -> %s", self._level.value, new_level.value)
        self._level = new_level
        return transition


class PositionTrackers:
    """One ``LevelTracker`` per position label, created on first sight."""

    def __init__(self) -> None:
        self._trackers: dict[str, LevelTracker[PositionStatus]] = {}

    def update(self, label: str, status: PositionStatus) -> RiskTransition | None:
        tracker = self._trackers.get(label)
        if tracker is None:
            tracker = LevelTracker(PositionStatus.OPEN)
            self._trackers[label] = tracker
        return tracker.update(status)

    def status(self, label: str) -> PositionStatus:
        tracker = self._trackers.get(label)
        return tracker.level if tracker else PositionStatus.OPEN
