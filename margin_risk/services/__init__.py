"""Service modules"""
from .monitor import RiskMonitor
from .tracker import LevelTracker, PositionTrackers

__all__ = ["RiskMonitor", "LevelTracker", "PositionTrackers"]
