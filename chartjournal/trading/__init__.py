"""Trade planning helpers for ChartJournal."""

from chartjournal.trading.levels import (
    MAX_TARGET_PERCENT,
    MID_TARGET_PERCENT,
    MIN_TARGET_PERCENT,
    STOP_LOSS_PERCENT,
    calculate_leveraged_trade_parameters,
    trend_direction,
)
from chartjournal.trading.profit import calculate_profit
from chartjournal.trading.checklist import CHECKLIST_ITEMS, Checklist, ChecklistItem

__all__ = [
    "MAX_TARGET_PERCENT",
    "MID_TARGET_PERCENT",
    "MIN_TARGET_PERCENT",
    "STOP_LOSS_PERCENT",
    "calculate_leveraged_trade_parameters",
    "trend_direction",
    "calculate_profit",
    "CHECKLIST_ITEMS",
    "Checklist",
    "ChecklistItem",
]
