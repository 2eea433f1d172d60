"""Realized profit calculation for journal entries."""

from typing import Optional


def calculate_profit(
    position: Optional[str],
    entry_price: Optional[float],
    exit_price: Optional[float],
) -> tuple[Optional[float], Optional[float]]:
    """Calculate per-unit profit and profit percentage.

    Args:
        position: "long" or "short".
        entry_price: Price the trade was entered at.
        exit_price: Price the trade was exited at.

    Returns:
        Tuple of (profit, profit_percentage), or (None, None) when the
        trade is incomplete.
    """
    if position not in ("long", "short") or entry_price is None or exit_price is None:
        return None, None
    if entry_price == 0:
        return None, None

    if position == "long":
        profit = exit_price - entry_price
    else:
        profit = entry_price - exit_price

    return profit, profit / entry_price * 100
