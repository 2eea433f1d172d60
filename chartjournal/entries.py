"""Journal entry construction and editing rules."""

import time
from typing import Any, Optional

from chartjournal.models import AIAnalysis, TradeEntry
from chartjournal.trading.profit import calculate_profit


class EntryValidationError(ValueError):
    """Raised when an entry is missing required fields."""


def now_ms() -> int:
    return int(time.time() * 1000)


def build_entry(
    symbol: Optional[str],
    chart_image_url: Optional[str],
    position: Optional[str] = None,
    sentiment: Optional[str] = None,
    entry_price: Optional[float] = None,
    exit_price: Optional[float] = None,
    notes: Optional[str] = None,
    ai_analysis: Optional[AIAnalysis] = None,
    timestamp: Optional[int] = None,
) -> TradeEntry:
    """Build a new, not yet stored, journal entry.

    Profit fields are derived from the side and prices.

    Raises:
        EntryValidationError: If the symbol or chart image is missing.
    """
    symbol = (symbol or "").strip()
    chart_image_url = (chart_image_url or "").strip()

    if not symbol or not chart_image_url:
        raise EntryValidationError("Please provide a symbol and upload a chart image")

    profit, profit_percentage = calculate_profit(position, entry_price, exit_price)

    return TradeEntry(
        timestamp=timestamp if timestamp is not None else now_ms(),
        symbol=symbol,
        chart_image_url=chart_image_url,
        entry_price=entry_price,
        exit_price=exit_price,
        position=position or None,
        sentiment=sentiment or None,
        ai_analysis=ai_analysis or AIAnalysis(),
        notes=notes or None,
        profit=profit,
        profit_percentage=profit_percentage,
    )


def prepare_updates(entry: TradeEntry, updates: dict[str, Any]) -> dict[str, Any]:
    """Complete an update dict with recomputed profit fields.

    Args:
        entry: Entry being edited.
        updates: Changed fields keyed by field name.

    Returns:
        A new dict including ``profit`` and ``profit_percentage`` when any
        price or the position changed.
    """
    prepared = dict(updates)

    if "symbol" in prepared and not (prepared["symbol"] or "").strip():
        raise EntryValidationError("Symbol cannot be empty")

    if {"position", "entry_price", "exit_price"} & prepared.keys():
        profit, profit_percentage = calculate_profit(
            prepared.get("position", entry.position),
            prepared.get("entry_price", entry.entry_price),
            prepared.get("exit_price", entry.exit_price),
        )
        prepared["profit"] = profit
        prepared["profit_percentage"] = profit_percentage

    return prepared
