"""Price resolution for ChartJournal.

Maps free-form ticker symbols to canonical coin ids and resolves a
best-effort USD price from the live API, a chart-observed price, or a
static table.
"""

from chartjournal.pricing.symbols import (
    DEFAULT_FALLBACK_PRICE,
    FALLBACK_PRICES,
    SYMBOL_MAPPINGS,
    get_fallback_price,
    normalize_symbol,
)
from chartjournal.pricing.quotes import PriceResolver, fetch_current_price

__all__ = [
    "DEFAULT_FALLBACK_PRICE",
    "FALLBACK_PRICES",
    "SYMBOL_MAPPINGS",
    "get_fallback_price",
    "normalize_symbol",
    "PriceResolver",
    "fetch_current_price",
]
