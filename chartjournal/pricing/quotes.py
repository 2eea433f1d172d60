"""Live price lookup and fallback resolution."""

import logging
import math
from typing import Optional

import httpx

from chartjournal.config import DEFAULT_PRICE_API_URL
from chartjournal.models import PriceQuote
from chartjournal.pricing.symbols import (
    DEFAULT_FALLBACK_PRICE,
    base_asset,
    get_fallback_price,
    normalize_symbol,
)

logger = logging.getLogger(__name__)


def _positive(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        value = float(value)
    except OverflowError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def fetch_current_price(
    symbol: str,
    client: Optional[httpx.Client] = None,
    api_url: str = DEFAULT_PRICE_API_URL,
    timeout: float = 10.0,
) -> Optional[float]:
    """Fetch the current USD price for a symbol.

    Args:
        symbol: Free-form ticker (e.g., "BTC/USD", "BINANCE:SOLUSDT").
        client: Optional HTTP client to reuse.
        api_url: Simple-price endpoint URL.
        timeout: Request timeout in seconds.

    Returns:
        Price in USD, or None if the lookup failed for any reason.
    """
    coin_id = normalize_symbol(symbol)
    params = {"ids": coin_id, "vs_currencies": "usd"}

    try:
        if client is None:
            with httpx.Client(timeout=timeout) as owned:
                response = owned.get(api_url, params=params)
        else:
            response = client.get(api_url, params=params)
    except httpx.HTTPError as e:
        logger.warning("Price lookup for %s failed: %s", coin_id, e)
        return None

    if response.status_code != 200:
        logger.warning("Price lookup for %s returned HTTP %s", coin_id, response.status_code)
        return None

    try:
        data = response.json()
    except (ValueError, RecursionError):
        logger.warning("Price lookup for %s returned a non-JSON body", coin_id)
        return None

    if not isinstance(data, dict):
        return None

    entry = data.get(coin_id)
    price = _positive(entry.get("usd")) if isinstance(entry, dict) else None
    if price is None:
        logger.warning("Price lookup for %s returned no usd price", coin_id)
    return price


class PriceResolver:
    """Resolves a best-effort price for a symbol.

    Sources are tried in order: the live price API, a price observed on a
    rendered chart, the static table, then the constant default.
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        api_url: str = DEFAULT_PRICE_API_URL,
        timeout: float = 10.0,
        use_live: bool = True,
    ):
        """Initialize the resolver.

        Args:
            client: Optional HTTP client for live lookups.
            api_url: Simple-price endpoint URL.
            timeout: Request timeout in seconds.
            use_live: Set False to skip the live API.
        """
        self.client = client
        self.api_url = api_url
        self.timeout = timeout
        self.use_live = use_live
        self._chart_prices: dict[str, float] = {}

    def observe_chart_price(self, symbol: str, price: float) -> None:
        """Record a price read off a rendered chart.

        Non-positive or non-numeric prices are ignored.
        """
        value = _positive(price)
        if value is not None:
            self._chart_prices[base_asset(symbol)] = value

    def get_chart_price(self, symbol: str) -> Optional[float]:
        return self._chart_prices.get(base_asset(symbol))

    def resolve(self, symbol: str) -> PriceQuote:
        """Resolve a price for ``symbol``.

        Never raises for network problems; always returns a quote.
        """
        coin_id = normalize_symbol(symbol)

        if self.use_live:
            live = fetch_current_price(
                symbol, client=self.client, api_url=self.api_url, timeout=self.timeout
            )
            if live is not None:
                return PriceQuote(symbol=symbol, coin_id=coin_id, price=live, source="live")

        chart_price = self.get_chart_price(symbol)
        if chart_price is not None:
            logger.info("Using chart price for %s: %s", symbol, chart_price)
            return PriceQuote(symbol=symbol, coin_id=coin_id, price=chart_price, source="chart")

        fallback = get_fallback_price(symbol)
        source = "default" if fallback == DEFAULT_FALLBACK_PRICE else "table"
        logger.info("Using %s fallback price for %s: %s", source, symbol, fallback)
        return PriceQuote(symbol=symbol, coin_id=coin_id, price=fallback, source=source)
