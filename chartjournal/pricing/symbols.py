"""Symbol normalization and static fallback prices."""

import re


# Ticker -> price-API coin id
SYMBOL_MAPPINGS = {
    "btc": "bitcoin",
    "eth": "ethereum",
    "sol": "solana",
    "ada": "cardano",
    "xrp": "ripple",
    "doge": "dogecoin",
    "shib": "shiba-inu",
    "ltc": "litecoin",
    "dot": "polkadot",
    "bnb": "binancecoin",
    "link": "chainlink",
    "matic": "polygon",
    "avax": "avalanche-2",
}

# Quote currencies stripped from concatenated pairs like SOLUSDT
QUOTE_SUFFIXES = ("usdt", "usdc", "busd", "perp", "usd")

# Approximate USD prices, matched by substring in order
FALLBACK_PRICES = [
    (("btc", "bitcoin"), 82500.0),
    (("eth", "ethereum"), 3500.0),
    (("sol", "solana"), 140.0),
    (("ada", "cardano"), 0.55),
    (("xrp", "ripple"), 0.65),
    (("doge", "dogecoin"), 0.18),
    (("shib", "shiba"), 0.00002),
    (("ltc", "litecoin"), 95.0),
    (("dot", "polkadot"), 8.0),
    (("bnb", "binance"), 650.0),
    (("link", "chainlink"), 15.0),
    (("matic", "polygon"), 0.60),
    (("avax", "avalanche"), 35.0),
]

DEFAULT_FALLBACK_PRICE = 100.0


def base_asset(symbol: str) -> str:
    """Extract the lower-cased base asset from a ticker.

    Examples:
        "BTC/USD" -> "btc", "BINANCE:SOLUSDT" -> "sol", "eth-perp" -> "eth"
    """
    clean = symbol.strip().lower()

    # Exchange prefix
    if ":" in clean:
        clean = clean.split(":", 1)[1]

    clean = re.split(r"[/\-_ ]", clean, maxsplit=1)[0]

    for suffix in QUOTE_SUFFIXES:
        if clean.endswith(suffix) and len(clean) > len(suffix):
            clean = clean[: -len(suffix)]
            break

    return clean


def normalize_symbol(symbol: str) -> str:
    """Normalize a symbol to a price-API coin id.

    Unknown tickers pass through lower-cased.
    """
    clean = base_asset(symbol)
    return SYMBOL_MAPPINGS.get(clean, clean)


def get_fallback_price(symbol: str) -> float:
    """Get an approximate price when no live price is available."""
    symbol_lower = symbol.lower()

    for needles, price in FALLBACK_PRICES:
        if any(needle in symbol_lower for needle in needles):
            return price

    return DEFAULT_FALLBACK_PRICE
