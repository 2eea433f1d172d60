"""Leveraged trade-parameter calculator.

Derives entry, stop-loss and take-profit prices from a trend label and
the support/resistance levels of a chart analysis.
"""

import math
from typing import Iterable, Optional

from chartjournal.models import TradeParameters


DEFAULT_LEVERAGE = 10.0
MIN_LEVERAGE = 1.0

# Percent moves from entry
STOP_LOSS_PERCENT = 0.7
MIN_TARGET_PERCENT = 0.5
MAX_TARGET_PERCENT = 2.0
MID_TARGET_PERCENT = (MIN_TARGET_PERCENT + MAX_TARGET_PERCENT) / 2


def trend_direction(trend: Optional[str]) -> Optional[str]:
    """Map a trend description to a trade side.

    Returns:
        "long" for bullish trends, "short" for bearish ones, None otherwise.
    """
    if not trend:
        return None
    text = trend.lower()
    if "bullish" in text:
        return "long"
    if "bearish" in text:
        return "short"
    return None


def _valid_price(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


def _clean_levels(levels: Optional[Iterable]) -> list[float]:
    if not levels:
        return []
    return [p for p in (_valid_price(level) for level in levels) if p is not None]


def _select_target(
    direction: str,
    entry: float,
    support: list[float],
    resistance: list[float],
) -> float:
    """Pick the take-profit price within the allowed target band."""
    sign = 1 if direction == "long" else -1
    min_target = entry * (1 + sign * MIN_TARGET_PERCENT / 100)
    max_target = entry * (1 + sign * MAX_TARGET_PERCENT / 100)

    if direction == "long":
        candidates = [level for level in resistance if level >= min_target]
        if not candidates:
            return entry * (1 + MID_TARGET_PERCENT / 100)
        return min(min(candidates), max_target)

    candidates = [level for level in support if level <= min_target]
    if not candidates:
        return entry * (1 - MID_TARGET_PERCENT / 100)
    return max(max(candidates), max_target)


def calculate_leveraged_trade_parameters(
    trend: Optional[str],
    current_price,
    support: Optional[Iterable] = None,
    resistance: Optional[Iterable] = None,
    leverage: float = DEFAULT_LEVERAGE,
) -> TradeParameters:
    """Calculate entry, stop-loss and take-profit for a leveraged trade.

    The entry is the current price. The stop-loss sits STOP_LOSS_PERCENT
    against the trade. The take-profit is the nearest level at least
    MIN_TARGET_PERCENT away in the trade's favour, capped at
    MAX_TARGET_PERCENT; with no such level it is MID_TARGET_PERCENT away.

    Args:
        trend: Trend description containing "bullish" or "bearish".
        current_price: Current market price.
        support: Support levels (below price).
        resistance: Resistance levels (above price).
        leverage: Leverage multiple applied to the percentage moves. Values
            below MIN_LEVERAGE fall back to DEFAULT_LEVERAGE.

    Returns:
        TradeParameters. Price fields are None when the trend has no
        direction or the price is not a positive number.
    """
    leverage = _valid_price(leverage)
    if leverage is None or leverage < MIN_LEVERAGE:
        leverage = DEFAULT_LEVERAGE
    direction = trend_direction(trend)
    entry = _valid_price(current_price)

    if direction is None or entry is None:
        return TradeParameters(leverage=leverage)

    sign = 1 if direction == "long" else -1
    stop_loss = entry * (1 - sign * STOP_LOSS_PERCENT / 100)
    take_profit = _select_target(
        direction, entry, _clean_levels(support), _clean_levels(resistance)
    )

    risk = abs(entry - stop_loss)
    reward = abs(take_profit - entry)
    if risk == 0:
        # Subnormal prices cannot express the stop offset
        return TradeParameters(leverage=leverage)

    return TradeParameters(
        direction=direction,
        leverage=leverage,
        entry_price=entry,
        stop_loss=stop_loss,
        take_profit=take_profit,
        risk_reward_ratio=round(reward / risk, 2),
        risk_percent=round(risk / entry * 100 * leverage, 2),
        reward_percent=round(reward / entry * 100 * leverage, 2),
        liquidation_price=entry * (1 - sign / leverage),
    )
