"""Normalization of model-produced chart analyses.

Language-model output is loosely structured: numbers arrive as strings,
levels land on the wrong side of the price, and fields go missing. The
functions here turn any payload into a complete AIAnalysis and fall back
to a synthetic analysis when nothing usable came back.
"""

import json
import logging
import math
import random
import re
from typing import Any, Iterable, Optional

from chartjournal.models import AIAnalysis, TechnicalIndicator
from chartjournal.trading.levels import calculate_leveraged_trade_parameters

logger = logging.getLogger(__name__)


# Levels further than this fraction from the current price are dropped
PLAUSIBILITY_WINDOW = 0.30

# Offsets used to derive levels from a price
SUPPORT_OFFSETS = (0.95, 0.97)
RESISTANCE_OFFSETS = (1.05, 1.03)

DEFAULT_RISK_REWARD = 1.5
DEFAULT_PRICE = 100.0

RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0

BULLISH_KEYWORDS = [
    "bullish", "bull", "uptrend", "upward", "breakout", "buy", "long",
    "higher high", "higher low", "accumulation", "rally", "bounce", "reversal up",
]

BEARISH_KEYWORDS = [
    "bearish", "bear", "downtrend", "downward", "breakdown", "sell", "short",
    "lower high", "lower low", "distribution", "decline", "rejection", "reversal down",
]

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")
_FENCE_PATTERN = re.compile(r"```(.*?)(?:```|$)", re.DOTALL)
# Info string right after the opening fence, e.g. json, JSON, javascript
_LANGUAGE_TAG = re.compile(r"[A-Za-z][\w+.-]*(?:[ \t]*\n|\s+|$)")


# ==================== Text extraction ====================

def strip_code_fences(text: str) -> str:
    """Extract the body of the first Markdown code fence, if present.

    Any language tag after the opening fence is dropped.
    """
    match = _FENCE_PATTERN.search(text)
    if match:
        body = match.group(1)
        tag = _LANGUAGE_TAG.match(body)
        text = body[tag.end():] if tag else body
    return text.strip()


def extract_candidate_text(envelope: Any) -> Optional[str]:
    """Pull the generated text out of a generateContent response.

    Returns:
        Concatenated text of the first candidate, or None if absent.
    """
    if not isinstance(envelope, dict):
        return None

    candidates = envelope.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None

    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None

    texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
    text = "".join(texts).strip()
    return text or None


def decode_analysis_json(text: Optional[str]) -> Optional[dict]:
    """Decode fenced or bare JSON into a dict.

    Returns:
        The decoded object, or None if the text is not a JSON object.
    """
    if not text:
        return None
    try:
        decoded = json.loads(strip_code_fences(text))
    except (ValueError, RecursionError, TypeError):
        return None
    return decoded if isinstance(decoded, dict) else None


# ==================== Coercion ====================

def coerce_number(value: Any) -> Optional[float]:
    """Coerce a number or numeric string to a finite float.

    Currency symbols, thousands separators and whitespace are stripped
    from strings. Anything else yields None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = re.sub(r"[\s$,€£₹]", "", value)
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _round_price(value: float) -> float:
    return float(f"{value:.8g}")


def coerce_levels(values: Any) -> list[float]:
    """Coerce a list of levels to unique positive floats."""
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        values = [values]

    levels: list[float] = []
    for value in values:
        number = coerce_number(value)
        if number is None or number <= 0:
            continue
        number = _round_price(number)
        if number not in levels:
            levels.append(number)
    return levels


def _valid_price(value: Any) -> Optional[float]:
    number = coerce_number(value)
    return number if number is not None and number > 0 else None


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _pick(payload: dict, *keys: str) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


# ==================== Levels ====================

def derive_levels(price: float) -> tuple[list[float], list[float]]:
    """Derive (support, resistance) from a price via fixed offsets."""
    support = sorted(_round_price(price * ratio) for ratio in SUPPORT_OFFSETS)
    resistance = sorted((_round_price(price * ratio) for ratio in RESISTANCE_OFFSETS), reverse=True)
    return support, resistance


def sanitize_levels(
    support: Iterable[float],
    resistance: Iterable[float],
    current_price: Optional[float] = None,
) -> tuple[list[float], list[float]]:
    """Drop implausible levels, back-fill empty sides and sort.

    With a current price, support must sit below it and resistance above
    it, both within PLAUSIBILITY_WINDOW. Without one, support at or above
    the lowest resistance is dropped.

    Returns:
        (support ascending, resistance descending).
    """
    support = list(support)
    resistance = list(resistance)

    if current_price is not None:
        low = current_price * (1 - PLAUSIBILITY_WINDOW)
        high = current_price * (1 + PLAUSIBILITY_WINDOW)
        support = [level for level in support if low <= level < current_price]
        resistance = [level for level in resistance if current_price < level <= high]

        derived_support, derived_resistance = derive_levels(current_price)
        if not support:
            support = derived_support
        if not resistance:
            resistance = derived_resistance
    elif support and resistance:
        lowest_resistance = min(resistance)
        support = [level for level in support if level < lowest_resistance]

    return sorted(support), sorted(resistance, reverse=True)


# ==================== Trend ====================

def _keyword_score(text: str, keywords: list[str]) -> int:
    return sum(1 for keyword in keywords if keyword in text)


def infer_bias(
    texts: Iterable[Optional[str]],
    support: Optional[list[float]] = None,
    resistance: Optional[list[float]] = None,
    current_price: Optional[float] = None,
) -> str:
    """Infer "bullish" or "bearish" from free text and level proximity.

    Keyword counts decide first. On a tie, a price nearer support than
    resistance reads as bullish. Remaining ties are bullish.
    """
    combined = " ".join(t.lower() for t in texts if t)
    bullish = _keyword_score(combined, BULLISH_KEYWORDS)
    bearish = _keyword_score(combined, BEARISH_KEYWORDS)

    if bullish > bearish:
        return "bullish"
    if bearish > bullish:
        return "bearish"

    if current_price is not None and support and resistance:
        to_support = current_price - max(support)
        to_resistance = min(resistance) - current_price
        if to_resistance < to_support:
            return "bearish"

    return "bullish"


def ensure_trend(trend: Optional[str], bias: str) -> str:
    """Guarantee the trend mentions "bullish" or "bearish"."""
    if not trend:
        return bias.capitalize()
    lowered = trend.lower()
    if "bullish" in lowered or "bearish" in lowered:
        return trend
    return f"{trend} ({bias})"


# ==================== Indicators ====================

def interpret_rsi(value: str) -> Optional[str]:
    match = _NUMBER_PATTERN.search(value)
    if not match:
        return None
    rsi = float(match.group())
    if rsi > RSI_OVERBOUGHT:
        return "Overbought"
    if rsi < RSI_OVERSOLD:
        return "Oversold"
    if rsi >= 50:
        return "Neutral with bullish momentum"
    return "Neutral with bearish momentum"


def interpret_macd(value: str) -> str:
    lowered = value.lower()
    if any(word in lowered for word in ("bull", "above", "positive", "upward")):
        return "Bullish signal"
    if any(word in lowered for word in ("bear", "below", "negative", "downward")):
        return "Bearish signal"

    match = _NUMBER_PATTERN.search(lowered)
    if match:
        number = float(match.group())
        if number > 0:
            return "Bullish signal"
        if number < 0:
            return "Bearish signal"
    return "Neutral momentum"


def interpret_indicator(name: str, value: str) -> Optional[str]:
    """Re-derive the interpretation for recognized indicators.

    Returns:
        Interpretation text for RSI and MACD, None for anything else.
    """
    key = name.strip().upper()
    if key.startswith("RSI") or key.startswith("RELATIVE STRENGTH"):
        return interpret_rsi(value)
    if key.startswith("MACD"):
        return interpret_macd(value)
    return None


def _indicator_value(value: Any) -> str:
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def normalize_indicators(raw: Any) -> list[TechnicalIndicator]:
    """Coerce indicator entries and re-derive known interpretations."""
    if not isinstance(raw, list):
        return []

    indicators = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        name = _text(item.get("name"))
        if not name:
            continue
        value = _indicator_value(item.get("value"))
        interpretation = interpret_indicator(name, value) or _text(item.get("interpretation")) or ""
        indicators.append(TechnicalIndicator(name=name, value=value, interpretation=interpretation))
    return indicators


def default_indicators(bias: str) -> list[TechnicalIndicator]:
    """Canned indicator readings consistent with a bias."""
    bullish = bias == "bullish"
    rsi_value = "58" if bullish else "42"
    macd_value = "Bullish crossover" if bullish else "Bearish crossover"
    return [
        TechnicalIndicator(name="RSI", value=rsi_value, interpretation=interpret_rsi(rsi_value)),
        TechnicalIndicator(name="MACD", value=macd_value, interpretation=interpret_macd(macd_value)),
        TechnicalIndicator(
            name="Moving Averages",
            value="Above 50 EMA" if bullish else "Below 50 EMA",
            interpretation=(
                "Price above key moving averages" if bullish
                else "Price below key moving averages"
            ),
        ),
    ]


def default_recommendation(bias: str) -> str:
    if bias == "bullish":
        return (
            "Potential long opportunity. Wait for price to hold above the nearest "
            "support and place a stop loss below it."
        )
    return (
        "Potential short opportunity. Wait for rejection at the nearest "
        "resistance and place a stop loss above it."
    )


# ==================== Assembly ====================

def _risk_reward(
    raw: Any,
    trend: str,
    support: list[float],
    resistance: list[float],
    current_price: Optional[float],
) -> float:
    ratio = coerce_number(raw)
    if ratio is not None and ratio > 0:
        return round(ratio, 2)

    reference = current_price
    if reference is None and support and resistance:
        reference = (max(support) + min(resistance)) / 2

    if reference is not None:
        plan = calculate_leveraged_trade_parameters(trend, reference, support, resistance)
        if plan.risk_reward_ratio is not None:
            return plan.risk_reward_ratio

    return DEFAULT_RISK_REWARD


def _build_analysis(payload: dict, current_price: Optional[float]) -> AIAnalysis:
    support, resistance = sanitize_levels(
        coerce_levels(_pick(payload, "support", "supportLevels", "support_levels")),
        coerce_levels(_pick(payload, "resistance", "resistanceLevels", "resistance_levels")),
        current_price,
    )

    pattern = _text(payload.get("pattern"))
    recommendation = _text(payload.get("recommendation"))
    raw_trend = _text(payload.get("trend"))

    bias = infer_bias([raw_trend, pattern, recommendation], support, resistance, current_price)
    trend = ensure_trend(raw_trend, bias)

    indicators = normalize_indicators(
        _pick(payload, "technicalIndicators", "technical_indicators", "indicators")
    )
    if not indicators:
        indicators = default_indicators(bias)

    return AIAnalysis(
        pattern=pattern or "No clear pattern identified",
        support=support,
        resistance=resistance,
        trend=trend,
        risk_reward_ratio=_risk_reward(
            _pick(payload, "riskRewardRatio", "risk_reward_ratio"),
            trend, support, resistance, current_price,
        ),
        technical_indicators=indicators,
        recommendation=recommendation or default_recommendation(bias),
    )


def generate_fallback_analysis(
    current_price: Any = None,
    rng: Optional[random.Random] = None,
) -> AIAnalysis:
    """Generate a synthetic analysis around a price.

    Used when the model call fails or returns nothing usable.

    Args:
        current_price: Price to derive levels from (defaults to 100).
        rng: Random source for the bullish/bearish choice.
    """
    rng = rng or random.Random()
    price = _valid_price(current_price) or DEFAULT_PRICE
    bias = rng.choice(["bullish", "bearish"])
    support, resistance = derive_levels(price)
    trend = f"{bias.capitalize()} continuation pattern"
    plan = calculate_leveraged_trade_parameters(trend, price, support, resistance)

    return AIAnalysis(
        pattern="Bullish Flag" if bias == "bullish" else "Bearish Flag",
        support=support,
        resistance=resistance,
        trend=trend,
        risk_reward_ratio=plan.risk_reward_ratio or DEFAULT_RISK_REWARD,
        technical_indicators=default_indicators(bias),
        recommendation=default_recommendation(bias),
    )


def normalize_analysis(
    payload: Any,
    current_price: Any = None,
    rng: Optional[random.Random] = None,
) -> AIAnalysis:
    """Turn an arbitrary decoded payload into a complete AIAnalysis.

    Never raises. Payloads that are not JSON objects, or that cannot be
    normalized, produce the synthetic fallback analysis.

    Args:
        payload: Decoded model output.
        current_price: Known current price, if any.
        rng: Random source for the fallback analysis.
    """
    price = _valid_price(current_price)

    if not isinstance(payload, dict) or not payload:
        logger.info("Analysis payload unusable, generating fallback analysis")
        return generate_fallback_analysis(price, rng)

    try:
        return _build_analysis(payload, price)
    except Exception as e:
        logger.warning("Could not normalize analysis payload: %s", e, exc_info=True)
        return generate_fallback_analysis(price, rng)


def parse_analysis_text(
    text: Optional[str],
    current_price: Any = None,
    rng: Optional[random.Random] = None,
) -> tuple[AIAnalysis, bool]:
    """Parse raw model text into an analysis.

    Returns:
        Tuple of (analysis, used_fallback).
    """
    payload = decode_analysis_json(text)
    if not payload:
        logger.info("Model response was not a JSON object, generating fallback analysis")
        return generate_fallback_analysis(_valid_price(current_price), rng), True
    return normalize_analysis(payload, current_price, rng), False
