"""Prompt construction for chart analysis."""

from typing import Optional


ANALYSIS_SCHEMA = """{
  "pattern": "string - Technical pattern identified",
  "support": [array of numbers - Key support levels below the current price],
  "resistance": [array of numbers - Key resistance levels above the current price],
  "trend": "string - Current trend description, must include the word bullish or bearish",
  "riskRewardRatio": number - Estimated risk/reward ratio if entering now,
  "technicalIndicators": [
    {
      "name": "string - Indicator name (e.g., RSI, MACD)",
      "value": "string - Current value or state",
      "interpretation": "string - What this means"
    }
  ],
  "recommendation": "string - Trading recommendation"
}"""


def build_analysis_prompt(symbol: str, current_price: Optional[float] = None) -> str:
    """Build the analyst prompt sent alongside a chart image.

    Args:
        symbol: Symbol shown on the chart.
        current_price: Known current price used to anchor the levels.

    Returns:
        Prompt text.
    """
    lines = [
        f"You are a professional trading analyst. Analyze this {symbol} trading chart "
        "and provide a detailed analysis in JSON format with the following structure:",
        ANALYSIS_SCHEMA,
    ]

    if current_price is not None:
        lines.append(
            f"The current price of {symbol} is {current_price:g}. All support levels must be "
            "below this price and all resistance levels above it, within 30% of it."
        )

    lines.append("Just provide the JSON without any additional text.")
    return "\n\n".join(lines)
