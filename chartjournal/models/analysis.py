"""AI chart analysis data models."""

from typing import Optional
from pydantic import BaseModel, Field


class TechnicalIndicator(BaseModel):
    """A single indicator reading reported by the analysis."""

    name: str = Field(..., min_length=1, description="Indicator name (e.g., RSI, MACD)")
    value: str = Field(default="", description="Current value or state")
    interpretation: str = Field(default="", description="What the reading means")

    model_config = {"frozen": True}


class AIAnalysis(BaseModel):
    """Represents the model's analysis of a chart screenshot.

    The structure is produced by an external language model, so every
    field is optional. Serialized keys use the camelCase names the
    journal has always stored.
    """

    pattern: Optional[str] = Field(default=None, description="Technical pattern identified")
    support: list[float] = Field(default_factory=list, description="Support levels")
    resistance: list[float] = Field(default_factory=list, description="Resistance levels")
    trend: Optional[str] = Field(default=None, description="Trend description")
    risk_reward_ratio: Optional[float] = Field(
        default=None, alias="riskRewardRatio", description="Estimated risk/reward ratio"
    )
    technical_indicators: list[TechnicalIndicator] = Field(
        default_factory=list, alias="technicalIndicators", description="Indicator readings"
    )
    recommendation: Optional[str] = Field(default=None, description="Trading recommendation")

    model_config = {"frozen": True, "populate_by_name": True}

    def is_empty(self) -> bool:
        """Check whether the analysis carries any content."""
        return not (
            self.pattern
            or self.trend
            or self.support
            or self.resistance
            or self.technical_indicators
            or self.recommendation
        )


class AnalysisOutcome(BaseModel):
    """Result of a chart analysis request."""

    analysis: AIAnalysis = Field(..., description="Normalized analysis")
    used_fallback: bool = Field(default=False, description="Whether synthetic data was used")
    error: Optional[str] = Field(default=None, description="User-facing error message")

    model_config = {"frozen": True}
