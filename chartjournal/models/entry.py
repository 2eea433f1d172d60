"""TradeEntry data model."""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from chartjournal.models.analysis import AIAnalysis


class TradeEntry(BaseModel):
    """Represents a journal entry for a single trade idea."""

    id: str = Field(default="", description="Entry identifier")
    timestamp: int = Field(..., ge=0, description="Creation time in epoch milliseconds")
    symbol: str = Field(..., min_length=1, description="Trading symbol")
    chart_image_url: str = Field(
        ..., min_length=1, alias="chartImageUrl", description="Chart data URI or remote URL"
    )
    entry_price: Optional[float] = Field(default=None, alias="entryPrice", description="Entry price")
    exit_price: Optional[float] = Field(default=None, alias="exitPrice", description="Exit price")
    position: Optional[Literal["long", "short"]] = Field(default=None, description="Position side")
    sentiment: Optional[Literal["bullish", "bearish"]] = Field(
        default=None, description="Trader sentiment"
    )
    ai_analysis: AIAnalysis = Field(
        default_factory=AIAnalysis, alias="aiAnalysis", description="Chart analysis"
    )
    notes: Optional[str] = Field(default=None, description="User notes")
    profit: Optional[float] = Field(default=None, description="Realized profit per unit")
    profit_percentage: Optional[float] = Field(
        default=None, alias="profitPercentage", description="Realized profit percentage"
    )

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def created_at(self) -> datetime:
        """Creation time as a local datetime."""
        return datetime.fromtimestamp(self.timestamp / 1000)

    @property
    def is_completed(self) -> bool:
        """Whether both entry and exit prices are recorded."""
        return bool(self.entry_price) and bool(self.exit_price)
