"""PriceQuote data model."""

from typing import Literal
from pydantic import BaseModel, Field


class PriceQuote(BaseModel):
    """Represents a best-effort price for a symbol."""

    symbol: str = Field(..., description="Symbol as entered")
    coin_id: str = Field(..., description="Canonical price-API identifier")
    price: float = Field(..., gt=0, description="Price in USD")
    source: Literal["manual", "live", "chart", "table", "default"] = Field(
        ..., description="Where the price came from"
    )

    model_config = {"frozen": True}
