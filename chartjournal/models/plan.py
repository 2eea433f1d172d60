"""TradeParameters data model."""

from typing import Literal, Optional
from pydantic import BaseModel, Field


class TradeParameters(BaseModel):
    """Represents a leveraged trade plan.

    All price fields are None when the inputs could not produce a plan.
    """

    direction: Optional[Literal["long", "short"]] = Field(default=None, description="Trade side")
    leverage: float = Field(..., gt=0, description="Leverage multiple")
    entry_price: Optional[float] = Field(default=None, description="Entry price")
    stop_loss: Optional[float] = Field(default=None, description="Stop-loss price")
    take_profit: Optional[float] = Field(default=None, description="Take-profit price")
    risk_reward_ratio: Optional[float] = Field(default=None, description="Reward over risk")
    risk_percent: Optional[float] = Field(
        default=None, description="Leveraged loss percent at stop-loss"
    )
    reward_percent: Optional[float] = Field(
        default=None, description="Leveraged gain percent at take-profit"
    )
    liquidation_price: Optional[float] = Field(
        default=None, description="Approximate liquidation price"
    )

    model_config = {"frozen": True}

    @property
    def is_valid(self) -> bool:
        return self.entry_price is not None
