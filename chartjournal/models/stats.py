"""JournalStats data model."""

from pydantic import BaseModel, Field


class JournalStats(BaseModel):
    """Aggregate statistics over completed journal trades."""

    total_trades: int = Field(..., ge=0, description="Number of completed trades")
    win_rate: float = Field(..., ge=0, le=100, description="Win rate percentage")
    average_profit: float = Field(..., description="Average profit per completed trade")
    profit_factor: float = Field(..., ge=0, description="Winning sum over losing sum")

    model_config = {"frozen": True}
