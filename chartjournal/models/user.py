"""User data model."""

from typing import Optional
from pydantic import BaseModel, Field


class User(BaseModel):
    """Represents the journal owner."""

    id: str = Field(..., description="User identifier")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Contact email")
    api_key: Optional[str] = Field(default=None, alias="apiKey", description="Service API key")
    gemini_api_key: Optional[str] = Field(
        default=None, alias="geminiApiKey", description="Gemini API key"
    )

    model_config = {"frozen": True, "populate_by_name": True}


DEFAULT_USER = User(id="1", name="Trader", email="trader@example.com")
