"""Pre-trade confirmation checklist."""

from pydantic import BaseModel, Field


class ChecklistItem(BaseModel):
    """A single confirmation the trader ticks off before entering."""

    id: str = Field(..., description="Item identifier")
    label: str = Field(..., description="Short title")
    description: str = Field(..., description="What the trader must confirm")

    model_config = {"frozen": True}


CHECKLIST_ITEMS = (
    ChecklistItem(
        id="trend",
        label="Trend Alignment",
        description="Confirm the trade aligns with the overall market trend",
    ),
    ChecklistItem(
        id="timeframe",
        label="Timeframe Alignment",
        description="Verify the trade matches your target timeframe strategy",
    ),
    ChecklistItem(
        id="risk",
        label="Risk Management",
        description="Ensure position size follows your risk management rules",
    ),
    ChecklistItem(
        id="setup",
        label="Setup Validation",
        description="Confirm all trade entry criteria are met",
    ),
)


class Checklist(BaseModel):
    """Tracks which checklist items the trader has confirmed."""

    checked: dict[str, bool] = Field(
        default_factory=lambda: {item.id: False for item in CHECKLIST_ITEMS},
        description="Confirmation state keyed by item id",
    )

    def toggle(self, item_id: str) -> bool:
        """Flip an item and return its new state.

        Raises:
            KeyError: If the item id is unknown.
        """
        if item_id not in self.checked:
            raise KeyError(f"Unknown checklist item: {item_id}")
        self.checked[item_id] = not self.checked[item_id]
        return self.checked[item_id]

    def confirm(self, item_id: str) -> None:
        if not self.checked.get(item_id, False):
            self.toggle(item_id)

    @property
    def is_complete(self) -> bool:
        return all(self.checked.values())

    @property
    def status(self) -> str:
        return "All Confirmed" if self.is_complete else "Confirmation Required"
