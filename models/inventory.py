"""
Inventory-related data models.
Includes InventoryItem, InventoryAlert, InventorySummary and InventoryOverview.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from models.enums import AlertSeverity, AlertType, ItemStatus
from utils.classification import classify_item


class InventoryItem(BaseModel):
    """
    Stock-accounting projection of a product for the dashboard.

    ``value`` and ``status`` are derived from the numeric fields on every read,
    so a server-sent value can never go stale in the client copy.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    sku: str
    category: str
    current_stock: int = Field(ge=0, alias="currentStock")
    min_stock: int = Field(default=0, ge=0, alias="minStock")
    max_stock: int = Field(default=0, ge=0, alias="maxStock")
    price: Decimal = Field(ge=0)
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        return str(value) if isinstance(value, int) else value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def value(self) -> Decimal:
        return self.price * self.current_stock

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> ItemStatus:
        return classify_item(self.current_stock, self.min_stock, self.max_stock)


class InventoryAlert(BaseModel):
    """Server-issued notification about an item's stock condition."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: AlertType
    message: str = ""
    product_id: str
    severity: AlertSeverity
    created_at: datetime | None = None

    @field_validator("id", "product_id", mode="before")
    @classmethod
    def coerce_ids(cls, value):
        return str(value) if isinstance(value, int) else value


def _empty_distribution() -> dict[ItemStatus, int]:
    return {status: 0 for status in ItemStatus}


class InventorySummary(BaseModel):
    """Aggregate of the current item set. Always derivable from the items."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    total_value: Decimal = Field(default=Decimal("0"), alias="totalValue")
    total_items: int = Field(default=0, alias="totalItems")
    low_stock_items: int = Field(default=0, alias="lowStockItems")
    categories: int = 0
    category_counts: dict[str, int] = Field(default_factory=dict, alias="categoryCounts")
    status_distribution: dict[ItemStatus, int] = Field(
        default_factory=_empty_distribution, alias="statusDistribution"
    )


class InventoryOverview(BaseModel):
    """Response body of GET /inventory."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    items: list[InventoryItem] = Field(default_factory=list)
    summary: InventorySummary | None = None
