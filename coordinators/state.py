"""
In-memory working sets held by the client for the current session.

Only the query coordinators and the mutation orchestrator write here, and all of
them run on one event loop, so no locking is needed. Derived values (item value,
status, summary) are recomputed, never patched independently of the items.
"""

import logging

from models.inventory import InventoryAlert, InventoryItem, InventorySummary
from models.product import Product
from utils.aggregation import combine, summarize

logger = logging.getLogger(__name__)


class ProductCatalog:
    """Client copy of the product list and the category list."""

    def __init__(self):
        self.products: list[Product] = []
        self.categories: list[str] = []

    @property
    def total_count(self) -> int:
        return len(self.products)

    def find(self, product_id: str) -> Product | None:
        return next((p for p in self.products if p.id == product_id), None)

    def replace_all(self, products: list[Product]) -> None:
        self.products = list(products)

    def prepend(self, product: Product) -> None:
        # Drop any earlier copy so a replayed create never duplicates the row
        self.products = [product] + [p for p in self.products if p.id != product.id]

    def replace(self, product: Product) -> bool:
        """Swap in the server copy of a product; returns False if it is not held locally."""
        for index, existing in enumerate(self.products):
            if existing.id == product.id:
                self.products[index] = product
                return True
        return False

    def remove(self, product_id: str) -> bool:
        before = len(self.products)
        self.products = [p for p in self.products if p.id != product_id]
        return len(self.products) != before

    def set_categories(self, categories: list[str]) -> None:
        self.categories = list(categories)

    def has_category(self, category: str) -> bool:
        return category in self.categories


class InventoryLedger:
    """Client copy of the inventory items, their summary and the active alerts."""

    def __init__(self):
        self.items: list[InventoryItem] = []
        self.alerts: list[InventoryAlert] = []
        self.summary: InventorySummary = summarize([])

    def find(self, item_id: str) -> InventoryItem | None:
        return next((item for item in self.items if item.id == item_id), None)

    def replace_items(self, items: list[InventoryItem], server_summary: InventorySummary | None = None) -> None:
        self.items = list(items)
        self.summary = summarize(self.items)
        if server_summary is not None and (
            server_summary.total_items != self.summary.total_items
            or server_summary.total_value != self.summary.total_value
        ):
            logger.debug(
                f"Server summary differs from recomputed one "
                f"(server items={server_summary.total_items} value={server_summary.total_value}, "
                f"local items={self.summary.total_items} value={self.summary.total_value})"
            )

    def apply_item(self, item: InventoryItem) -> InventoryItem | None:
        """
        Replace (or add) an item with its server-confirmed copy.

        The summary is adjusted incrementally: the previous copy's contribution
        is removed and the new one's added. Returns the previous copy, if any.
        """
        previous = None
        for index, existing in enumerate(self.items):
            if existing.id == item.id:
                previous = existing
                self.items[index] = item
                break
        else:
            self.items.append(item)
        removed = [previous] if previous is not None else []
        self.summary = combine(self.summary, removed=removed, added=[item])
        return previous

    def remove_item(self, item_id: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.id != item_id]
        if len(self.items) == before:
            return False
        self.summary = summarize(self.items)
        return True

    def replace_alerts(self, alerts: list[InventoryAlert]) -> None:
        self.alerts = list(alerts)

    def remove_alert(self, alert_id: str) -> bool:
        before = len(self.alerts)
        self.alerts = [alert for alert in self.alerts if alert.id != alert_id]
        return len(self.alerts) != before
