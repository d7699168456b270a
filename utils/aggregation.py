"""
Summary aggregation over the inventory item set.

``summarize`` rebuilds from scratch; ``combine`` applies removals/additions to an
existing summary. Both are pure, and money is Decimal, so
``combine(summarize(A), removed=R, added=N) == summarize(A - R + N)`` exactly.
"""

from collections import Counter
from collections.abc import Iterable
from decimal import Decimal

from models.enums import ItemStatus
from models.inventory import InventoryItem, InventorySummary

LOW_STOCK_STATUSES = frozenset({ItemStatus.LOW, ItemStatus.CRITICAL})


def combine(
    summary: InventorySummary,
    removed: Iterable[InventoryItem] = (),
    added: Iterable[InventoryItem] = (),
) -> InventorySummary:
    """Return a new summary with ``removed`` items' contributions taken out and ``added`` put in."""
    total_value = summary.total_value
    total_items = summary.total_items
    low_stock = summary.low_stock_items
    categories = Counter(summary.category_counts)
    distribution = Counter({status: summary.status_distribution.get(status, 0) for status in ItemStatus})

    for sign, items in ((-1, removed), (1, added)):
        for item in items:
            status = item.status
            total_value += sign * item.value
            total_items += sign * item.current_stock
            if status in LOW_STOCK_STATUSES:
                low_stock += sign
            categories[item.category] += sign
            distribution[status] += sign

    category_counts = {name: count for name, count in sorted(categories.items()) if count > 0}
    return InventorySummary(
        total_value=total_value,
        total_items=total_items,
        low_stock_items=low_stock,
        categories=len(category_counts),
        category_counts=category_counts,
        status_distribution={status: distribution[status] for status in ItemStatus},
    )


def summarize(items: Iterable[InventoryItem]) -> InventorySummary:
    """Recompute the summary of an item set from scratch."""
    return combine(InventorySummary(total_value=Decimal("0")), added=items)
