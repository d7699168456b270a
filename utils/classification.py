"""
Stock status classification.

Pure functions mapping raw quantities to discrete statuses. They are cheap and
side-effect free, so callers recompute on every read instead of caching.
"""

from typing import Any

from models.enums import AlertSeverity, AlertType, ItemStatus, ProductStatus

_SEVERITY_BY_ALERT = {
    AlertType.OUT_OF_STOCK: AlertSeverity.HIGH,
    AlertType.LOW_STOCK: AlertSeverity.MEDIUM,
    AlertType.OVERSTOCK: AlertSeverity.LOW,
}

_ALERT_BY_ITEM_STATUS = {
    ItemStatus.CRITICAL: AlertType.OUT_OF_STOCK,
    ItemStatus.LOW: AlertType.LOW_STOCK,
    ItemStatus.OVERSTOCK: AlertType.OVERSTOCK,
}


def classify_product(stock: int, threshold: int) -> ProductStatus:
    """Classify a catalog product against its reorder threshold."""
    if stock == 0:
        return ProductStatus.OUT_OF_STOCK
    if stock <= threshold:
        return ProductStatus.LOW_STOCK
    return ProductStatus.IN_STOCK


def classify_item(current_stock: int, min_stock: int, max_stock: int) -> ItemStatus:
    """Classify an inventory item against its min/max stock bounds."""
    if current_stock == 0:
        return ItemStatus.CRITICAL
    if current_stock < min_stock:
        return ItemStatus.LOW
    if current_stock > max_stock:
        return ItemStatus.OVERSTOCK
    return ItemStatus.HEALTHY


def classify(record: Any) -> ProductStatus | ItemStatus:
    """
    Classify a product-like or item-like record.

    Records carrying ``threshold`` are treated as products; records carrying
    ``current_stock``/``min_stock``/``max_stock`` as inventory items.
    """
    if hasattr(record, "threshold"):
        return classify_product(record.stock, record.threshold)
    return classify_item(record.current_stock, record.min_stock, record.max_stock)


def severity_for(alert_type: AlertType) -> AlertSeverity:
    """Return the severity the server assigns to an alert type."""
    return _SEVERITY_BY_ALERT[AlertType(alert_type)]


def expected_alert(record: Any) -> tuple[AlertType, AlertSeverity] | None:
    """Return the alert the server should raise for an inventory item, if any."""
    alert_type = _ALERT_BY_ITEM_STATUS.get(
        classify_item(record.current_stock, record.min_stock, record.max_stock)
    )
    if alert_type is None:
        return None
    return alert_type, severity_for(alert_type)
