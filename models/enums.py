"""
Centralized Enum definitions for the project.
"""

from enum import Enum


class ComponentType(str, Enum):
    """Core components that publish state-change events"""

    QUERY_COORDINATOR = "query_coordinator"
    MUTATION_ORCHESTRATOR = "mutation_orchestrator"
    SYSTEM = "system"


class ProductStatus(str, Enum):
    """Stock status of a catalog product"""

    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"


class ItemStatus(str, Enum):
    """Stock status of an inventory dashboard item"""

    HEALTHY = "healthy"
    LOW = "low"
    CRITICAL = "critical"
    OVERSTOCK = "overstock"


class AlertType(str, Enum):
    """Kinds of server-issued inventory alerts"""

    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"
    OVERSTOCK = "overstock"


class AlertSeverity(str, Enum):
    """Alert severity levels"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StockOperation(str, Enum):
    """Stock adjustment operations accepted by PATCH /inventory/stock/{id}"""

    ADD = "add"  # Increase current stock by quantity
    SUBTRACT = "subtract"  # Decrease current stock by quantity (server enforces floor)
    SET = "set"  # Replace current stock with quantity


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class InventoryEventType(str, Enum):
    """Types of local state-change events"""

    PRODUCTS_LOADED = "products.loaded"
    PRODUCT_CREATED = "product.created"
    PRODUCT_UPDATED = "product.updated"
    PRODUCT_DELETED = "product.deleted"
    CATEGORIES_LOADED = "categories.loaded"
    INVENTORY_LOADED = "inventory.loaded"
    STOCK_UPDATED = "inventory.stock_updated"
    ALERTS_LOADED = "alerts.loaded"
    ALERT_DISMISSED = "alert.dismissed"
    DATA_IMPORTED = "data.imported"
    DATA_EXPORTED = "data.exported"
