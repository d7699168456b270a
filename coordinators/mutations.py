"""
Mutation orchestration against the remote store.

Local state changes only after the server confirms an operation, and it takes
the server's copy of the record. Failures of any kind leave the working sets
as they were and come back as failed ApiResponse values. Bulk imports are
followed by a full resync rather than any per-row reconciliation.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from config.config import MutationConfig
from connectors.catalog_api import UPLOAD_CONTENT_TYPES, InventoryApi, ProductApi
from connectors.notifications import LoggingNotificationSink, NotificationSink
from models.api import ApiResponse, validation_message
from models.enums import ComponentType, InventoryEventType, StockOperation
from models.events import InventoryEvent
from models.product import ProductCreate, ProductUpdate
from utils.event_bus import EventBus

from .query import QueryCoordinator
from .state import InventoryLedger, ProductCatalog

logger = logging.getLogger(__name__)


class MutationOrchestrator:
    """
    Performs create/update/delete/stock/import/export operations and reconciles
    the local catalog and ledger with the server-confirmed results.

    There is no mutation lock: concurrent mutations of the same record resolve
    in response-arrival order.
    """

    def __init__(
        self,
        product_api: ProductApi,
        inventory_api: InventoryApi,
        catalog: ProductCatalog,
        ledger: InventoryLedger,
        product_query: QueryCoordinator,
        inventory_query: QueryCoordinator,
        sink: NotificationSink | None = None,
        config: MutationConfig | None = None,
        event_bus: EventBus | None = None,
    ):
        self.product_api = product_api
        self.inventory_api = inventory_api
        self.catalog = catalog
        self.ledger = ledger
        self.product_query = product_query
        self.inventory_query = inventory_query
        self.sink = sink or LoggingNotificationSink()
        self.config = config or MutationConfig()
        self.event_bus = event_bus

    async def publish_event(self, event_type: InventoryEventType, payload: dict[str, Any]) -> None:
        if self.event_bus is None:
            return
        await self.event_bus.publish(
            InventoryEvent(event_type=event_type, payload=payload, source=ComponentType.MUTATION_ORCHESTRATOR)
        )

    def _reject(self, title: str, error: str) -> ApiResponse:
        logger.info(f"{title}: {error}")
        self.sink.error(title, error)
        return ApiResponse.fail(error)

    def _report_failure(self, title: str, response: ApiResponse, fallback: str) -> ApiResponse:
        error = response.error or fallback
        logger.warning(f"{title}: {error}")
        self.sink.error(title, error)
        return ApiResponse.fail(error)

    # --- Products ---

    async def create_product(self, data: ProductCreate | dict[str, Any]) -> ApiResponse:
        """Create a product; the server record is prepended only once confirmed."""
        try:
            payload = (
                data
                if isinstance(data, ProductCreate)
                else ProductCreate.model_validate({"threshold": self.config.default_threshold, **data})
            )
        except ValidationError as e:
            return self._reject("Invalid Product", validation_message(e))

        response = await self.product_api.create(payload)
        if not response.success:
            return self._report_failure("Error", response, "Failed to add product")

        product = response.data
        self.catalog.prepend(product)
        logger.info(f"Created product {product.id} ({product.sku})")
        self.sink.success("Product Added", f"{product.name} has been added to inventory.")
        await self.publish_event(InventoryEventType.PRODUCT_CREATED, {"product_id": product.id})

        if not self.catalog.has_category(product.category):
            await self.refresh_categories()
        return response

    async def update_product(self, product_id: str, changes: ProductUpdate | dict[str, Any]) -> ApiResponse:
        try:
            payload = changes if isinstance(changes, ProductUpdate) else ProductUpdate.model_validate(changes)
        except ValidationError as e:
            return self._reject("Invalid Product", validation_message(e))
        if not payload.model_fields_set:
            return self._reject("Invalid Product", "No changes to apply")

        response = await self.product_api.update(product_id, payload)
        if not response.success:
            return self._report_failure("Error", response, "Failed to update product")

        product = response.data
        self.catalog.replace(product)
        item = self.ledger.find(product.id)
        if item is not None:
            self.ledger.apply_item(
                item.model_copy(
                    update={
                        "name": product.name,
                        "sku": product.sku,
                        "category": product.category,
                        "price": product.price,
                        "current_stock": product.stock,
                    }
                )
            )
        self.sink.success("Product Updated", "Product has been updated successfully.")
        await self.publish_event(InventoryEventType.PRODUCT_UPDATED, {"product_id": product.id})
        return response

    async def delete_product(self, product_id: str) -> ApiResponse:
        response = await self.product_api.delete(product_id)
        if not response.success:
            return self._report_failure("Error", response, "Failed to delete product")

        self.catalog.remove(product_id)
        self.ledger.remove_item(product_id)
        logger.info(f"Deleted product {product_id}")
        self.sink.success("Product Deleted", "Product has been removed from inventory.")
        await self.publish_event(InventoryEventType.PRODUCT_DELETED, {"product_id": product_id})
        return response

    async def scan_barcode(self, barcode: str) -> ApiResponse:
        """Look up a product by barcode. Never touches local state."""
        if not barcode or not barcode.strip():
            return self._reject("Scan Error", "Barcode is required")
        response = await self.product_api.scan_barcode(barcode.strip())
        if response.success:
            product = response.data
            self.sink.success("Product Found", f"Found: {product.name} ({product.sku})")
        else:
            self.sink.error(
                "Product Not Found",
                "This barcode is not in the system. Consider adding it as a new product.",
            )
        return response

    async def refresh_categories(self) -> ApiResponse:
        response = await self.product_api.categories()
        if response.success:
            self.catalog.set_categories(response.data)
            await self.publish_event(InventoryEventType.CATEGORIES_LOADED, {"count": len(response.data)})
        else:
            logger.error(f"Failed to fetch categories: {response.error}")
        return response

    # --- Inventory ---

    async def update_stock(self, product_id: str, quantity: int, operation: StockOperation | str) -> ApiResponse:
        """
        Adjust stock on the server and swap in the returned item.

        Nothing is applied before the server answers; it owns the floor and
        ceiling policy, so a rejected subtract leaves the item and summary as-is.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            return self._reject("Invalid Quantity", f"Quantity must be a non-negative integer, got {quantity!r}")
        try:
            operation = StockOperation(operation)
        except ValueError:
            valid = ", ".join(op.value for op in StockOperation)
            return self._reject("Invalid Operation", f"Operation must be one of {valid}, got {operation!r}")

        response = await self.inventory_api.update_stock(product_id, quantity, operation)
        if not response.success:
            return self._report_failure("Error", response, "Failed to update stock")

        item = response.data
        previous = self.ledger.apply_item(item)
        product = self.catalog.find(item.id)
        if product is not None:
            self.catalog.replace(product.model_copy(update={"stock": item.current_stock}))
        logger.info(
            f"Stock {operation.value} {quantity} on {item.id}: "
            f"{previous.current_stock if previous else '?'} -> {item.current_stock}"
        )
        self.sink.success("Stock Updated", "Stock levels have been updated successfully.")
        await self.publish_event(
            InventoryEventType.STOCK_UPDATED,
            {"item_id": item.id, "current_stock": item.current_stock, "status": item.status.value},
        )
        # Stock changes can raise or clear alerts server-side
        await self.refresh_alerts()
        return response

    async def refresh_alerts(self) -> ApiResponse:
        response = await self.inventory_api.alerts()
        if response.success:
            self.ledger.replace_alerts(response.data)
            await self.publish_event(InventoryEventType.ALERTS_LOADED, {"count": len(response.data)})
        else:
            logger.error(f"Failed to fetch alerts: {response.error}")
        return response

    async def dismiss_alert(self, alert_id: str) -> ApiResponse:
        """Dismiss on the server; the alert leaves the local list only on confirmed success."""
        response = await self.inventory_api.dismiss_alert(alert_id)
        if not response.success:
            return self._report_failure("Error", response, "Failed to dismiss alert")

        self.ledger.remove_alert(alert_id)
        self.sink.success("Alert Dismissed", "The alert has been removed from your dashboard.")
        await self.publish_event(InventoryEventType.ALERT_DISMISSED, {"alert_id": alert_id})
        return response

    # --- Bulk import / export ---

    def _check_import_file(self, path: Path | str) -> str | None:
        path = Path(path)
        if not path.is_file():
            return f"File not found: {path}"
        if path.suffix.lower() not in UPLOAD_CONTENT_TYPES:
            allowed = ", ".join(sorted(UPLOAD_CONTENT_TYPES))
            return f"Unsupported file type '{path.suffix}'; expected one of {allowed}"
        if path.stat().st_size == 0:
            return f"File is empty: {path.name}"
        return None

    async def import_products(self, path: Path | str) -> ApiResponse:
        """Upload a product file; on success resync products and categories in full."""
        problem = self._check_import_file(path)
        if problem:
            return self._reject("Import Error", problem)

        response = await self.product_api.import_file(Path(path))
        if not response.success:
            return self._report_failure("Import Failed", response, "Failed to import data")

        await self.product_query.fetch()
        await self.refresh_categories()
        self.sink.success("Data Imported", "Product data has been imported successfully.")
        await self.publish_event(InventoryEventType.DATA_IMPORTED, {"kind": "products", "file": Path(path).name})
        return response

    async def import_inventory(self, path: Path | str) -> ApiResponse:
        """Upload an inventory file; on success resync the overview and alerts in full."""
        problem = self._check_import_file(path)
        if problem:
            return self._reject("Import Error", problem)

        response = await self.inventory_api.import_file(Path(path))
        if not response.success:
            return self._report_failure("Import Failed", response, "Failed to import data")

        await self.inventory_query.fetch()
        await self.refresh_alerts()
        self.sink.success("Data Imported", "Inventory data has been imported successfully.")
        await self.publish_event(InventoryEventType.DATA_IMPORTED, {"kind": "inventory", "file": Path(path).name})
        return response

    async def _export(self, response: ApiResponse, filename: str, label: str) -> ApiResponse:
        if not response.success:
            return self._report_failure("Export Failed", response, f"Failed to export {label}")
        target = self.config.export_dir / filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(response.data or b"")
        except OSError as e:
            logger.error(f"Could not write export to {target}: {e}")
            return self._reject("Export Error", f"Could not save {target.name}: {e.strerror or e}")
        logger.info(f"Exported {label} to {target}")
        self.sink.success("Data Exported", f"{label.capitalize()} has been exported to {target.name}.")
        await self.publish_event(InventoryEventType.DATA_EXPORTED, {"path": str(target)})
        return ApiResponse.ok(target)

    async def export_products(self) -> ApiResponse:
        filename = f"products-export-{date.today().isoformat()}.json"
        return await self._export(await self.product_api.export(), filename, "product data")

    async def export_inventory(self) -> ApiResponse:
        filename = f"inventory-report-{date.today().isoformat()}.json"
        return await self._export(await self.inventory_api.export(), filename, "inventory report")
