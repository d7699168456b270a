"""
Module: connectors.catalog_api

Typed wrappers over ApiGateway for the /products, /inventory and /health
endpoints. Response bodies are validated into models; a body that does not
match its model is reported as a failed ApiResponse, not raised.
"""

import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

from pydantic import TypeAdapter, ValidationError

from models.api import ApiResponse, HealthStatus, QuerySpec
from models.enums import StockOperation
from models.inventory import InventoryAlert, InventoryItem, InventoryOverview
from models.product import Product, ProductCreate, ProductUpdate

from .api_gateway import ApiGateway

logger = logging.getLogger(__name__)

_PRODUCT = TypeAdapter(Product)
_PRODUCTS = TypeAdapter(list[Product])
_CATEGORIES = TypeAdapter(list[str])
_ITEM = TypeAdapter(InventoryItem)
_OVERVIEW = TypeAdapter(InventoryOverview)
_ALERTS = TypeAdapter(list[InventoryAlert])
_HEALTH = TypeAdapter(HealthStatus)

UPLOAD_CONTENT_TYPES = {".csv": "text/csv", ".json": "application/json"}


def parse_response(response: ApiResponse, adapter: TypeAdapter) -> ApiResponse:
    """Validate ``response.data`` with ``adapter``; failures stay failures."""
    if not response.success:
        return response
    try:
        parsed = adapter.validate_python(response.data)
    except ValidationError as e:
        logger.warning(f"Malformed {e.title} response: {e.error_count()} validation error(s)")
        return ApiResponse.fail(f"Malformed response: {_first_error(e)}")
    return ApiResponse.ok(parsed, message=response.message)


def _first_error(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"{location}: {first.get('msg', 'invalid value')}"


def _path_segment(value: str) -> str:
    return quote(str(value), safe="")


async def _upload(gateway: ApiGateway, endpoint: str, path: Path) -> ApiResponse:
    content_type = UPLOAD_CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")
    try:
        with path.open("rb") as fh:
            return await gateway.request(endpoint, method="POST", files={"file": (path.name, fh, content_type)})
    except OSError as e:
        logger.warning(f"Could not read upload {path}: {e}")
        return ApiResponse.fail(f"Could not read {path.name}: {e.strerror or e}")


class ProductApi:
    """Catalog endpoints under /products."""

    def __init__(self, gateway: ApiGateway):
        self.gateway = gateway

    async def get_all(self, spec: QuerySpec | None = None) -> ApiResponse:
        params = (spec or QuerySpec()).to_params()
        return parse_response(await self.gateway.request("/products", params=params or None), _PRODUCTS)

    async def get(self, product_id: str) -> ApiResponse:
        return parse_response(await self.gateway.request(f"/products/{_path_segment(product_id)}"), _PRODUCT)

    async def search(self, query: str) -> ApiResponse:
        return parse_response(await self.gateway.request("/products/search", params={"q": query}), _PRODUCTS)

    async def create(self, product: ProductCreate) -> ApiResponse:
        body = product.model_dump(mode="json", exclude_none=True)
        return parse_response(await self.gateway.request("/products", method="POST", json_body=body), _PRODUCT)

    async def update(self, product_id: str, changes: ProductUpdate) -> ApiResponse:
        body = changes.model_dump(mode="json", exclude_unset=True)
        response = await self.gateway.request(f"/products/{_path_segment(product_id)}", method="PUT", json_body=body)
        return parse_response(response, _PRODUCT)

    async def delete(self, product_id: str) -> ApiResponse:
        return await self.gateway.request(f"/products/{_path_segment(product_id)}", method="DELETE")

    async def scan_barcode(self, barcode: str) -> ApiResponse:
        return parse_response(await self.gateway.request(f"/products/scan/{_path_segment(barcode)}"), _PRODUCT)

    async def categories(self) -> ApiResponse:
        return parse_response(await self.gateway.request("/products/categories"), _CATEGORIES)

    async def import_file(self, path: Path) -> ApiResponse:
        return await _upload(self.gateway, "/products/import", path)

    async def export(self) -> ApiResponse:
        return await self.gateway.request("/products/export", expect_blob=True)


class InventoryApi:
    """Stock endpoints under /inventory."""

    def __init__(self, gateway: ApiGateway):
        self.gateway = gateway

    async def overview(self) -> ApiResponse:
        return parse_response(await self.gateway.request("/inventory"), _OVERVIEW)

    async def alerts(self) -> ApiResponse:
        return parse_response(await self.gateway.request("/inventory/alerts"), _ALERTS)

    async def dismiss_alert(self, alert_id: str) -> ApiResponse:
        return await self.gateway.request(f"/inventory/alerts/{_path_segment(alert_id)}", method="DELETE")

    async def update_stock(self, product_id: str, quantity: int, operation: StockOperation) -> ApiResponse:
        body: dict[str, Any] = {"quantity": quantity, "operation": StockOperation(operation).value}
        response = await self.gateway.request(
            f"/inventory/stock/{_path_segment(product_id)}", method="PATCH", json_body=body
        )
        return parse_response(response, _ITEM)

    async def low_stock(self) -> ApiResponse:
        return parse_response(await self.gateway.request("/inventory/low-stock"), _PRODUCTS)

    async def out_of_stock(self) -> ApiResponse:
        return parse_response(await self.gateway.request("/inventory/out-of-stock"), _PRODUCTS)

    async def import_file(self, path: Path) -> ApiResponse:
        return await _upload(self.gateway, "/inventory/import", path)

    async def export(self) -> ApiResponse:
        return await self.gateway.request("/inventory/export", method="POST", expect_blob=True)


async def check_health(gateway: ApiGateway) -> ApiResponse:
    """GET /health, as polled by a connectivity indicator."""
    return parse_response(await gateway.request("/health"), _HEALTH)
