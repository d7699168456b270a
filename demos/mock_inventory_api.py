"""
In-memory FastAPI backend implementing the inventory wire contract.

Used by the dashboard demo and the end-to-end tests. State lives in the app
instance; nothing is persisted.
Run with: uvicorn demos.mock_inventory_api:app --port 8080
"""

import csv
import io
import json
import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from models.enums import AlertType
from utils.classification import classify_item, classify_product, severity_for

logger = logging.getLogger("mock-inventory-api")

DEFAULT_MAX_STOCK = 100

SEED_PRODUCTS = [
    {"name": "Wireless Headphones", "sku": "WH-001", "barcode": "1234567890123", "category": "Electronics",
     "price": 99.99, "stock": 25, "threshold": 5, "description": "Noise cancelling"},
    {"name": "Coffee Mug", "sku": "CM-002", "barcode": "2345678901234", "category": "Kitchen",
     "price": 12.99, "stock": 5, "threshold": 10, "description": "Ceramic mug"},
    {"name": "Notebook", "sku": "NB-003", "barcode": "3456789012345", "category": "Office",
     "price": 8.99, "stock": 0, "threshold": 5, "description": "A5 lined notebook"},
]

_ALERT_MESSAGES = {
    AlertType.OUT_OF_STOCK: "{name} is out of stock",
    AlertType.LOW_STOCK: "{name} is running low ({stock} left)",
    AlertType.OVERSTOCK: "{name} is overstocked ({stock} units)",
}


def _now() -> str:
    return datetime.now().isoformat()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


class InventoryStore:
    """Mutable backend state: products keyed by id plus dismissed alert ids."""

    def __init__(self, seed: bool = True):
        self.products: dict[str, dict] = {}
        self.dismissed: set[str] = set()
        self._next_id = 1
        if seed:
            for data in SEED_PRODUCTS:
                self.add(dict(data))

    def add(self, data: dict) -> dict:
        product_id = str(self._next_id)
        self._next_id += 1
        now = _now()
        record = {
            "id": product_id,
            "description": "",
            "threshold": 5,
            "max_stock": DEFAULT_MAX_STOCK,
            **data,
            "created_at": now,
            "updated_at": now,
        }
        self.products[product_id] = record
        return record

    def product_view(self, record: dict) -> dict:
        view = {k: v for k, v in record.items() if k != "max_stock"}
        view["status"] = classify_product(record["stock"], record["threshold"]).value
        return view

    def item_view(self, record: dict) -> dict:
        return {
            "id": record["id"],
            "name": record["name"],
            "sku": record["sku"],
            "category": record["category"],
            "currentStock": record["stock"],
            "minStock": record["threshold"],
            "maxStock": record["max_stock"],
            "price": record["price"],
            "value": round(record["price"] * record["stock"], 2),
            "lastUpdated": record["updated_at"],
            "status": classify_item(record["stock"], record["threshold"], record["max_stock"]).value,
        }

    def alerts(self) -> list[dict]:
        alerts = []
        for record in self.products.values():
            status = classify_item(record["stock"], record["threshold"], record["max_stock"]).value
            alert_type = {"critical": AlertType.OUT_OF_STOCK, "low": AlertType.LOW_STOCK,
                          "overstock": AlertType.OVERSTOCK}.get(status)
            if alert_type is None:
                continue
            alert_id = f"{alert_type.value}-{record['id']}"
            if alert_id in self.dismissed:
                continue
            alerts.append({
                "id": alert_id,
                "type": alert_type.value,
                "message": _ALERT_MESSAGES[alert_type].format(name=record["name"], stock=record["stock"]),
                "product_id": record["id"],
                "severity": severity_for(alert_type).value,
                "created_at": record["updated_at"],
            })
        return alerts


def create_app(seed: bool = True) -> FastAPI:
    app = FastAPI(title="Mock Inventory API")
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    store = InventoryStore(seed=seed)
    app.state.store = store
    router = APIRouter(prefix="/api")

    @router.get("/health")
    async def health():
        return {"status": "ok", "timestamp": _now()}

    @router.get("/products")
    async def list_products(
        search: str = "", category: str = "", sortBy: str = "name", sortOrder: str = "asc",
        limit: int | None = None, offset: int = 0,
    ):
        needle = search.lower()
        rows = [
            p for p in store.products.values()
            if (not needle or needle in p["name"].lower() or needle in p["sku"].lower() or needle in p["barcode"])
            and (not category or p["category"] == category)
        ]
        if sortBy in {"name", "price", "stock", "category", "sku"}:
            rows.sort(key=lambda p: p[sortBy], reverse=sortOrder == "desc")
        rows = rows[offset: offset + limit if limit else None]
        return [store.product_view(p) for p in rows]

    @router.get("/products/categories")
    async def categories():
        return sorted({p["category"] for p in store.products.values()})

    @router.get("/products/export")
    async def export_products():
        body = json.dumps([store.product_view(p) for p in store.products.values()], indent=2)
        return Response(content=body.encode(), media_type="application/json")

    @router.post("/products/import")
    async def import_products(file: UploadFile = File(...)):
        raw = (await file.read()).decode("utf-8", errors="replace")
        try:
            rows = json.loads(raw) if file.filename.endswith(".json") else list(csv.DictReader(io.StringIO(raw)))
            parsed = [
                {"name": r["name"], "sku": r["sku"], "barcode": r["barcode"], "category": r["category"],
                 "price": float(r["price"]), "stock": int(r["stock"]), "threshold": int(r.get("threshold") or 5),
                 "description": r.get("description") or ""}
                for r in rows
            ]
        except (KeyError, ValueError, TypeError) as e:
            return _error(400, f"Invalid import file: {e}")
        for row in parsed:
            store.add(row)
        return {"message": f"Imported {len(parsed)} products"}

    @router.get("/products/search")
    async def search_products(q: str = ""):
        needle = q.lower()
        return [
            store.product_view(p) for p in store.products.values()
            if needle in p["name"].lower() or needle in p["sku"].lower() or needle in p["barcode"]
        ]

    @router.get("/products/scan/{barcode}")
    async def scan(barcode: str):
        for p in store.products.values():
            if p["barcode"] == barcode:
                return store.product_view(p)
        return _error(404, "Product not found")

    @router.get("/products/{product_id}")
    async def get_product(product_id: str):
        if product_id not in store.products:
            return _error(404, "Product not found")
        return store.product_view(store.products[product_id])

    @router.post("/products")
    async def create_product(request: Request):
        body = await request.json()
        missing = [f for f in ("name", "sku", "barcode", "category", "price", "stock") if f not in body]
        if missing:
            return _error(400, f"Missing fields: {', '.join(missing)}")
        if any(p["sku"] == body["sku"] for p in store.products.values()):
            return _error(409, f"SKU {body['sku']} already exists")
        record = store.add({k: body[k] for k in body if k in
                            {"name", "sku", "barcode", "category", "price", "stock", "threshold", "description"}})
        return JSONResponse(status_code=201, content=store.product_view(record))

    @router.put("/products/{product_id}")
    async def update_product(product_id: str, request: Request):
        if product_id not in store.products:
            return _error(404, "Product not found")
        body = await request.json()
        record = store.products[product_id]
        record.update({k: v for k, v in body.items() if k in record and k not in {"id", "created_at"}})
        record["updated_at"] = _now()
        return store.product_view(record)

    @router.delete("/products/{product_id}")
    async def delete_product(product_id: str):
        if store.products.pop(product_id, None) is None:
            return _error(404, "Product not found")
        return {"message": "Product deleted"}

    @router.get("/inventory")
    async def overview():
        items = [store.item_view(p) for p in store.products.values()]
        return {
            "items": items,
            "summary": {
                "totalValue": round(sum(i["value"] for i in items), 2),
                "totalItems": sum(i["currentStock"] for i in items),
                "lowStockItems": sum(1 for i in items if i["status"] in {"low", "critical"}),
                "categories": len({i["category"] for i in items}),
            },
        }

    @router.get("/inventory/alerts")
    async def alerts():
        return store.alerts()

    @router.delete("/inventory/alerts/{alert_id}")
    async def dismiss(alert_id: str):
        if alert_id not in {a["id"] for a in store.alerts()}:
            return _error(404, "Alert not found")
        store.dismissed.add(alert_id)
        return {"message": "Alert dismissed"}

    @router.patch("/inventory/stock/{product_id}")
    async def update_stock(product_id: str, request: Request):
        if product_id not in store.products:
            return _error(404, "Product not found")
        body = await request.json()
        quantity, operation = body.get("quantity"), body.get("operation")
        if not isinstance(quantity, int) or quantity < 0:
            return _error(400, "Quantity must be a non-negative integer")
        record = store.products[product_id]
        if operation == "add":
            new_stock = record["stock"] + quantity
        elif operation == "subtract":
            if quantity > record["stock"]:
                return _error(400, f"Insufficient stock: {record['stock']} available")
            new_stock = record["stock"] - quantity
        elif operation == "set":
            new_stock = quantity
        else:
            return _error(400, f"Unknown operation: {operation}")
        record["stock"] = new_stock
        record["updated_at"] = _now()
        # A stock change re-arms alerts for the product
        store.dismissed = {a for a in store.dismissed if not a.endswith(f"-{product_id}")}
        return store.item_view(record)

    @router.get("/inventory/low-stock")
    async def low_stock():
        return [store.product_view(p) for p in store.products.values() if 0 < p["stock"] <= p["threshold"]]

    @router.get("/inventory/out-of-stock")
    async def out_of_stock():
        return [store.product_view(p) for p in store.products.values() if p["stock"] == 0]

    @router.post("/inventory/export")
    async def export_inventory():
        body = json.dumps([store.item_view(p) for p in store.products.values()], indent=2)
        return Response(content=body.encode(), media_type="application/json")

    @router.post("/inventory/import")
    async def import_inventory(file: UploadFile = File(...)):
        raw = (await file.read()).decode("utf-8", errors="replace")
        try:
            rows = list(csv.DictReader(io.StringIO(raw)))
            updates = {str(r["id"]): int(r["quantity"]) for r in rows}
        except (KeyError, ValueError) as e:
            return _error(400, f"Invalid import file: {e}")
        unknown = sorted(set(updates) - set(store.products))
        if unknown:
            return _error(400, f"Unknown product ids: {', '.join(unknown)}")
        for product_id, quantity in updates.items():
            store.products[product_id]["stock"] = quantity
            store.products[product_id]["updated_at"] = _now()
        return {"message": f"Updated {len(updates)} items"}

    app.include_router(router)

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return _error(exc.status_code, str(exc.detail))

    logger.info(f"Mock inventory API ready with {len(store.products)} products")
    return app


app = create_app()
