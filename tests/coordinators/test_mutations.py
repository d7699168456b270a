from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from config.config import MutationConfig
from coordinators.mutations import MutationOrchestrator
from coordinators.state import InventoryLedger, ProductCatalog
from models.api import ApiResponse
from models.enums import InventoryEventType, ProductStatus, StockOperation
from models.product import ProductCreate
from tests.mocks import (
    RecordingSink,
    make_alert,
    make_item,
    make_product,
    mock_inventory_api,
    mock_product_api,
)
from utils.aggregation import summarize
from utils.event_bus import EventBus


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def orchestrator(sink, tmp_path):
    return MutationOrchestrator(
        product_api=mock_product_api(),
        inventory_api=mock_inventory_api(),
        catalog=ProductCatalog(),
        ledger=InventoryLedger(),
        product_query=AsyncMock(),
        inventory_query=AsyncMock(),
        sink=sink,
        config=MutationConfig(export_dir=tmp_path / "exports"),
    )


PEN = {"name": "Pen", "sku": "PN-1", "barcode": "111", "category": "Office", "price": 1.50, "stock": 3, "threshold": 5}


# --- create ---


@pytest.mark.asyncio
async def test_create_prepends_server_record_and_classifies_low_stock(orchestrator, sink):
    orchestrator.catalog.replace_all([make_product("1")])
    orchestrator.catalog.set_categories(["Office"])
    created = make_product("42", **PEN)
    orchestrator.product_api.create.return_value = ApiResponse.ok(created)

    response = await orchestrator.create_product(PEN)

    assert response.success
    assert [p.id for p in orchestrator.catalog.products] == ["42", "1"]
    assert orchestrator.catalog.products[0].status == ProductStatus.LOW_STOCK  # 3 <= 5
    sent = orchestrator.product_api.create.await_args.args[0]
    assert isinstance(sent, ProductCreate) and sent.price == Decimal("1.5")
    assert sink.successes == [("Product Added", "Pen has been added to inventory.")]
    orchestrator.product_api.categories.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_with_new_category_refreshes_categories(orchestrator):
    orchestrator.product_api.create.return_value = ApiResponse.ok(make_product("42", **PEN))
    orchestrator.product_api.categories.return_value = ApiResponse.ok(["General", "Office"])

    await orchestrator.create_product(PEN)

    assert orchestrator.catalog.categories == ["General", "Office"]


@pytest.mark.asyncio
async def test_create_applies_default_threshold(orchestrator):
    orchestrator.config.default_threshold = 8
    orchestrator.product_api.create.return_value = ApiResponse.ok(make_product("42"))
    data = {k: v for k, v in PEN.items() if k != "threshold"}

    await orchestrator.create_product(data)

    assert orchestrator.product_api.create.await_args.args[0].threshold == 8


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides,field",
    [({"name": ""}, "name"), ({"sku": "   "}, "sku"), ({"price": -1}, "price"), ({"stock": -3}, "stock")],
)
async def test_create_validation_happens_before_network(orchestrator, sink, overrides, field):
    response = await orchestrator.create_product({**PEN, **overrides})

    assert not response.success
    assert field in response.error
    orchestrator.product_api.create.assert_not_awaited()
    assert sink.errors and sink.errors[0][0] == "Invalid Product"


@pytest.mark.asyncio
async def test_create_missing_barcode_is_rejected(orchestrator):
    data = {k: v for k, v in PEN.items() if k != "barcode"}
    response = await orchestrator.create_product(data)
    assert not response.success and "barcode" in response.error
    orchestrator.product_api.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_failure_never_fabricates_a_record(orchestrator, sink):
    orchestrator.catalog.replace_all([make_product("1")])
    orchestrator.product_api.create.return_value = ApiResponse.fail("SKU PN-1 already exists")

    response = await orchestrator.create_product(PEN)

    assert not response.success
    assert [p.id for p in orchestrator.catalog.products] == ["1"]
    assert sink.errors == [("Error", "SKU PN-1 already exists")]


# --- update product ---


@pytest.mark.asyncio
async def test_update_product_replaces_catalog_and_ledger_copies(orchestrator):
    orchestrator.catalog.replace_all([make_product("1", price=Decimal("10.00"))])
    orchestrator.ledger.replace_items([make_item("1", price=Decimal("10.00"), current_stock=20)])
    orchestrator.product_api.update.return_value = ApiResponse.ok(make_product("1", price=Decimal("12.00")))

    response = await orchestrator.update_product("1", {"price": "12.00"})

    assert response.success
    assert orchestrator.catalog.find("1").price == Decimal("12.00")
    assert orchestrator.ledger.find("1").value == Decimal("240.00")
    assert orchestrator.ledger.summary == summarize(orchestrator.ledger.items)


@pytest.mark.asyncio
async def test_update_product_without_changes_is_rejected(orchestrator):
    response = await orchestrator.update_product("1", {})
    assert not response.success
    orchestrator.product_api.update.assert_not_awaited()


# --- stock ---


@pytest.mark.asyncio
async def test_update_stock_replaces_item_and_adjusts_summary(orchestrator, sink):
    other = make_item("2", category="Tools", current_stock=4)
    orchestrator.ledger.replace_items([make_item("1", current_stock=30), other])
    orchestrator.catalog.replace_all([make_product("1", stock=30)])
    confirmed = make_item("1", current_stock=45)
    orchestrator.inventory_api.update_stock.return_value = ApiResponse.ok(confirmed)
    orchestrator.inventory_api.alerts.return_value = ApiResponse.ok([make_alert()])

    response = await orchestrator.update_stock("1", 15, "add")

    assert response.success
    orchestrator.inventory_api.update_stock.assert_awaited_once_with("1", 15, StockOperation.ADD)
    assert orchestrator.ledger.find("1").current_stock == 45
    assert orchestrator.ledger.summary == summarize([confirmed, other])
    assert orchestrator.ledger.summary.total_items == 49
    assert orchestrator.catalog.find("1").stock == 45
    assert len(orchestrator.ledger.alerts) == 1  # alerts refreshed after the change
    assert sink.successes[-1][0] == "Stock Updated"


@pytest.mark.asyncio
async def test_rejected_subtract_leaves_item_and_summary_untouched(orchestrator, sink):
    orchestrator.ledger.replace_items([make_item("1", current_stock=30), make_item("2", current_stock=7)])
    items_before = list(orchestrator.ledger.items)
    summary_before = orchestrator.ledger.summary
    orchestrator.inventory_api.update_stock.return_value = ApiResponse.fail("Insufficient stock: 30 available")

    response = await orchestrator.update_stock("1", 50, StockOperation.SUBTRACT)

    assert not response.success
    assert orchestrator.ledger.items == items_before
    assert orchestrator.ledger.summary == summary_before
    assert orchestrator.ledger.find("1").current_stock == 30
    assert sink.errors == [("Error", "Insufficient stock: 30 available")]
    orchestrator.inventory_api.alerts.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("quantity", [-1, 2.5, "3", True])
async def test_update_stock_rejects_bad_quantity_before_network(orchestrator, quantity):
    response = await orchestrator.update_stock("1", quantity, "set")
    assert not response.success
    orchestrator.inventory_api.update_stock.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_stock_rejects_unknown_operation(orchestrator, sink):
    response = await orchestrator.update_stock("1", 3, "multiply")
    assert not response.success
    assert "add, subtract, set" in response.error
    orchestrator.inventory_api.update_stock.assert_not_awaited()


# --- delete ---


@pytest.mark.asyncio
async def test_delete_removes_product_and_item(orchestrator):
    orchestrator.catalog.replace_all([make_product("1"), make_product("2")])
    orchestrator.ledger.replace_items([make_item("1"), make_item("2", current_stock=5)])
    orchestrator.product_api.delete.return_value = ApiResponse.ok({"message": "Product deleted"})

    response = await orchestrator.delete_product("1")

    assert response.success
    assert [p.id for p in orchestrator.catalog.products] == ["2"]
    assert orchestrator.catalog.total_count == 1
    assert orchestrator.ledger.summary == summarize([make_item("2", current_stock=5)])


@pytest.mark.asyncio
async def test_delete_failure_keeps_state(orchestrator):
    orchestrator.catalog.replace_all([make_product("1")])
    orchestrator.ledger.replace_items([make_item("1")])
    orchestrator.product_api.delete.return_value = ApiResponse.fail("Network error occurred")

    response = await orchestrator.delete_product("1")

    assert not response.success
    assert orchestrator.catalog.total_count == 1
    assert len(orchestrator.ledger.items) == 1


# --- alerts ---


@pytest.mark.asyncio
async def test_dismiss_removes_alert_only_after_confirmation(orchestrator, sink):
    orchestrator.ledger.replace_alerts([make_alert("a1"), make_alert("a2")])
    orchestrator.inventory_api.dismiss_alert.return_value = ApiResponse.ok({"message": "Alert dismissed"})

    response = await orchestrator.dismiss_alert("a1")

    assert response.success
    assert [a.id for a in orchestrator.ledger.alerts] == ["a2"]
    assert sink.successes == [("Alert Dismissed", "The alert has been removed from your dashboard.")]


@pytest.mark.asyncio
async def test_failed_dismiss_keeps_alert_visible(orchestrator, sink):
    orchestrator.ledger.replace_alerts([make_alert("a1")])
    orchestrator.inventory_api.dismiss_alert.return_value = ApiResponse.fail("Network error occurred")

    response = await orchestrator.dismiss_alert("a1")

    assert not response.success
    assert [a.id for a in orchestrator.ledger.alerts] == ["a1"]
    assert sink.errors == [("Error", "Network error occurred")]


@pytest.mark.asyncio
async def test_refresh_alerts_failure_keeps_current_alerts(orchestrator):
    orchestrator.ledger.replace_alerts([make_alert("a1")])
    orchestrator.inventory_api.alerts.return_value = ApiResponse.fail("HTTP error! status: 500")

    await orchestrator.refresh_alerts()

    assert [a.id for a in orchestrator.ledger.alerts] == ["a1"]


# --- import ---


@pytest.mark.asyncio
async def test_import_products_resyncs_everything_on_success(orchestrator, sink, tmp_path):
    upload = tmp_path / "products.csv"
    upload.write_text("name,sku,barcode,category,price,stock\nPen,PN-1,111,Office,1.5,3\n")
    orchestrator.product_api.import_file.return_value = ApiResponse.ok({"message": "Imported 1 products"})

    response = await orchestrator.import_products(upload)

    assert response.success
    orchestrator.product_api.import_file.assert_awaited_once_with(upload)
    orchestrator.product_query.fetch.assert_awaited_once_with()
    orchestrator.product_api.categories.assert_awaited_once()
    assert sink.successes[-1][0] == "Data Imported"


@pytest.mark.asyncio
async def test_import_inventory_resyncs_overview_and_alerts(orchestrator, tmp_path):
    upload = tmp_path / "stock.csv"
    upload.write_text("id,quantity\n1,5\n")
    orchestrator.inventory_api.import_file.return_value = ApiResponse.ok({"message": "Updated 1 items"})

    await orchestrator.import_inventory(str(upload))

    orchestrator.inventory_query.fetch.assert_awaited_once_with()
    orchestrator.inventory_api.alerts.assert_awaited_once()


@pytest.mark.asyncio
async def test_failed_import_reports_server_detail_and_applies_nothing(orchestrator, sink, tmp_path):
    upload = tmp_path / "products.csv"
    upload.write_text("garbage")
    orchestrator.catalog.replace_all([make_product("1")])
    orchestrator.product_api.import_file.return_value = ApiResponse.fail("Invalid import file: 'sku'")

    response = await orchestrator.import_products(upload)

    assert not response.success
    assert sink.errors == [("Import Failed", "Invalid import file: 'sku'")]
    orchestrator.product_query.fetch.assert_not_awaited()
    assert orchestrator.catalog.total_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "name,content,expected",
    [("missing.csv", None, "File not found"), ("empty.csv", "", "File is empty"), ("data.xlsx", "x", "Unsupported")],
)
async def test_import_rejects_bad_files_before_network(orchestrator, tmp_path, name, content, expected):
    path = tmp_path / name
    if content is not None:
        path.write_text(content)

    response = await orchestrator.import_products(path)

    assert not response.success
    assert expected in response.error
    orchestrator.product_api.import_file.assert_not_awaited()


# --- export ---


@pytest.mark.asyncio
async def test_export_products_writes_dated_file(orchestrator):
    orchestrator.product_api.export.return_value = ApiResponse.ok(b'[{"id": "1"}]')

    response = await orchestrator.export_products()

    assert response.success
    path = response.data
    assert path.parent == orchestrator.config.export_dir
    assert path.name.startswith("products-export-") and path.suffix == ".json"
    assert path.read_bytes() == b'[{"id": "1"}]'


@pytest.mark.asyncio
async def test_export_inventory_failure_is_reported_not_raised(orchestrator, sink):
    orchestrator.inventory_api.export.return_value = ApiResponse.fail("HTTP error! status: 500")

    response = await orchestrator.export_inventory()

    assert not response.success
    assert sink.errors == [("Export Failed", "HTTP error! status: 500")]
    assert not orchestrator.config.export_dir.exists()


# --- lookup ---


@pytest.mark.asyncio
async def test_scan_barcode_found_and_not_found(orchestrator, sink):
    orchestrator.product_api.scan_barcode.return_value = ApiResponse.ok(make_product("1", name="Pen", sku="PN-1"))
    found = await orchestrator.scan_barcode(" 111 ")
    orchestrator.product_api.scan_barcode.assert_awaited_once_with("111")
    assert found.success and sink.successes == [("Product Found", "Found: Pen (PN-1)")]

    orchestrator.product_api.scan_barcode.return_value = ApiResponse.fail("Product not found")
    missing = await orchestrator.scan_barcode("999")
    assert not missing.success and sink.errors[-1][0] == "Product Not Found"
    assert orchestrator.catalog.total_count == 0


# --- events ---


@pytest.mark.asyncio
async def test_confirmed_mutations_are_published(orchestrator):
    bus = EventBus()
    seen = []

    async def record(event):
        seen.append(event)

    bus.subscribe(InventoryEventType.STOCK_UPDATED, record)
    orchestrator.event_bus = bus
    orchestrator.inventory_api.update_stock.return_value = ApiResponse.ok(make_item("1", current_stock=0))

    await orchestrator.update_stock("1", 0, StockOperation.SET)

    assert len(seen) == 1
    assert seen[0].payload == {"item_id": "1", "current_stock": 0, "status": "critical"}
