"""
Drives the inventory client core end to end.

By default it runs against the in-process mock backend through an ASGI
transport. Pass --live to use the API at INVENTORY_API_URL instead.
Run with: python -m demos.inventory_dashboard_demo [--live]
"""

import asyncio
import sys

import httpx

from config.config import ApiClientConfig, MutationConfig, QueryConfig
from coordinators.session import InventorySession
from models.enums import InventoryEventType, StockOperation
from models.events import InventoryEvent
from utils.classification import expected_alert
from utils.logger import get_logger

logger = get_logger("inventory-demo")


async def log_event(event: InventoryEvent) -> None:
    logger.info(f"event {event.event_type.value}: {event.payload}")


def print_dashboard(session: InventorySession) -> None:
    summary = session.ledger.summary
    print("\n--- Inventory dashboard ---")
    print(
        f"Total value: {summary.total_value:.2f} | Units: {summary.total_items} | "
        f"Low stock: {summary.low_stock_items} | Categories: {summary.categories}"
    )
    for item in session.ledger.items:
        alert = expected_alert(item)
        flag = f" [{alert[0].value}/{alert[1].value}]" if alert else ""
        print(f"  {item.sku:<8} {item.name:<22} {item.current_stock:>4} {item.status.value:<9} {item.value:>9.2f}{flag}")
    print(f"Alerts: {[alert.message for alert in session.ledger.alerts]}")


async def main(live: bool = False) -> None:
    client = None
    api_config = ApiClientConfig.from_env()
    if not live:
        from demos.mock_inventory_api import create_app

        api_config = ApiClientConfig(base_url="http://mock/api")
        client = httpx.AsyncClient(transport=httpx.ASGITransport(app=create_app()))

    session = InventorySession(
        api_config=api_config,
        query_config=QueryConfig(debounce_seconds=0.2),
        mutation_config=MutationConfig.from_env(),
        client=client,
    )
    for event_type in (InventoryEventType.PRODUCTS_LOADED, InventoryEventType.STOCK_UPDATED):
        session.event_bus.subscribe(event_type, log_event)

    try:
        health = await session.health()
        logger.info(f"API connected: {health.success}")
        await session.load()
        print_dashboard(session)

        # Rapid typing: only the last search is issued
        for text in ("n", "no", "not", "note"):
            session.products.set_params(search=text)
        await session.products.wait_idle()
        logger.info(f"Search 'note' -> {[p.name for p in session.catalog.products]}")

        await session.mutations.create_product(
            {"name": "Pen", "sku": "PN-1", "barcode": "111", "category": "Office", "price": 1.50, "stock": 3}
        )
        await session.mutations.update_stock("3", 40, StockOperation.ADD)
        await session.mutations.update_stock("2", 50, StockOperation.SUBTRACT)  # rejected by the server
        await session.inventory.fetch()
        print_dashboard(session)
    finally:
        await session.aclose()
        if client is not None:
            await client.aclose()


if __name__ == "__main__":
    asyncio.run(main(live="--live" in sys.argv[1:]))
