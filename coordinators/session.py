"""
Wires the gateway, working sets, query coordinators and mutation orchestrator
into one object the view layer talks to.
"""

import logging

import httpx

from config.config import ApiClientConfig, MutationConfig, QueryConfig
from connectors.api_gateway import ApiGateway
from connectors.catalog_api import InventoryApi, ProductApi, check_health
from connectors.notifications import LoggingNotificationSink, NotificationSink
from models.api import ApiResponse, QuerySpec
from models.enums import InventoryEventType
from models.inventory import InventoryOverview
from models.product import Product
from utils.event_bus import EventBus

from .mutations import MutationOrchestrator
from .query import QueryCoordinator
from .state import InventoryLedger, ProductCatalog

logger = logging.getLogger(__name__)


class InventorySession:
    """In-memory client session against one inventory API."""

    def __init__(
        self,
        api_config: ApiClientConfig | None = None,
        query_config: QueryConfig | None = None,
        mutation_config: MutationConfig | None = None,
        sink: NotificationSink | None = None,
        event_bus: EventBus | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.gateway = ApiGateway(api_config or ApiClientConfig.from_env(), client=client)
        self.product_api = ProductApi(self.gateway)
        self.inventory_api = InventoryApi(self.gateway)
        self.sink = sink or LoggingNotificationSink()
        self.event_bus = event_bus or EventBus()
        query_config = query_config or QueryConfig.from_env()

        self.catalog = ProductCatalog()
        self.ledger = InventoryLedger()

        self.products = QueryCoordinator[list[Product]](
            loader=self.product_api.get_all,
            apply=self.catalog.replace_all,
            sink=self.sink,
            config=query_config,
            event_bus=self.event_bus,
            event_type=InventoryEventType.PRODUCTS_LOADED,
            name="products",
        )
        self.inventory = QueryCoordinator[InventoryOverview](
            loader=self._load_overview,
            apply=self._apply_overview,
            sink=self.sink,
            config=query_config,
            event_bus=self.event_bus,
            event_type=InventoryEventType.INVENTORY_LOADED,
            name="inventory",
        )
        self.mutations = MutationOrchestrator(
            product_api=self.product_api,
            inventory_api=self.inventory_api,
            catalog=self.catalog,
            ledger=self.ledger,
            product_query=self.products,
            inventory_query=self.inventory,
            sink=self.sink,
            config=mutation_config or MutationConfig.from_env(),
            event_bus=self.event_bus,
        )

    async def _load_overview(self, spec: QuerySpec) -> ApiResponse:
        # The overview endpoint takes no parameters
        return await self.inventory_api.overview()

    def _apply_overview(self, overview: InventoryOverview) -> None:
        self.ledger.replace_items(overview.items, server_summary=overview.summary)

    async def load(self) -> None:
        """Initial load: products, categories, inventory overview and alerts."""
        await self.products.fetch()
        await self.mutations.refresh_categories()
        await self.inventory.fetch()
        await self.mutations.refresh_alerts()

    async def health(self) -> ApiResponse:
        return await check_health(self.gateway)

    async def aclose(self) -> None:
        self.products.cancel_pending()
        self.inventory.cancel_pending()
        await self.products.wait_idle()
        await self.inventory.wait_idle()
        await self.gateway.aclose()

    async def __aenter__(self) -> "InventorySession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
