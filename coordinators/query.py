"""
Debounced, generation-tagged query coordination.

Every fetch is tagged with a generation number. When a response arrives it is
applied only if no newer fetch has been issued in the meantime; superseded
requests still complete, but their results are dropped. Parameter changes are
coalesced through a quiet-period timer so that rapid edits issue one fetch with
the final parameters.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from config.config import QueryConfig
from connectors.notifications import LoggingNotificationSink, NotificationSink
from models.api import ApiResponse, QuerySpec, validation_message
from models.enums import ComponentType, InventoryEventType
from models.events import InventoryEvent
from utils.event_bus import EventBus

logger = logging.getLogger(__name__)

T = TypeVar("T")

Loader = Callable[[QuerySpec], Awaitable[ApiResponse]]


class QueryCoordinator(Generic[T]):
    """
    Owns the current QuerySpec and applies at most the newest fetch result.

    Args:
        loader: Coroutine function issuing the remote query for a spec.
        apply: Callback receiving the data of a current, successful response.
        sink: Where fetch failures are reported.
        config: Debounce window and default page limit.
        event_bus: Optional bus; ``event_type`` is published after each applied result.
        name: Label used in logs and failure notifications.
    """

    def __init__(
        self,
        loader: Loader,
        apply: Callable[[T], None],
        sink: NotificationSink | None = None,
        config: QueryConfig | None = None,
        event_bus: EventBus | None = None,
        event_type: InventoryEventType | None = None,
        name: str = "query",
    ):
        self.loader = loader
        self.apply = apply
        self.sink = sink or LoggingNotificationSink()
        self.config = config or QueryConfig()
        self.event_bus = event_bus
        self.event_type = event_type
        self.name = name

        self.spec = QuerySpec(limit=self.config.page_limit)
        self.generation = 0
        self.applied_generation = 0
        self.error: str | None = None

        self._pending: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self._inflight_generations: set[int] = set()

    @property
    def loading(self) -> bool:
        """True while the newest issued fetch has not completed."""
        return self.generation in self._inflight_generations

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def set_params(self, spec: QuerySpec | None = None, **changes: Any) -> QuerySpec:
        """
        Update the query parameters and (re)start the quiet-period timer.

        Either pass a full ``spec`` or keyword ``changes`` merged into the current
        one. Returns the new current spec. Invalid parameters are reported to the
        sink and leave the current spec, the timer and any in-flight fetch as they were.
        """
        base = spec if spec is not None else self.spec
        try:
            new_spec = QuerySpec.model_validate({**base.model_dump(), **changes}) if changes else base
        except ValidationError as e:
            message = validation_message(e)
            logger.info(f"[{self.name}] rejected query parameters: {message}")
            self.sink.error("Invalid Query", message)
            return self.spec
        self.spec = new_spec
        self.cancel_pending()
        self._pending = asyncio.create_task(self._fetch_after_quiet_period(self.spec))
        return self.spec

    def cancel_pending(self) -> None:
        """Drop a scheduled fetch that has not fired yet. In-flight fetches are untouched."""
        if self.has_pending:
            self._pending.cancel()
        self._pending = None

    async def _fetch_after_quiet_period(self, spec: QuerySpec) -> None:
        await asyncio.sleep(self.config.debounce_seconds)
        # Run the fetch as its own task so a later cancel_pending() only ever hits the timer
        task = asyncio.create_task(self.fetch(spec))
        self._inflight.add(task)
        task.add_done_callback(self._fetch_done)

    def _fetch_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"[{self.name}] scheduled fetch raised {error!r}", exc_info=error)

    async def fetch(self, spec: QuerySpec | None = None) -> ApiResponse:
        """Issue the query now; apply the result only if it is still the newest."""
        spec = spec if spec is not None else self.spec
        self.generation += 1
        my_gen = self.generation
        try:
            self._inflight_generations.add(my_gen)
            logger.debug(f"[{self.name}] fetch generation {my_gen} with {spec.to_params()}")
            response = await self.loader(spec)
        finally:
            self._inflight_generations.discard(my_gen)

        if my_gen != self.generation:
            logger.debug(f"[{self.name}] discarding stale generation {my_gen} (latest {self.generation})")
            return response

        if not response.success:
            self.error = response.error or f"Failed to fetch {self.name}"
            logger.warning(f"[{self.name}] generation {my_gen} failed: {self.error}")
            self.sink.error("Error", self.error)
            return response

        self.error = None
        self.apply(response.data)
        self.applied_generation = my_gen
        logger.debug(f"[{self.name}] applied generation {my_gen}")
        if self.event_bus is not None and self.event_type is not None:
            await self.event_bus.publish(
                InventoryEvent(
                    event_type=self.event_type,
                    payload={"generation": my_gen, "params": spec.to_params()},
                    source=ComponentType.QUERY_COORDINATOR,
                )
            )
        return response

    async def wait_idle(self) -> None:
        """Wait until no timer is pending and no fetch is in flight."""
        while True:
            waiting = {task for task in self._inflight if not task.done()}
            if self.has_pending:
                waiting.add(self._pending)
            if not waiting:
                return
            await asyncio.wait(waiting)
