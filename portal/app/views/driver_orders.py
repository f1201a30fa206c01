"""View model behind a driver's order page.

A :class:`DriverOrderView` caches what one driver sees: their record and the
called orders split into pending and accepted. It never predicts state; every
change notification and every local accept/reject ends in a fresh read.

Used as an async context manager it owns the change subscription and the
pickup code timers for as long as the view is active::

    async with DriverOrderView(repo, driver_id, rotator=CodeRotator(repo)) as view:
        ...
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import anyio

from ..domain import Driver, Order, Tab, partition_orders
from ..errors import NotFoundError, StoreError
from ..repos.orders_repo import OrdersRepo
from ..routes_metrics import order_actions_total
from ..services.code_rotator import CodeRotator
from ..store import Subscription

logger = logging.getLogger("portal.views")

UpdateCallback = Callable[["DriverOrderView"], Union[Awaitable[None], None]]

REFRESH_FAILED = "Orders could not be refreshed. Showing the last known list."
DRIVER_UNAVAILABLE = "Driver details are unavailable right now."


class DriverOrderView:
    """Pending/accepted partition of called orders for one driver."""

    def __init__(
        self,
        repo: OrdersRepo,
        driver_id: str,
        *,
        rotator: Optional[CodeRotator] = None,
        on_update: Optional[UpdateCallback] = None,
        tab: Union[Tab, str] = Tab.PENDING,
    ) -> None:
        self.repo = repo
        self.driver_id = driver_id
        self.rotator = rotator
        self.on_update = on_update

        self.driver: Optional[Driver] = None
        self.pending_orders: List[Order] = []
        self.accepted_orders: List[Order] = []
        self.loading = True
        self.not_found = False
        self.error: Optional[str] = None
        self.active_tab = Tab(tab)

        # Sequence numbers of the last started and the last applied refresh.
        self._issued = 0
        self._applied = 0
        self._subscription: Optional[Subscription] = None
        self._closed = False

    async def require_driver(self) -> Driver:
        """Fetch the driver record, propagating ``NotFoundError``/``StoreError``."""

        self.driver = await self.repo.get_driver(self.driver_id)
        self.not_found = False
        self.loading = False
        return self.driver

    async def load_driver(self) -> Optional[Driver]:
        """Fetch the driver record, recording not-found or transient errors."""

        try:
            await self.require_driver()
        except NotFoundError:
            logger.info("driver not found", extra={"driver": self.driver_id})
            self.driver = None
            self.not_found = True
            self.loading = False
            return None
        except StoreError as exc:
            logger.warning("driver fetch failed: %s", exc, extra={"driver": self.driver_id})
            self.error = DRIVER_UNAVAILABLE
            return None
        if self.error == DRIVER_UNAVAILABLE:
            self.error = None
        return self.driver

    async def refresh(self) -> bool:
        """Re-read called orders and re-partition them.

        Returns ``True`` when the result was applied. A response that
        arrives after a later-started refresh has already been applied is
        discarded.
        """

        self._issued += 1
        seq = self._issued
        try:
            orders = await self.repo.list_called_orders()
        except StoreError as exc:
            logger.warning("order refresh failed: %s", exc, extra={"driver": self.driver_id})
            if seq > self._applied:
                self.error = REFRESH_FAILED
            return False
        if seq < self._applied:
            logger.debug("stale refresh %d dropped", seq, extra={"driver": self.driver_id})
            return False
        self._applied = seq

        partition = partition_orders(orders, self.driver_id)
        self.pending_orders = partition.pending
        self.accepted_orders = partition.accepted
        if self.error == REFRESH_FAILED:
            self.error = None
        if self.rotator is not None and not self._closed:
            self.rotator.reconcile(partition.accepted_ids)
        await self._notify()
        return True

    async def load(self) -> None:
        """Initial read: driver first, then orders for a known driver."""

        await self.load_driver()
        if not self.not_found:
            await self.refresh()

    async def accept(self, order_id: int) -> None:
        """Claim ``order_id`` for this driver, then re-read."""

        await self.repo.set_order_acceptance(order_id, True, self.driver_id)
        order_actions_total.labels(action="accept").inc()
        logger.info("order accepted", extra={"driver": self.driver_id, "order": order_id})
        await self.refresh()

    async def reject(self, order_id: int) -> None:
        """Release ``order_id`` back to the pending pool, then re-read."""

        await self.repo.set_order_acceptance(order_id, False, None)
        order_actions_total.labels(action="reject").inc()
        logger.info("order rejected", extra={"driver": self.driver_id, "order": order_id})
        await self.refresh()

    def switch_tab(self, tab: Union[Tab, str]) -> None:
        self.active_tab = Tab(tab)

    async def open(self) -> "DriverOrderView":
        """Load state and start listening for order changes."""

        await self.load_driver()
        if self.not_found:
            return self
        self._subscription = await self.repo.subscribe_to_order_changes(self._on_change)
        await self.refresh()
        return self

    async def close(self) -> None:
        """Release the subscription and every code timer.

        Runs to completion even when the surrounding task is being cancelled,
        as happens when a stream client disconnects.
        """

        self._closed = True
        subscription, self._subscription = self._subscription, None
        with anyio.CancelScope(shield=True):
            try:
                if subscription is not None:
                    await subscription.unsubscribe()
            finally:
                if self.rotator is not None:
                    await self.rotator.close()

    @property
    def active(self) -> bool:
        return self._subscription is not None

    async def __aenter__(self) -> "DriverOrderView":
        try:
            return await self.open()
        except BaseException:
            await self.close()
            raise

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _on_change(self, event: Dict[str, Any]) -> None:
        logger.debug("order change %s", event.get("type"), extra={"driver": self.driver_id})
        await self.refresh()

    async def _notify(self) -> None:
        if self.on_update is None:
            return
        result = self.on_update(self)
        if inspect.isawaitable(result):
            await result

    def snapshot(self) -> Dict[str, Any]:
        """Return the view state as JSON-ready data."""

        return {
            "driver": self.driver.model_dump(mode="json") if self.driver else None,
            "loading": self.loading,
            "not_found": self.not_found,
            "error": self.error,
            "active_tab": self.active_tab.value,
            "pending": [o.model_dump(mode="json") for o in self.pending_orders],
            "accepted": [o.model_dump(mode="json") for o in self.accepted_orders],
        }
