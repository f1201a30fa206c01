"""Store-backed repository for drivers and inventory requests.

These helpers only shape requests: table names, joined columns and filters.
Classification and refresh policy live in the view layer.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..domain import Driver, Order
from ..errors import NotFoundError, StoreError
from ..repos.orders_repo import ChangeCallback, OrdersRepo
from ..store import StoreClient, Subscription, eq

DRIVERS_TABLE = "drivers"
ORDERS_TABLE = "inventory_requests"
ORDER_COLUMNS = "*,items(name),restaurants(name)"

logger = logging.getLogger("portal.repos")

M = TypeVar("M", bound=BaseModel)


def _parse(model: Type[M], row: Dict[str, Any], table: str) -> M:
    try:
        return model.model_validate(row)
    except ValidationError as exc:
        raise StoreError(f"malformed {table} row: {exc.error_count()} errors", op="select") from exc


class StoreOrdersRepo(OrdersRepo):
    """:class:`OrdersRepo` over a shared :class:`StoreClient`."""

    def __init__(self, client: StoreClient) -> None:
        self.client = client

    async def get_driver(self, driver_id: str) -> Driver:
        rows = await self.client.select(DRIVERS_TABLE, "*", {"id": eq(driver_id)})
        if not rows:
            raise NotFoundError("driver", driver_id)
        return _parse(Driver, rows[0], DRIVERS_TABLE)

    async def list_called_orders(self) -> List[Order]:
        rows = await self.client.select(
            ORDERS_TABLE,
            ORDER_COLUMNS,
            {"called_driver": eq(True)},
            order="created_at.asc",
        )
        return [_parse(Order, row, ORDERS_TABLE) for row in rows]

    async def set_order_acceptance(
        self, order_id: int, accepted: bool, driver_id: Optional[str]
    ) -> None:
        await self._update_one(
            order_id,
            {"driver_accepted": accepted, "accepted_driver_id": driver_id},
        )
        logger.info(
            "order acceptance set to %s",
            accepted,
            extra={"order": order_id, "driver": driver_id},
        )

    async def set_order_code(self, order_id: int, code: str) -> None:
        await self._update_one(order_id, {"code": code})

    async def subscribe_to_order_changes(self, on_change: ChangeCallback) -> Subscription:
        return await self.client.subscribe(
            ORDERS_TABLE, on_change, column="called_driver", value=True
        )

    async def _update_one(self, order_id: int, values: Dict[str, Any]) -> None:
        rows = await self.client.update(ORDERS_TABLE, values, {"id": eq(order_id)})
        if not rows:
            raise StoreError(f"order {order_id} not found", op="update", status=404)
