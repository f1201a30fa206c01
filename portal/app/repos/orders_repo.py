"""Repository interface for driver and order operations."""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..domain import Driver, Order
from ..store import Subscription

ChangeCallback = Callable[[Dict[str, Any]], Awaitable[None]]


class OrdersRepo(ABC):
    """Contract for reading drivers and orders and mutating order claims.

    Implementations raise :class:`~portal.app.errors.StoreError` for any
    store failure and :class:`~portal.app.errors.NotFoundError` only from
    :meth:`get_driver`.
    """

    @abstractmethod
    async def get_driver(self, driver_id: str) -> Driver:
        """Fetch exactly one driver by identifier."""
        raise NotImplementedError

    @abstractmethod
    async def list_called_orders(self) -> List[Order]:
        """List every order flagged as having called a driver."""
        raise NotImplementedError

    @abstractmethod
    async def set_order_acceptance(
        self, order_id: int, accepted: bool, driver_id: Optional[str]
    ) -> None:
        """Set ``driver_accepted`` and ``accepted_driver_id`` in one update."""
        raise NotImplementedError

    @abstractmethod
    async def set_order_code(self, order_id: int, code: str) -> None:
        """Replace the rotating pickup code of an order."""
        raise NotImplementedError

    @abstractmethod
    async def subscribe_to_order_changes(self, on_change: ChangeCallback) -> Subscription:
        """Open a change channel over called orders."""
        raise NotImplementedError
