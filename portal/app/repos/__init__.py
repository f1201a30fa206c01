"""Repository contracts."""

from .orders_repo import ChangeCallback, OrdersRepo

__all__ = ["ChangeCallback", "OrdersRepo"]
