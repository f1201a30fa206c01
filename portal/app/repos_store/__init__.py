"""Store-backed repository implementations."""

from .orders_repo_store import DRIVERS_TABLE, ORDER_COLUMNS, ORDERS_TABLE, StoreOrdersRepo

__all__ = ["StoreOrdersRepo", "DRIVERS_TABLE", "ORDERS_TABLE", "ORDER_COLUMNS"]
