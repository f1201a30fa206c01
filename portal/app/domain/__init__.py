"""Domain models and helpers."""

from .models import Descriptor, Driver, Order
from .partition import OrderPartition, Tab, is_accepted_by, is_pending, partition_orders

__all__ = [
    "Descriptor",
    "Driver",
    "Order",
    "OrderPartition",
    "Tab",
    "is_accepted_by",
    "is_pending",
    "partition_orders",
]
