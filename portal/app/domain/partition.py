"""Split called orders into what a given driver may see."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List

from .models import Order


class Tab(str, Enum):
    """Tabs of the driver order view."""

    PENDING = "pending"
    ACCEPTED = "accepted"


@dataclass
class OrderPartition:
    """Orders visible to one driver, bucketed by tab."""

    pending: List[Order] = field(default_factory=list)
    accepted: List[Order] = field(default_factory=list)

    @property
    def accepted_ids(self) -> List[int]:
        return [order.id for order in self.accepted]


def is_pending(order: Order) -> bool:
    """Return ``True`` unless the order is definitively claimed by a driver.

    ``driver_accepted`` without an ``accepted_driver_id`` is an inconsistent
    row; it stays claimable.
    """

    return not order.driver_accepted or order.accepted_driver_id is None


def is_accepted_by(order: Order, driver_id: str) -> bool:
    """Return ``True`` if ``driver_id`` holds the claim on ``order``."""

    return not is_pending(order) and order.accepted_driver_id == driver_id


def partition_orders(orders: Iterable[Order], driver_id: str) -> OrderPartition:
    """Bucket ``orders`` for ``driver_id``.

    Orders claimed by another driver land in neither bucket.
    """

    result = OrderPartition()
    for order in orders:
        if is_pending(order):
            result.pending.append(order)
        elif is_accepted_by(order, driver_id):
            result.accepted.append(order)
    return result
