"""Rotating pickup codes for accepted orders.

Each accepted order owns one asyncio task that wakes every ``interval``
seconds and writes a fresh 4-digit code through the repository. The
:class:`CodeRotator` keeps the set of tasks equal to the set of accepted
order ids it is given.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Dict, Iterable, Optional, Set

from ..errors import StoreError
from ..repos.orders_repo import OrdersRepo
from ..routes_metrics import code_rotations_total, rotation_timers_gauge

CODE_MIN = 1000
CODE_MAX = 9999
DEFAULT_INTERVAL = 30.0

logger = logging.getLogger("portal.rotator")


def generate_code(rng: Optional[random.Random] = None) -> str:
    """Return a uniformly random code between ``"1000"`` and ``"9999"``."""

    return str((rng or random).randint(CODE_MIN, CODE_MAX))


async def update_order_code(repo: OrdersRepo, order_id: int) -> Optional[str]:
    """Write a new code for ``order_id`` and return it.

    Store failures are logged and counted; ``None`` is returned and the next
    tick tries again.
    """

    code = generate_code()
    try:
        await repo.set_order_code(order_id, code)
    except StoreError as exc:
        code_rotations_total.labels(outcome="error").inc()
        logger.warning("code rotation failed: %s", exc, extra={"order": order_id})
        return None
    code_rotations_total.labels(outcome="ok").inc()
    return code


class CodeRotator:
    """One periodic code writer per accepted order id."""

    def __init__(self, repo: OrdersRepo, interval: float = DEFAULT_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.repo = repo
        self.interval = interval
        self._timers: Dict[int, asyncio.Task] = {}

    @property
    def active_ids(self) -> Set[int]:
        return set(self._timers)

    def timer_for(self, order_id: int) -> Optional[asyncio.Task]:
        return self._timers.get(order_id)

    def reconcile(self, order_ids: Iterable[int]) -> None:
        """Make the running timers match ``order_ids`` exactly.

        New ids get a timer, ids no longer present are cancelled and
        forgotten, and timers for unchanged ids keep their schedule.
        """

        wanted = set(order_ids)
        for order_id in self.active_ids - wanted:
            self._timers.pop(order_id).cancel()
            rotation_timers_gauge.dec()
            logger.debug("code timer stopped", extra={"order": order_id})
        for order_id in wanted - self.active_ids:
            self._timers[order_id] = asyncio.create_task(
                self._run(order_id), name=f"code-rotator:{order_id}"
            )
            rotation_timers_gauge.inc()
            logger.debug("code timer started", extra={"order": order_id})

    async def close(self) -> None:
        """Cancel every timer and wait until they have stopped."""

        tasks = list(self._timers.values())
        self.reconcile(())
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, order_id: int) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await update_order_code(self.repo, order_id)

    async def __aenter__(self) -> "CodeRotator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
