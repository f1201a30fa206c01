import asyncio
import logging
import random

import pytest

from portal.app.services import CodeRotator, generate_code, update_order_code
from tests._fakes import InMemoryOrdersRepo, make_order


def test_generated_codes_are_four_digit_strings():
    rng = random.Random(7)
    codes = [generate_code(rng) for _ in range(500)]

    assert all(len(c) == 4 and c.isdigit() for c in codes)
    assert all(1000 <= int(c) <= 9999 for c in codes)
    assert len(set(codes)) > 1


def test_rotator_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        CodeRotator(InMemoryOrdersRepo(), interval=0)


def test_update_order_code_writes_code():
    repo = InMemoryOrdersRepo(orders=[make_order(7)])

    code = asyncio.run(update_order_code(repo, 7))

    assert code is not None and len(code) == 4
    assert repo.orders[7]["code"] == code


def test_update_order_code_logs_failure(caplog):
    repo = InMemoryOrdersRepo(orders=[make_order(7)])
    repo.fail_writes = True

    with caplog.at_level(logging.WARNING, logger="portal.rotator"):
        code = asyncio.run(update_order_code(repo, 7))

    assert code is None
    assert repo.orders[7]["code"] is None
    assert any("code rotation failed" in r.getMessage() for r in caplog.records)


def test_reconcile_tracks_accepted_set():
    async def scenario():
        rotator = CodeRotator(InMemoryOrdersRepo(), interval=60)
        seen = []

        rotator.reconcile([])
        seen.append(rotator.active_ids)

        rotator.reconcile([1])
        first = rotator.timer_for(1)
        seen.append(rotator.active_ids)

        rotator.reconcile([1, 2])
        seen.append(rotator.active_ids)
        kept = rotator.timer_for(1) is first

        rotator.reconcile([2])
        seen.append(rotator.active_ids)
        await asyncio.sleep(0)
        first_cancelled = first.cancelled()

        rotator.reconcile([])
        seen.append(rotator.active_ids)
        await rotator.close()
        return seen, kept, first_cancelled

    seen, kept, first_cancelled = asyncio.run(scenario())

    assert seen == [set(), {1}, {1, 2}, {2}, set()]
    assert kept
    assert first_cancelled


def test_timers_write_codes_until_closed():
    repo = InMemoryOrdersRepo(orders=[make_order(1), make_order(2)])

    async def scenario():
        async with CodeRotator(repo, interval=0.01) as rotator:
            rotator.reconcile([1])
            await asyncio.sleep(0.05)
        writes = len(repo.code_writes)
        await asyncio.sleep(0.03)
        return writes, rotator.active_ids

    writes, active = asyncio.run(scenario())

    assert writes >= 1
    assert {order_id for order_id, _ in repo.code_writes} == {1}
    assert len(repo.code_writes) == writes
    assert active == set()


def test_failed_tick_keeps_timer_running():
    repo = InMemoryOrdersRepo(orders=[make_order(1)])
    repo.fail_writes = True

    async def scenario():
        rotator = CodeRotator(repo, interval=0.01)
        rotator.reconcile([1])
        await asyncio.sleep(0.03)
        repo.fail_writes = False
        await asyncio.sleep(0.05)
        alive = not rotator.timer_for(1).done()
        await rotator.close()
        return alive

    assert asyncio.run(scenario())
    assert repo.code_writes
