import asyncio
import json

import httpx
import pytest

from portal.app.errors import NotFoundError, StoreError
from portal.app.repos_store import StoreOrdersRepo
from portal.app.store import StoreClient
from tests._fakes import make_order


class Recorder:
    """Mock store answering with queued bodies and keeping every request."""

    def __init__(self, *bodies):
        self.bodies = list(bodies)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(200, json=self.bodies.pop(0))


def _run(recorder, fn):
    async def scenario():
        client = StoreClient(
            "https://store.test", "anon", transport=httpx.MockTransport(recorder)
        )
        try:
            return await fn(StoreOrdersRepo(client))
        finally:
            await client.aclose()

    return asyncio.run(scenario())


def test_get_driver_by_id():
    recorder = Recorder([{"id": "d1", "name": "Ada", "contact_info": None, "status": "active"}])

    driver = _run(recorder, lambda repo: repo.get_driver("d1"))

    assert driver.name == "Ada"
    request = recorder.requests[0]
    assert request.url.path == "/rest/v1/drivers"
    assert request.url.params["id"] == "eq.d1"


def test_unknown_driver_raises_not_found():
    with pytest.raises(NotFoundError) as exc:
        _run(Recorder([]), lambda repo: repo.get_driver("ghost"))
    assert exc.value.key == "ghost"


def test_called_orders_query_joins_names():
    recorder = Recorder(
        [
            make_order(1),
            make_order(2, items=None, restaurants=None, notes="back door"),
        ]
    )

    orders = _run(recorder, lambda repo: repo.list_called_orders())

    assert [o.id for o in orders] == [1, 2]
    assert orders[0].item_name == "Flour"
    assert orders[1].item_name is None and orders[1].notes == "back door"
    params = recorder.requests[0].url.params
    assert params["select"] == "*,items(name),restaurants(name)"
    assert params["called_driver"] == "eq.true"
    assert params["order"] == "created_at.asc"


def test_malformed_order_row_is_a_store_error():
    with pytest.raises(StoreError):
        _run(Recorder([{"id": "not-a-number"}]), lambda repo: repo.list_called_orders())


def test_set_order_acceptance_sends_both_columns():
    recorder = Recorder([make_order(7, driver_accepted=True, accepted_driver_id="d1")])

    _run(recorder, lambda repo: repo.set_order_acceptance(7, True, "d1"))

    request = recorder.requests[0]
    assert request.method == "PATCH"
    assert request.url.params["id"] == "eq.7"
    assert json.loads(request.content) == {"driver_accepted": True, "accepted_driver_id": "d1"}


def test_reject_clears_driver():
    recorder = Recorder([make_order(7)])

    _run(recorder, lambda repo: repo.set_order_acceptance(7, False, None))

    assert json.loads(recorder.requests[0].content) == {
        "driver_accepted": False,
        "accepted_driver_id": None,
    }


def test_set_order_code_body():
    recorder = Recorder([make_order(7, code="5555")])

    _run(recorder, lambda repo: repo.set_order_code(7, "5555"))

    assert json.loads(recorder.requests[0].content) == {"code": "5555"}


def test_update_of_missing_order_fails():
    with pytest.raises(StoreError) as exc:
        _run(Recorder([]), lambda repo: repo.set_order_code(99, "1234"))
    assert exc.value.status == 404
