from portal.app.domain import Order, Tab, is_pending, partition_orders
from tests._fakes import make_order


def _orders(*rows):
    return [Order.model_validate(r) for r in rows]


def test_partition_buckets_pending_and_own_accepted():
    orders = _orders(
        make_order(1),
        make_order(2, driver_accepted=True, accepted_driver_id="d1"),
        make_order(3, driver_accepted=True, accepted_driver_id="d2"),
    )

    result = partition_orders(orders, "d1")

    assert [o.id for o in result.pending] == [1]
    assert [o.id for o in result.accepted] == [2]
    assert result.accepted_ids == [2]


def test_orders_claimed_by_others_are_hidden_from_both_tabs():
    orders = _orders(make_order(3, driver_accepted=True, accepted_driver_id="d2"))

    result = partition_orders(orders, "d1")

    assert result.pending == []
    assert result.accepted == []


def test_partition_of_empty_list_is_empty():
    result = partition_orders([], "d1")

    assert result.pending == [] and result.accepted == []


def test_inconsistent_rows_stay_pending_for_everyone():
    # flag cleared but a driver id left behind
    stale_id = Order.model_validate(make_order(42, driver_accepted=False, accepted_driver_id="d1"))
    # flag set without a driver id
    no_id = Order.model_validate(make_order(43, driver_accepted=True, accepted_driver_id=None))

    assert is_pending(stale_id)
    assert is_pending(no_id)
    for driver in ("d1", "d2"):
        result = partition_orders([stale_id, no_id], driver)
        assert [o.id for o in result.pending] == [42, 43]
        assert result.accepted == []


def test_partition_is_disjoint_and_keeps_store_order():
    orders = _orders(*(make_order(i) for i in (5, 3, 9)))
    orders.append(Order.model_validate(make_order(7, driver_accepted=True, accepted_driver_id="d1")))

    result = partition_orders(orders, "d1")

    assert [o.id for o in result.pending] == [5, 3, 9]
    assert not set(o.id for o in result.pending) & set(result.accepted_ids)


def test_descriptor_names_fall_back_when_missing():
    order = Order.model_validate(make_order(1, items=None, restaurants={"name": None}))

    assert order.item_name is None
    assert order.restaurant_name is None


def test_tab_values():
    assert Tab("pending") is Tab.PENDING
    assert Tab.ACCEPTED.value == "accepted"
