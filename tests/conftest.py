import pytest

from tests._fakes import DRIVERS, InMemoryOrdersRepo, make_order


@pytest.fixture
def repo() -> InMemoryOrdersRepo:
    return InMemoryOrdersRepo(
        drivers=DRIVERS,
        orders=[
            make_order(1),
            make_order(2, driver_accepted=True, accepted_driver_id="d1", code="4821"),
            make_order(3, driver_accepted=True, accepted_driver_id="d2"),
            make_order(4, called_driver=False),
        ],
    )
