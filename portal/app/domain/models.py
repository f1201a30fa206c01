"""Records read from the hosted store."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class Descriptor(BaseModel):
    """Name-only view of a joined ``items`` or ``restaurants`` row."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None


class Driver(BaseModel):
    """A driver who can accept delivery orders."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    contact_info: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None


class Order(BaseModel):
    """An inventory request that called for a driver."""

    model_config = ConfigDict(extra="ignore")

    id: int
    quantity: Union[int, float]
    unit: str = ""
    status: str = ""
    notes: Optional[str] = None
    called_driver: bool = True
    driver_accepted: bool = False
    accepted_driver_id: Optional[str] = None
    code: Optional[str] = None
    items: Optional[Descriptor] = None
    restaurants: Optional[Descriptor] = None
    created_at: Optional[datetime] = None

    @property
    def item_name(self) -> Optional[str]:
        return self.items.name if self.items else None

    @property
    def restaurant_name(self) -> Optional[str]:
        return self.restaurants.name if self.restaurants else None
