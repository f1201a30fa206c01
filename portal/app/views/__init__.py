"""View models for driver-facing pages."""

from .driver_orders import DriverOrderView

__all__ = ["DriverOrderView"]
