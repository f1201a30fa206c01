"""HTML rendering for the driver order page."""

from __future__ import annotations

from pathlib import Path
from typing import Union
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .views.driver_orders import DriverOrderView

ROOT_DIR = Path(__file__).resolve().parents[2]
TEMPLATE_DIR = ROOT_DIR / "templates"

NOT_AVAILABLE = "N/A"
NO_NOTES = "No notes available."

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape()
)


def _quantity(value: Union[int, float]) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


_env.filters["quantity"] = _quantity
_env.filters["path"] = lambda value: quote(str(value), safe="")
_env.globals.update(NOT_AVAILABLE=NOT_AVAILABLE, NO_NOTES=NO_NOTES)


def render_view_body(view: DriverOrderView) -> str:
    """Render the swappable part of the page: header, tabs and order lists."""

    template = _env.get_template("_driver_view.html")
    return template.render(view=view, tab=view.active_tab.value)


def render_page(view: DriverOrderView) -> str:
    """Render the full driver page around :func:`render_view_body`."""

    template = _env.get_template("driver_orders.html")
    return template.render(
        view=view,
        body=render_view_body(view),
        tab=view.active_tab.value,
        stream_url=f"/api/drivers/{quote(view.driver_id, safe='')}/orders/stream",
    )
