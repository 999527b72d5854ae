"""Invoice document rendering."""

from core.rendering.labels import Direction, LABELS, currency_symbol, default_direction, label
from core.rendering.renderer import RenderMode, format_date, format_money, render_invoice

__all__ = [
    "Direction",
    "LABELS",
    "RenderMode",
    "currency_symbol",
    "default_direction",
    "format_date",
    "format_money",
    "label",
    "render_invoice",
]
