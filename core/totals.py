"""
Invoice totals.

Two-tier rounding: each line amount is rounded to cents when the line is
built (see LineItem), the aggregate is an exact Decimal sum. Summing raw
line values and rounding once gives different cents on some inputs, so
amounts are never re-derived here.
"""

from decimal import Decimal
from typing import Iterable

from core.models import InvoiceTotals, LineItem
from core.models.line_item import HUNDRED, to_decimal


def compute_totals(items: Iterable[LineItem], tax_rate_percent: Decimal | int | float | str) -> InvoiceTotals:
    """
    Subtotal, tax and total for a list of line items.

    Args:
        items: Line items with pre-computed amounts
        tax_rate_percent: Flat tax rate, 0-100

    Returns:
        InvoiceTotals with subtotal = sum(amount), tax = subtotal * rate / 100,
        total = subtotal + tax. No aggregate rounding.
    """
    rate = to_decimal(tax_rate_percent or 0)
    subtotal = sum((item.amount for item in items), Decimal("0"))
    tax = subtotal * rate / HUNDRED
    return InvoiceTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)
