"""Core domain models."""

from core.models.company import CompanyProfile, Currency, Language
from core.models.client import Client, ClientRef, ClientSnapshot
from core.models.product import Product
from core.models.line_item import LineItem, line_amount, round2
from core.models.invoice import (
    Invoice,
    InvoiceContent,
    InvoiceCreate,
    InvoiceUpdate,
    InvoiceStatusUpdate,
    InvoiceTotals,
    InvoiceListPage,
)

__all__ = [
    # Company
    "CompanyProfile", "Currency", "Language",
    # Client
    "Client", "ClientRef", "ClientSnapshot",
    # Product
    "Product",
    # LineItem
    "LineItem", "line_amount", "round2",
    # Invoice
    "Invoice", "InvoiceContent", "InvoiceCreate", "InvoiceUpdate",
    "InvoiceStatusUpdate", "InvoiceTotals", "InvoiceListPage",
]
