"""Invoice domain models.

Money is Decimal. Line amounts are rounded to cents; subtotal, tax and
total are exact sums of those amounts and are never rounded again, so
NUMERIC columns are stored without a fixed scale.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from core.models.client import ClientRef, ClientSnapshot
from core.models.line_item import LineItem
from utils.timezone import parse_invoice_date


def _coerce_date(value):
    if value is None or isinstance(value, date):
        return value
    if isinstance(value, str):
        return parse_invoice_date(value)
    return value


def _strip(value):
    if isinstance(value, str):
        return value.strip()
    return value


def _unique_item_ids(items):
    if items is None:
        return items
    seen = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"Duplicate line item id '{item.id}'")
        seen.add(item.id)
    return items


class InvoiceTotals(BaseModel):
    """Subtotal, tax and total computed from a set of line items."""

    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    model_config = {"frozen": True}


class InvoiceContent(BaseModel):
    """
    Everything a rendered invoice shows.

    Shared by in-progress drafts (client, date and items may be missing)
    and persisted invoices. The document renderer only depends on this shape.
    """

    number: str = ""
    issue_date: date | None = None
    paid: bool = False
    hide_status: bool = False
    show_status_watermark: bool = False
    client: ClientSnapshot | None = None
    items: tuple[LineItem, ...] = ()
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    notes: str = ""
    terms: str = ""

    model_config = {"frozen": True, "from_attributes": True}

    @field_validator("issue_date", mode="before")
    @classmethod
    def parse_issue_date(cls, value):
        return _coerce_date(value)

    @field_validator("notes", "terms", mode="before")
    @classmethod
    def empty_text(cls, value):
        return _strip(value) or ""

    @property
    def totals(self) -> InvoiceTotals:
        return InvoiceTotals(subtotal=self.subtotal, tax=self.tax, total=self.total)


class Invoice(InvoiceContent):
    """Full invoice entity as stored."""

    id: UUID
    owner_id: UUID
    number: str
    issue_date: date
    client: ClientSnapshot
    created_at: datetime
    updated_at: datetime


class InvoiceCreate(BaseModel):
    """
    Data submitted to create an invoice.

    Client and items are allowed to be missing here so the gateway can
    reject them with a field-level error instead of a schema error.
    Submitted totals are advisory; the server recomputes them.
    """

    number: str = Field(..., min_length=1, max_length=50)
    issue_date: date
    paid: bool = False
    hide_status: bool = False
    show_status_watermark: bool = False
    client: ClientSnapshot | None = None
    items: list[LineItem] = Field(default_factory=list)
    subtotal: Decimal | None = Field(None, ge=0)
    tax: Decimal | None = Field(None, ge=0)
    total: Decimal | None = Field(None, ge=0)
    notes: str = Field("", max_length=5000)
    terms: str = Field("", max_length=5000)

    @field_validator("issue_date", mode="before")
    @classmethod
    def parse_issue_date(cls, value):
        return _coerce_date(value)

    @field_validator("items")
    @classmethod
    def unique_item_ids(cls, value):
        return _unique_item_ids(value)

    @field_validator("number", mode="before")
    @classmethod
    def strip_number(cls, value):
        return _strip(value)

    @field_validator("notes", "terms", mode="before")
    @classmethod
    def empty_text(cls, value):
        return _strip(value) or ""


class InvoiceUpdate(BaseModel):
    """
    Data that can be updated on an invoice. All fields optional.

    A client only needs its id; the stored snapshot is always re-read
    from the live record.
    """

    number: str | None = Field(None, min_length=1, max_length=50)
    issue_date: date | None = None
    paid: bool | None = None
    hide_status: bool | None = None
    show_status_watermark: bool | None = None
    client: ClientRef | None = None
    items: list[LineItem] | None = None
    subtotal: Decimal | None = Field(None, ge=0)
    tax: Decimal | None = Field(None, ge=0)
    total: Decimal | None = Field(None, ge=0)
    notes: str | None = Field(None, max_length=5000)
    terms: str | None = Field(None, max_length=5000)

    @field_validator("issue_date", mode="before")
    @classmethod
    def parse_issue_date(cls, value):
        return _coerce_date(value)

    @field_validator("items")
    @classmethod
    def unique_item_ids(cls, value):
        return _unique_item_ids(value)

    @field_validator("number", "notes", "terms", mode="before")
    @classmethod
    def strip_text(cls, value):
        return _strip(value)


class InvoiceStatusUpdate(BaseModel):
    """Quick paid/unpaid toggle."""

    paid: bool


class InvoiceListPage(BaseModel):
    """One page of an invoice listing."""

    invoices: list[Invoice]
    page: int
    limit: int
    total: int
    pages: int
