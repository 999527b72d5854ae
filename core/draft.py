"""
Invoice draft store.

Holds one in-progress invoice for an editing session. All mutations go
through ``dispatch`` with a typed action; readers (preview, panels, the
save button) read ``content`` and ``status`` or subscribe for changes.

Content is an immutable InvoiceContent value. Every action produces a new
value and swaps it in with a single assignment, so the item list and the
subtotal/tax/total computed from it can never be observed out of sync.

Draft lifecycle:
    EMPTY    no client, no items
    PARTIAL  client or items, not both
    VALID    client and at least one item
    SAVING   save in flight
    SAVED    last save succeeded (until the next edit)
    SAVE_FAILED  reported to subscribers, then the draft is VALID again
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, Protocol
from uuid import UUID

from core.config import BillingConfig, DEFAULT_CONFIG
from core.exceptions import BillingError, ValidationError
from core.models import (
    ClientSnapshot,
    Invoice,
    InvoiceContent,
    InvoiceCreate,
    InvoiceUpdate,
    LineItem,
    Product,
)
from core.totals import compute_totals
from utils.timezone import today_utc

logger = logging.getLogger(__name__)


class DraftStatus(str, Enum):
    """Where the draft is in its edit/save lifecycle."""

    EMPTY = "empty"
    PARTIAL = "partial"
    VALID = "valid"
    SAVING = "saving"
    SAVED = "saved"
    SAVE_FAILED = "save_failed"


# =============================================================================
# ACTIONS
# =============================================================================


@dataclass(frozen=True)
class SetClient:
    """Select (or clear) the billed client."""
    client: ClientSnapshot | None


@dataclass(frozen=True)
class SetItems:
    """Replace the item list. Triggers a totals recompute."""
    items: tuple[LineItem, ...]

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class SetDetails:
    """Number, date and status flags. None leaves a field unchanged."""
    number: str | None = None
    issue_date: date | None = None
    paid: bool | None = None
    hide_status: bool | None = None
    show_status_watermark: bool | None = None


@dataclass(frozen=True)
class SetNotes:
    text: str


@dataclass(frozen=True)
class SetTerms:
    text: str


DraftAction = SetClient | SetItems | SetDetails | SetNotes | SetTerms


class InvoiceGateway(Protocol):
    """Where drafts are saved: the in-process InvoiceService or the remote BillingAPIClient."""

    def create(self, data: InvoiceCreate) -> Invoice: ...

    def update(self, invoice_id: UUID, data: InvoiceUpdate) -> Invoice: ...


def apply_action(content: InvoiceContent, action: DraftAction, tax_rate: Decimal) -> InvoiceContent:
    """
    Pure reducer: the content that results from applying one action.

    Raises ValidationError when SetItems repeats a line id, TypeError for
    anything that is not a DraftAction.
    """
    if isinstance(action, SetClient):
        return content.model_copy(update={"client": action.client})

    if isinstance(action, SetItems):
        ids = [item.id for item in action.items]
        if len(set(ids)) != len(ids):
            raise ValidationError("Line item ids must be unique within an invoice", field="items")
        totals = compute_totals(action.items, tax_rate)
        return content.model_copy(update={
            "items": action.items,
            "subtotal": totals.subtotal,
            "tax": totals.tax,
            "total": totals.total,
        })

    if isinstance(action, SetDetails):
        updates = {
            "number": action.number.strip() if action.number is not None else None,
            "issue_date": action.issue_date,
            "paid": action.paid,
            "hide_status": action.hide_status,
            "show_status_watermark": action.show_status_watermark,
        }
        return content.model_copy(update={k: v for k, v in updates.items() if v is not None})

    if isinstance(action, SetNotes):
        return content.model_copy(update={"notes": (action.text or "").strip()})

    if isinstance(action, SetTerms):
        return content.model_copy(update={"terms": (action.text or "").strip()})

    raise TypeError(f"Unknown draft action: {type(action).__name__}")


class InvoiceDraft:
    """
    Single-writer store for one invoice being edited.

    Create mode starts from an advisory placeholder number derived from the
    number of invoices the session knows about. It is never reserved; the
    gateway decides uniqueness when the draft is saved.

    Edit mode (``from_invoice``) carries the persisted id, and every save
    becomes an update of that id.
    """

    def __init__(
        self,
        tax_rate: Decimal | int | str = 0,
        known_count: int = 0,
        config: BillingConfig = DEFAULT_CONFIG,
        issue_date: date | None = None,
    ):
        self.tax_rate = Decimal(str(tax_rate))
        self.config = config
        self._known_count = known_count
        self._invoice_id: UUID | None = None
        self._content = self._fresh_content(issue_date)
        self._phase: DraftStatus | None = None
        self._subscribers: list[Callable[["InvoiceDraft"], None]] = []
        self.last_error: BillingError | None = None

    @classmethod
    def from_invoice(
        cls,
        invoice: Invoice,
        tax_rate: Decimal | int | str = 0,
        config: BillingConfig = DEFAULT_CONFIG,
    ) -> "InvoiceDraft":
        """Seed a draft from a persisted invoice for editing."""
        draft = cls(tax_rate=tax_rate, config=config)
        draft._invoice_id = invoice.id
        draft._content = _content_of(invoice)
        return draft

    def _fresh_content(self, issue_date: date | None = None) -> InvoiceContent:
        return InvoiceContent(
            number=self.config.placeholder_number(self._known_count),
            issue_date=issue_date or today_utc(),
        )

    # -------------------------------------------------------------------------
    # Readers
    # -------------------------------------------------------------------------

    @property
    def content(self) -> InvoiceContent:
        return self._content

    def snapshot(self) -> InvoiceContent:
        """Current content. Immutable, so callers can hold on to it across edits."""
        return self._content

    @property
    def invoice_id(self) -> UUID | None:
        return self._invoice_id

    @property
    def is_edit(self) -> bool:
        return self._invoice_id is not None

    @property
    def status(self) -> DraftStatus:
        if self._phase is not None:
            return self._phase
        has_client = self._content.client is not None
        has_items = len(self._content.items) > 0
        if has_client and has_items:
            return DraftStatus.VALID
        if has_client or has_items:
            return DraftStatus.PARTIAL
        return DraftStatus.EMPTY

    def subscribe(self, callback: Callable[["InvoiceDraft"], None]) -> None:
        """Call ``callback(draft)`` after every content or status change."""
        self._subscribers.append(callback)

    def _notify(self) -> None:
        for callback in self._subscribers:
            try:
                callback(self)
            except Exception:
                logger.exception("Draft subscriber %s failed", getattr(callback, "__name__", callback))

    # -------------------------------------------------------------------------
    # Writers
    # -------------------------------------------------------------------------

    def dispatch(self, action: DraftAction) -> InvoiceContent:
        """Apply an action, recompute totals if items changed, notify subscribers."""
        if self._phase == DraftStatus.SAVING:
            raise RuntimeError("Draft cannot be edited while a save is in flight")

        self._content = apply_action(self._content, action, self.tax_rate)
        self._phase = None
        self._notify()
        return self._content

    def set_client(self, client: ClientSnapshot | None) -> InvoiceContent:
        return self.dispatch(SetClient(client))

    def set_items(self, items) -> InvoiceContent:
        return self.dispatch(SetItems(tuple(items)))

    def set_details(self, **details) -> InvoiceContent:
        return self.dispatch(SetDetails(**details))

    def set_notes(self, text: str) -> InvoiceContent:
        return self.dispatch(SetNotes(text))

    def set_terms(self, text: str) -> InvoiceContent:
        return self.dispatch(SetTerms(text))

    def add_product(self, product: Product, quantity: int = 1) -> InvoiceContent:
        """Append a catalog product as a new line."""
        return self.set_items(self._content.items + (LineItem.from_product(product, quantity),))

    def change_quantity(self, item_id: str, quantity: int) -> InvoiceContent:
        """Change one line's quantity; its amount is recomputed."""
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1", field="quantity")
        items = tuple(
            item.with_quantity(quantity) if item.id == item_id else item
            for item in self._content.items
        )
        return self.set_items(items)

    def remove_item(self, item_id: str) -> InvoiceContent:
        return self.set_items(item for item in self._content.items if item.id != item_id)

    # -------------------------------------------------------------------------
    # Saving
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """
        Raise ValidationError naming the first field that blocks a save.

        Checks client, items, number and date in that order.
        """
        content = self._content
        if content.client is None:
            raise ValidationError("Client is required", field="client")
        if not content.items:
            raise ValidationError("At least one item is required", field="items")
        if not content.number:
            raise ValidationError("Invoice number is required", field="number")
        if content.issue_date is None:
            raise ValidationError("Invoice date is required", field="issue_date")

    def to_create_payload(self) -> InvoiceCreate:
        content = self._content
        return InvoiceCreate(
            number=content.number,
            issue_date=content.issue_date,
            paid=content.paid,
            hide_status=content.hide_status,
            show_status_watermark=content.show_status_watermark,
            client=content.client,
            items=list(content.items),
            subtotal=content.subtotal,
            tax=content.tax,
            total=content.total,
            notes=content.notes,
            terms=content.terms,
        )

    def to_update_payload(self) -> InvoiceUpdate:
        return InvoiceUpdate(**self.to_create_payload().model_dump())

    def save(self, gateway: InvoiceGateway) -> Invoice:
        """
        Persist the draft through the gateway.

        Only a VALID draft is sent; anything else raises ValidationError
        without a gateway call. On success the canonical invoice is returned:
        create mode then resets to a fresh draft with the next placeholder
        number, edit mode adopts the canonical copy. On failure the error is
        re-raised, kept in ``last_error``, and the draft content is untouched.
        """
        if self.status == DraftStatus.SAVING:
            raise RuntimeError("A save is already in flight")
        self.validate()

        self.last_error = None
        self._phase = DraftStatus.SAVING
        self._notify()

        try:
            if self.is_edit:
                saved = gateway.update(self._invoice_id, self.to_update_payload())
            else:
                saved = gateway.create(self.to_create_payload())
        except BillingError as e:
            logger.warning(f"Invoice {self._content.number} save failed: {e}")
            self.last_error = e
            self._phase = DraftStatus.SAVE_FAILED
            self._notify()
            self._phase = None
            self._notify()
            raise
        except Exception:
            self._phase = None
            self._notify()
            raise

        if self.is_edit:
            self._content = _content_of(saved)
        else:
            self._known_count += 1
            self._content = self._fresh_content()

        self._phase = DraftStatus.SAVED
        self._notify()
        logger.info(f"Invoice {saved.number} saved ({saved.id})")
        return saved


def _content_of(invoice: Invoice) -> InvoiceContent:
    """The renderable part of a stored invoice."""
    return InvoiceContent.model_validate(
        invoice.model_dump(include=set(InvoiceContent.model_fields))
    )
