"""
Invoice persistence.

Invoices are historical documents: the billed client is stored as a
by-value snapshot (JSONB) and the lines as an item list (JSONB), so later
edits to clients or products never change a saved invoice.

Invoice numbers are unique per owner. The service checks before writing
and the (owner_id, number) unique index backs the check when two saves
race; both paths raise DuplicateNumberError.

Line amounts and totals are recomputed here from the submitted items and
the owner's tax rate. Whatever totals the caller sent are advisory.
"""

import logging
import math
from uuid import UUID, uuid4

from psycopg2 import errors as pg_errors
from psycopg2.extras import Json

from clients.postgres_client import PostgresClient, contains_pattern
from core.config import BillingConfig, DEFAULT_CONFIG
from core.exceptions import (
    ClientOwnershipError,
    DuplicateNumberError,
    NotFoundError,
    ValidationError,
)
from core.models import (
    ClientSnapshot,
    Invoice,
    InvoiceCreate,
    InvoiceListPage,
    InvoiceTotals,
    InvoiceUpdate,
    LineItem,
)
from core.services.client_service import ClientService
from core.services.company_service import CompanyService
from core.totals import compute_totals
from utils.owner_context import get_current_owner_id
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

# Columns an update may touch
_UPDATABLE_COLUMNS = {
    "number", "issue_date", "paid", "hide_status", "show_status_watermark",
    "client", "items", "subtotal", "tax", "total", "notes", "terms",
}


def _items_json(items: list[LineItem]) -> Json:
    return Json([item.model_dump(mode="json") for item in items])


def _client_json(client: ClientSnapshot) -> Json:
    return Json(client.model_dump(mode="json"))


class InvoiceService:
    """Service for invoice operations."""

    def __init__(
        self,
        postgres: PostgresClient,
        clients: ClientService,
        company: CompanyService,
        config: BillingConfig = DEFAULT_CONFIG,
    ):
        self.postgres = postgres
        self.clients = clients
        self.company = company
        self.config = config

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _ensure_number_free(self, owner_id: UUID, number: str, exclude_id: UUID | None = None) -> None:
        """Raise DuplicateNumberError if another invoice of this owner uses ``number``."""
        query = "SELECT id FROM invoices WHERE owner_id = %s AND number = %s"
        params: tuple = (owner_id, number)
        if exclude_id is not None:
            query += " AND id <> %s"
            params += (exclude_id,)

        if self.postgres.execute_single(query, params) is not None:
            raise DuplicateNumberError(number)

    def _snapshot_client(self, client_id: UUID) -> ClientSnapshot:
        """Snapshot of the live client record; the submitted snapshot fields are ignored."""
        client = self.clients.get_by_id(client_id)
        if client is None:
            raise ClientOwnershipError(client_id)
        return client.snapshot()

    def _priced_items(self, items: list[LineItem]) -> tuple[list[LineItem], InvoiceTotals]:
        """Items with amounts re-derived, and totals at the owner's tax rate."""
        if not items:
            raise ValidationError("At least one item is required", field="items")

        priced = [item.recomputed() for item in items]
        if any(new is not old for new, old in zip(priced, items)):
            logger.warning("Submitted line amounts did not match price/quantity/discount; recomputed")

        totals = compute_totals(priced, self.company.get_profile().tax_rate)
        return priced, totals

    @staticmethod
    def _warn_on_stale_totals(data: InvoiceCreate | InvoiceUpdate, totals: InvoiceTotals) -> None:
        submitted = (data.subtotal, data.tax, data.total)
        computed = (totals.subtotal, totals.tax, totals.total)
        if any(s is not None and s != c for s, c in zip(submitted, computed)):
            logger.warning(f"Submitted totals {submitted} replaced by recomputed {computed}")

    # -------------------------------------------------------------------------
    # Gateway operations
    # -------------------------------------------------------------------------

    def create(self, data: InvoiceCreate) -> Invoice:
        """
        Create an invoice for the current owner.

        Args:
            data: Invoice content; client is referenced by id

        Returns:
            Canonical stored invoice with generated id and re-bound client snapshot

        Raises:
            ValidationError: Client or items missing
            DuplicateNumberError: Owner already has an invoice with this number
            ClientOwnershipError: Client does not exist for this owner
        """
        owner_id = get_current_owner_id()

        if data.client is None:
            raise ValidationError("Client is required", field="client")
        if not data.items:
            raise ValidationError("At least one item is required", field="items")

        self._ensure_number_free(owner_id, data.number)
        client = self._snapshot_client(data.client.id)
        items, totals = self._priced_items(data.items)
        self._warn_on_stale_totals(data, totals)

        invoice_id = uuid4()
        now = now_utc()

        try:
            row = self.postgres.execute_returning(
                """
                INSERT INTO invoices (
                    id, owner_id, number, issue_date,
                    paid, hide_status, show_status_watermark,
                    client, items,
                    subtotal, tax, total,
                    notes, terms, created_at, updated_at
                ) VALUES (
                    %s, %s, %s, %s,
                    %s, %s, %s,
                    %s, %s,
                    %s, %s, %s,
                    %s, %s, %s, %s
                )
                RETURNING *
                """,
                (
                    invoice_id, owner_id, data.number, data.issue_date,
                    data.paid, data.hide_status, data.show_status_watermark,
                    _client_json(client), _items_json(items),
                    totals.subtotal, totals.tax, totals.total,
                    data.notes, data.terms, now, now
                )
            )[0]
        except pg_errors.UniqueViolation as e:
            raise DuplicateNumberError(data.number) from e

        invoice = Invoice.model_validate(row)
        logger.info(f"Created invoice {invoice.number} ({invoice.id}) for client {client.id}")
        return invoice

    def get_by_id(self, invoice_id: UUID) -> Invoice | None:
        """
        Get invoice by ID.

        Args:
            invoice_id: Invoice UUID

        Returns:
            Invoice if it exists for the current owner, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM invoices WHERE id = %s AND owner_id = %s",
            (invoice_id, get_current_owner_id())
        )

        if row is None:
            return None

        return Invoice.model_validate(row)

    def update(self, invoice_id: UUID, data: InvoiceUpdate) -> Invoice:
        """
        Update an invoice.

        Only fields present in ``data`` change. A supplied client is
        re-snapshotted from the live record; supplied items are re-priced
        and the totals recomputed.

        Args:
            invoice_id: Invoice UUID
            data: Fields to change

        Returns:
            Canonical updated invoice

        Raises:
            NotFoundError: Invoice does not exist for this owner
            DuplicateNumberError: Another invoice of this owner has the new number
            ClientOwnershipError: New client does not exist for this owner
            ValidationError: Items supplied but empty
        """
        owner_id = get_current_owner_id()

        current = self.get_by_id(invoice_id)
        if current is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")

        updates = {
            field: getattr(data, field)
            for field in data.model_fields_set
            if getattr(data, field) is not None
        }

        for field in list(updates):
            if field not in _UPDATABLE_COLUMNS:
                logger.warning(f"Attempted to update unknown field '{field}' on invoice {invoice_id}")
                del updates[field]

        if "number" in updates:
            self._ensure_number_free(owner_id, updates["number"], exclude_id=invoice_id)

        if "client" in updates:
            updates["client"] = self._snapshot_client(updates["client"].id)

        if "items" in updates:
            items, totals = self._priced_items(updates["items"])
            self._warn_on_stale_totals(data, totals)
            updates.update(items=items, subtotal=totals.subtotal, tax=totals.tax, total=totals.total)
        else:
            # Totals follow the stored items, never the caller
            for field in ("subtotal", "tax", "total"):
                if updates.pop(field, None) is not None:
                    logger.warning(f"Ignoring submitted {field} on invoice {invoice_id} without items")

        if not updates:
            return current

        set_parts = []
        params = []
        for field, value in updates.items():
            set_parts.append(f"{field} = %s")
            if field == "items":
                params.append(_items_json(value))
            elif field == "client":
                params.append(_client_json(value))
            else:
                params.append(value)
        set_parts.append("updated_at = %s")
        params.extend([now_utc(), invoice_id, owner_id])

        try:
            rows = self.postgres.execute_returning(
                f"UPDATE invoices SET {', '.join(set_parts)} WHERE id = %s AND owner_id = %s RETURNING *",
                tuple(params)
            )
        except pg_errors.UniqueViolation as e:
            raise DuplicateNumberError(updates.get("number", current.number)) from e

        if not rows:
            raise NotFoundError(f"Invoice {invoice_id} not found")

        invoice = Invoice.model_validate(rows[0])
        logger.info(f"Updated invoice {invoice.number} ({invoice.id}): {', '.join(sorted(updates))}")
        return invoice

    def set_paid_status(self, invoice_id: UUID, paid: bool) -> Invoice:
        """
        Flip the paid flag. Nothing else on the invoice changes.

        Raises:
            NotFoundError: Invoice does not exist for this owner
        """
        rows = self.postgres.execute_returning(
            """
            UPDATE invoices SET paid = %s, updated_at = %s
            WHERE id = %s AND owner_id = %s
            RETURNING *
            """,
            (paid, now_utc(), invoice_id, get_current_owner_id())
        )

        if not rows:
            raise NotFoundError(f"Invoice {invoice_id} not found")

        invoice = Invoice.model_validate(rows[0])
        logger.info(f"Invoice {invoice.number} marked {'paid' if paid else 'unpaid'}")
        return invoice

    def delete(self, invoice_id: UUID) -> bool:
        """Delete an invoice. Returns False if it did not exist for this owner."""
        rows = self.postgres.execute_returning(
            "DELETE FROM invoices WHERE id = %s AND owner_id = %s RETURNING id",
            (invoice_id, get_current_owner_id())
        )

        if rows:
            logger.info(f"Deleted invoice {invoice_id}")
        return bool(rows)

    def count(self) -> int:
        """Number of invoices the current owner has. Seeds the next draft's placeholder number."""
        result = self.postgres.execute_scalar(
            "SELECT COUNT(*) FROM invoices WHERE owner_id = %s",
            (get_current_owner_id(),)
        )
        return int(result or 0)

    def list(
        self,
        paid: bool | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> InvoiceListPage:
        """
        One page of invoices, newest first.

        Args:
            paid: Only paid (True) or unpaid (False) invoices; None for all
            search: Case-insensitive match on invoice number or client name
            page: 1-based page number
            limit: Page size, clamped to the configured maximum

        Returns:
            InvoiceListPage with the page's invoices and pagination counts
        """
        owner_id = get_current_owner_id()
        page = max(page, 1)
        limit = min(max(limit or self.config.list_default_limit, 1), self.config.list_max_limit)

        where = ["owner_id = %s"]
        params: list = [owner_id]
        if paid is not None:
            where.append("paid = %s")
            params.append(paid)
        if search:
            pattern = contains_pattern(search.strip())
            where.append("(number ILIKE %s OR client->>'name' ILIKE %s)")
            params.extend([pattern, pattern])
        where_sql = " AND ".join(where)

        total = int(self.postgres.execute_scalar(
            f"SELECT COUNT(*) FROM invoices WHERE {where_sql}",
            tuple(params)
        ) or 0)

        rows = self.postgres.execute(
            f"""
            SELECT * FROM invoices
            WHERE {where_sql}
            ORDER BY created_at DESC
            LIMIT %s OFFSET %s
            """,
            tuple(params) + (limit, (page - 1) * limit)
        )

        return InvoiceListPage(
            invoices=[Invoice.model_validate(row) for row in rows],
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if total else 0,
        )
