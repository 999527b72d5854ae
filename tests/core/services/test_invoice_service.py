"""Tests for InvoiceService.

PostgresClient is replaced with a Mock whose side effects echo written
values back as rows, the way RETURNING * would. Client and company
lookups are mocked at the service boundary.
"""

import re
from datetime import date
from decimal import Decimal
from unittest.mock import Mock
from uuid import uuid4

import pytest
from psycopg2 import errors as pg_errors
from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.exceptions import (
    ClientOwnershipError,
    DuplicateNumberError,
    NotFoundError,
    ValidationError,
)
from core.models import Invoice, InvoiceCreate, InvoiceUpdate, LineItem
from core.services.client_service import ClientService
from core.services.company_service import CompanyService

_INSERT_COLUMNS = [
    "id", "owner_id", "number", "issue_date",
    "paid", "hide_status", "show_status_watermark",
    "client", "items",
    "subtotal", "tax", "total",
    "notes", "terms", "created_at", "updated_at",
]


def _unwrap(value):
    return value.adapted if isinstance(value, Json) else value


def _inserted_row(params) -> dict:
    return {column: _unwrap(value) for column, value in zip(_INSERT_COLUMNS, params)}


def _updated_row(query, params, current: dict) -> dict:
    set_sql = query.split(" SET ", 1)[1].split(" WHERE ", 1)[0]
    columns = re.findall(r"(\w+) = %s", set_sql)
    row = dict(current)
    row.update({column: _unwrap(value) for column, value in zip(columns, params)})
    return row


@pytest.fixture
def postgres():
    db = Mock(spec=PostgresClient)
    db.execute_single.return_value = None
    return db


@pytest.fixture
def client_service(live_client):
    service = Mock(spec=ClientService)
    service.get_by_id.return_value = live_client
    return service


@pytest.fixture
def company_service(company):
    service = Mock(spec=CompanyService)
    service.get_profile.return_value = company
    return service


@pytest.fixture
def invoice_service(postgres, client_service, company_service):
    from core.services.invoice_service import InvoiceService

    return InvoiceService(postgres, client_service, company_service)


@pytest.fixture
def create_data(client_snapshot, line_item):
    return InvoiceCreate(
        number="INV-0001",
        issue_date=date(2024, 3, 1),
        client=client_snapshot,
        items=[line_item],
    )


@pytest.fixture
def echo_insert(postgres):
    """Make INSERT ... RETURNING * return the inserted values."""
    postgres.execute_returning.side_effect = lambda query, params: [_inserted_row(params)]
    return postgres


class TestCreate:
    """Tests for InvoiceService.create()."""

    def test_discounted_line_with_8pct_tax(self, as_test_owner, invoice_service, echo_insert, create_data):
        invoice = invoice_service.create(create_data)

        assert isinstance(invoice, Invoice)
        assert invoice.owner_id == as_test_owner
        assert invoice.subtotal == Decimal("180.00")
        assert invoice.tax == Decimal("14.40")
        assert invoice.total == Decimal("194.40")

    def test_totals_are_recomputed_from_tax_rate(self, as_test_owner, invoice_service, echo_insert, create_data):
        """Client-sent totals are replaced."""
        tampered = create_data.model_copy(update={"subtotal": Decimal("1"), "tax": Decimal("0"), "total": Decimal("1")})

        invoice = invoice_service.create(tampered)

        assert invoice.total == Decimal("194.40")

    def test_wrong_line_amount_is_recomputed(self, as_test_owner, invoice_service, echo_insert, create_data):
        bad = LineItem(id="x", name="Tyre", price=Decimal("80"), quantity=2, amount=Decimal("1"))

        invoice = invoice_service.create(create_data.model_copy(update={"items": [bad]}))

        assert invoice.items[0].amount == Decimal("160.00")
        assert invoice.subtotal == Decimal("160.00")

    def test_client_snapshot_comes_from_live_record(
        self, as_test_owner, invoice_service, echo_insert, create_data, client_snapshot, client_service
    ):
        forged = client_snapshot.model_copy(update={"name": "Somebody Else", "email": "x@example.com"})

        invoice = invoice_service.create(create_data.model_copy(update={"client": forged}))

        assert invoice.client.name == "Mario Bianchi"
        assert invoice.client.email == "mario@example.com"
        client_service.get_by_id.assert_called_once_with(client_snapshot.id)

    def test_writes_json_columns(self, as_test_owner, invoice_service, echo_insert, create_data):
        invoice_service.create(create_data)

        params = echo_insert.execute_returning.call_args.args[1]
        client_param, items_param = params[7], params[8]
        assert isinstance(client_param, Json)
        assert client_param.adapted["name"] == "Mario Bianchi"
        assert isinstance(items_param, Json)
        assert items_param.adapted[0]["amount"] == "180.00"

    def test_missing_client(self, as_test_owner, invoice_service, postgres, create_data):
        with pytest.raises(ValidationError) as exc_info:
            invoice_service.create(create_data.model_copy(update={"client": None}))

        assert exc_info.value.field == "client"
        postgres.execute_returning.assert_not_called()

    def test_empty_items_rejected(self, as_test_owner, invoice_service, postgres, create_data):
        with pytest.raises(ValidationError) as exc_info:
            invoice_service.create(create_data.model_copy(update={"items": []}))

        assert exc_info.value.field == "items"
        postgres.execute_single.assert_not_called()
        postgres.execute_returning.assert_not_called()

    def test_duplicate_number_rejected(self, as_test_owner, invoice_service, postgres, create_data):
        postgres.execute_single.return_value = {"id": uuid4()}

        with pytest.raises(DuplicateNumberError) as exc_info:
            invoice_service.create(create_data)

        assert exc_info.value.number == "INV-0001"
        postgres.execute_returning.assert_not_called()

    def test_duplicate_check_is_owner_scoped(self, as_test_owner, invoice_service, echo_insert, create_data):
        invoice_service.create(create_data)

        query, params = echo_insert.execute_single.call_args.args
        assert "owner_id = %s AND number = %s" in query
        assert params == (as_test_owner, "INV-0001")

    def test_unique_violation_race_is_a_duplicate(self, as_test_owner, invoice_service, postgres, create_data):
        postgres.execute_returning.side_effect = pg_errors.UniqueViolation("duplicate key")

        with pytest.raises(DuplicateNumberError):
            invoice_service.create(create_data)

    def test_foreign_client_is_rejected(self, as_test_owner, invoice_service, postgres, client_service, create_data):
        client_service.get_by_id.return_value = None

        with pytest.raises(ClientOwnershipError) as exc_info:
            invoice_service.create(create_data)

        assert exc_info.value.client_id == create_data.client.id
        postgres.execute_returning.assert_not_called()

    def test_requires_owner_context(self, invoice_service, create_data):
        with pytest.raises(RuntimeError, match="No owner context"):
            invoice_service.create(create_data)


class TestUpdate:
    """Tests for InvoiceService.update()."""

    @pytest.fixture
    def stored_row(self, invoice_row):
        return invoice_row(number="INV-0001")

    @pytest.fixture
    def echo_update(self, postgres, stored_row):
        """get_by_id finds stored_row, the duplicate check finds nothing, UPDATE echoes."""
        postgres.execute_single.side_effect = (
            lambda query, params: stored_row if query.startswith("SELECT * FROM invoices") else None
        )
        postgres.execute_returning.side_effect = (
            lambda query, params: [_updated_row(query, params, stored_row)]
        )
        return postgres

    def test_partial_update_changes_only_given_fields(self, as_test_owner, invoice_service, echo_update, stored_row):
        invoice = invoice_service.update(stored_row["id"], InvoiceUpdate(notes="Thanks"))

        assert invoice.notes == "Thanks"
        assert invoice.number == "INV-0001"
        query = echo_update.execute_returning.call_args.args[0]
        assert "notes = %s" in query
        assert "items" not in query

    def test_client_is_resnapshotted_from_live_record(
        self, as_test_owner, invoice_service, echo_update, stored_row, client_service, live_client
    ):
        """A renamed client only reaches an invoice when the invoice is re-saved with that client."""
        renamed = live_client.model_copy(update={"name": "Mario Bianchi SA", "address": "Via Nuova 9"})
        client_service.get_by_id.return_value = renamed

        untouched = invoice_service.get_by_id(stored_row["id"])
        assert untouched.client.name == "Mario Bianchi"

        invoice = invoice_service.update(stored_row["id"], InvoiceUpdate(client=untouched.client))

        assert invoice.client.name == "Mario Bianchi SA"
        assert invoice.client.address == "Via Nuova 9"

    def test_client_reference_by_id_is_resnapshotted(
        self, as_test_owner, invoice_service, echo_update, stored_row, client_service, live_client
    ):
        update = InvoiceUpdate.model_validate({"client": {"id": str(live_client.id)}})

        invoice = invoice_service.update(stored_row["id"], update)

        client_service.get_by_id.assert_called_with(live_client.id)
        assert invoice.client.name == live_client.name

    def test_items_change_recomputes_totals(self, as_test_owner, invoice_service, echo_update, stored_row):
        items = [LineItem.build(name="Tyre", price=Decimal("80"), quantity=4)]

        invoice = invoice_service.update(stored_row["id"], InvoiceUpdate(items=items))

        assert invoice.subtotal == Decimal("320.00")
        assert invoice.total == Decimal("345.60")

    def test_totals_without_items_are_ignored(self, as_test_owner, invoice_service, echo_update, stored_row):
        invoice = invoice_service.update(stored_row["id"], InvoiceUpdate(total=Decimal("1"), notes="x"))

        assert invoice.total == Decimal("194.40")
        assert "total = %s" not in echo_update.execute_returning.call_args.args[0]

    def test_empty_items_rejected(self, as_test_owner, invoice_service, echo_update, stored_row):
        with pytest.raises(ValidationError) as exc_info:
            invoice_service.update(stored_row["id"], InvoiceUpdate(items=[]))

        assert exc_info.value.field == "items"

    def test_number_check_excludes_self(self, as_test_owner, invoice_service, echo_update, stored_row):
        invoice_service.update(stored_row["id"], InvoiceUpdate(number="INV-0001"))

        query, params = echo_update.execute_single.call_args.args
        assert "id <> %s" in query
        assert params == (as_test_owner, "INV-0001", stored_row["id"])

    def test_number_taken_by_another_invoice(self, as_test_owner, invoice_service, postgres, stored_row):
        postgres.execute_single.side_effect = (
            lambda query, params: stored_row if query.startswith("SELECT * FROM invoices") else {"id": uuid4()}
        )

        with pytest.raises(DuplicateNumberError):
            invoice_service.update(stored_row["id"], InvoiceUpdate(number="INV-0002"))

        postgres.execute_returning.assert_not_called()

    def test_missing_invoice(self, as_test_owner, invoice_service, postgres):
        with pytest.raises(NotFoundError):
            invoice_service.update(uuid4(), InvoiceUpdate(notes="x"))

    def test_no_changes_returns_current(self, as_test_owner, invoice_service, echo_update, stored_row):
        invoice = invoice_service.update(stored_row["id"], InvoiceUpdate())

        assert invoice.id == stored_row["id"]
        echo_update.execute_returning.assert_not_called()

    def test_full_payload_from_draft(self, as_test_owner, invoice_service, echo_update, stored_row):
        """An edit-mode save sends every field; the result is canonical."""
        current = Invoice.model_validate(stored_row)
        payload = InvoiceUpdate(**current.model_dump(include=set(InvoiceUpdate.model_fields)))

        invoice = invoice_service.update(stored_row["id"], payload)

        assert invoice.total == Decimal("194.40")
        assert invoice.client.name == "Mario Bianchi"


class TestSetPaidStatus:
    """Tests for InvoiceService.set_paid_status()."""

    def test_marks_paid(self, as_test_owner, invoice_service, postgres, invoice_row):
        row = invoice_row(paid=True)
        postgres.execute_returning.return_value = [row]

        invoice = invoice_service.set_paid_status(row["id"], True)

        assert invoice.paid is True
        query, params = postgres.execute_returning.call_args.args
        assert "SET paid = %s" in query
        assert params[0] is True
        assert params[2:] == (row["id"], as_test_owner)

    def test_missing_invoice(self, as_test_owner, invoice_service, postgres):
        postgres.execute_returning.return_value = []

        with pytest.raises(NotFoundError):
            invoice_service.set_paid_status(uuid4(), True)


class TestReads:
    """Tests for get_by_id, delete, count and list."""

    def test_get_by_id_scoped_to_owner(self, as_test_owner, invoice_service, postgres, invoice_row):
        row = invoice_row()
        postgres.execute_single.return_value = row

        invoice = invoice_service.get_by_id(row["id"])

        assert invoice.number == "INV-0001"
        assert postgres.execute_single.call_args.args[1] == (row["id"], as_test_owner)

    def test_get_by_id_missing(self, as_test_owner, invoice_service):
        assert invoice_service.get_by_id(uuid4()) is None

    def test_delete(self, as_test_owner, invoice_service, postgres):
        postgres.execute_returning.return_value = [{"id": uuid4()}]
        assert invoice_service.delete(uuid4()) is True

        postgres.execute_returning.return_value = []
        assert invoice_service.delete(uuid4()) is False

    def test_count(self, as_test_owner, invoice_service, postgres):
        postgres.execute_scalar.return_value = 7
        assert invoice_service.count() == 7

    def test_count_none_is_zero(self, as_test_owner, invoice_service, postgres):
        postgres.execute_scalar.return_value = None
        assert invoice_service.count() == 0

    def test_list_page(self, as_test_owner, invoice_service, postgres, invoice_row):
        postgres.execute_scalar.return_value = 3
        postgres.execute.return_value = [invoice_row(number="INV-0003"), invoice_row(number="INV-0002")]

        page = invoice_service.list(page=1, limit=2)

        assert [i.number for i in page.invoices] == ["INV-0003", "INV-0002"]
        assert (page.page, page.limit, page.total, page.pages) == (1, 2, 3, 2)
        assert postgres.execute.call_args.args[1][-2:] == (2, 0)

    def test_list_filters(self, as_test_owner, invoice_service, postgres):
        postgres.execute_scalar.return_value = 0
        postgres.execute.return_value = []

        page = invoice_service.list(paid=False, search="50%", page=3, limit=10)

        query, params = postgres.execute.call_args.args
        assert "paid = %s" in query
        assert "client->>'name' ILIKE %s" in query
        assert params == (as_test_owner, False, "%50\\%%", "%50\\%%", 10, 20)
        assert page.pages == 0

    def test_list_limit_is_clamped(self, as_test_owner, invoice_service, postgres):
        postgres.execute_scalar.return_value = 0
        postgres.execute.return_value = []

        page = invoice_service.list(limit=100000)

        assert page.limit == 500
