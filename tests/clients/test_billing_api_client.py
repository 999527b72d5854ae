"""Tests for BillingAPIClient - uses responses library for HTTP mocking."""

import json
from datetime import date
from uuid import uuid4

import pytest
import requests
import responses

from clients.billing_api_client import BillingAPIClient
from core.exceptions import (
    BillingError,
    ClientOwnershipError,
    DuplicateNumberError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from core.models import Invoice, InvoiceCreate, InvoiceUpdate

BASE_URL = "https://billing.example.com"
ACTIONS_URL = f"{BASE_URL}/api/actions"
DATA_URL = f"{BASE_URL}/api/data"
META = {"timestamp": "2024-03-01T09:30:00Z", "request_id": "req-1"}


def _ok(data) -> dict:
    return {"success": True, "data": data, "error": None, "meta": META}


def _fail(code, message, field=None) -> dict:
    return {"success": False, "data": None, "error": {"code": code, "message": message, "field": field}, "meta": META}


@pytest.fixture
def client():
    return BillingAPIClient(BASE_URL, session_token="test-session-token")


@pytest.fixture
def stored_json(invoice_row):
    return Invoice.model_validate(invoice_row()).model_dump(mode="json")


@pytest.fixture
def create_data(client_snapshot, line_item):
    return InvoiceCreate(number="INV-0001", issue_date=date(2024, 3, 1), client=client_snapshot, items=[line_item])


class TestBillingAPIClientInit:
    """Construction."""

    def test_rejects_empty_base_url(self):
        with pytest.raises(ValueError, match="base_url"):
            BillingAPIClient("", session_token="t")

    def test_rejects_empty_session_token(self):
        with pytest.raises(ValueError, match="session_token"):
            BillingAPIClient(BASE_URL, session_token="")


class TestCreate:
    """Test create() and the error envelope mapping."""

    @responses.activate
    def test_success_returns_canonical_invoice(self, client, create_data, stored_json):
        responses.add(responses.POST, ACTIONS_URL, json=_ok(stored_json), status=200)

        invoice = client.create(create_data)

        assert isinstance(invoice, Invoice)
        assert str(invoice.id) == stored_json["id"]

        sent = json.loads(responses.calls[0].request.body)
        assert sent["domain"] == "invoice"
        assert sent["action"] == "create"
        assert sent["data"]["number"] == "INV-0001"
        assert sent["data"]["issue_date"] == "2024-03-01"
        assert "session_token=test-session-token" in responses.calls[0].request.headers["Cookie"]

    @responses.activate
    def test_duplicate_number(self, client, create_data):
        responses.add(
            responses.POST, ACTIONS_URL,
            json=_fail("DUPLICATE_NUMBER", "Invoice number INV-0001 already exists"),
            status=409,
        )

        with pytest.raises(DuplicateNumberError) as exc_info:
            client.create(create_data)

        assert exc_info.value.number == "INV-0001"

    @responses.activate
    def test_validation_error_keeps_field(self, client, create_data):
        responses.add(
            responses.POST, ACTIONS_URL,
            json=_fail("VALIDATION_ERROR", "At least one item is required", field="items"),
            status=400,
        )

        with pytest.raises(ValidationError) as exc_info:
            client.create(create_data)

        assert exc_info.value.field == "items"

    @responses.activate
    def test_client_ownership(self, client, create_data):
        responses.add(responses.POST, ACTIONS_URL, json=_fail("CLIENT_OWNERSHIP", "Client not found"), status=403)

        with pytest.raises(ClientOwnershipError) as exc_info:
            client.create(create_data)

        assert exc_info.value.client_id == create_data.client.id

    @responses.activate
    def test_server_error_is_network_error(self, client, create_data):
        responses.add(responses.POST, ACTIONS_URL, json=_fail("INTERNAL_ERROR", "An internal error occurred"), status=500)

        with pytest.raises(NetworkError):
            client.create(create_data)

    @responses.activate
    def test_other_rejection_is_billing_error(self, client, create_data):
        responses.add(responses.POST, ACTIONS_URL, json=_fail("INVALID_REQUEST", "Unknown domain"), status=400)

        with pytest.raises(BillingError) as exc_info:
            client.create(create_data)

        assert not isinstance(exc_info.value, NetworkError)

    @responses.activate
    def test_connection_failure_is_network_error(self, client, create_data):
        responses.add(
            responses.POST, ACTIONS_URL,
            body=requests.exceptions.ConnectionError("Network unreachable"),
        )

        with pytest.raises(NetworkError):
            client.create(create_data)

    @responses.activate
    def test_non_json_response_is_network_error(self, client, create_data):
        responses.add(responses.POST, ACTIONS_URL, body="<html>Bad Gateway</html>", status=502)

        with pytest.raises(NetworkError):
            client.create(create_data)


class TestUpdateAndStatus:
    """Test update(), set_paid_status() and delete()."""

    @responses.activate
    def test_update_sends_only_set_fields(self, client, stored_json):
        responses.add(responses.POST, ACTIONS_URL, json=_ok(stored_json), status=200)
        invoice_id = uuid4()

        client.update(invoice_id, InvoiceUpdate(notes="Thanks"))

        sent = json.loads(responses.calls[0].request.body)
        assert sent["action"] == "update"
        assert sent["data"] == {"id": str(invoice_id), "notes": "Thanks"}

    @responses.activate
    def test_set_paid_status(self, client, stored_json):
        responses.add(responses.POST, ACTIONS_URL, json=_ok({**stored_json, "paid": True}), status=200)
        invoice_id = uuid4()

        invoice = client.set_paid_status(invoice_id, True)

        assert invoice.paid is True
        sent = json.loads(responses.calls[0].request.body)
        assert sent["action"] == "set_status"
        assert sent["data"] == {"id": str(invoice_id), "paid": True}

    @responses.activate
    def test_update_missing_invoice(self, client):
        responses.add(responses.POST, ACTIONS_URL, json=_fail("NOT_FOUND", "Invoice not found"), status=404)

        with pytest.raises(NotFoundError):
            client.update(uuid4(), InvoiceUpdate(paid=True))

    @responses.activate
    def test_delete(self, client):
        responses.add(responses.POST, ACTIONS_URL, json=_ok({"deleted": True}), status=200)
        responses.add(responses.POST, ACTIONS_URL, json=_fail("NOT_FOUND", "Invoice not found"), status=404)

        assert client.delete(uuid4()) is True
        assert client.delete(uuid4()) is False


class TestReads:
    """Test get_by_id(), list() and count()."""

    @responses.activate
    def test_get_by_id(self, client, stored_json):
        responses.add(responses.GET, DATA_URL, json=_ok(stored_json), status=200)

        invoice = client.get_by_id(stored_json["id"])

        assert invoice.number == "INV-0001"
        assert "type=invoices" in responses.calls[0].request.url

    @responses.activate
    def test_get_by_id_missing(self, client):
        responses.add(responses.GET, DATA_URL, json=_fail("NOT_FOUND", "Invoice not found"), status=404)
        assert client.get_by_id(uuid4()) is None

    @responses.activate
    def test_list(self, client, stored_json):
        responses.add(
            responses.GET, DATA_URL,
            json=_ok({"invoices": [stored_json], "pagination": {"page": 1, "limit": 50, "total": 1, "pages": 1}}),
            status=200,
        )

        page = client.list(paid=False, search="INV")

        assert page.total == 1
        assert page.invoices[0].number == "INV-0001"
        url = responses.calls[0].request.url
        assert "paid=false" in url
        assert "search=INV" in url

    @responses.activate
    def test_count(self, client):
        responses.add(responses.GET, f"{DATA_URL}/invoices/count", json=_ok({"count": 12}), status=200)
        assert client.count() == 12
