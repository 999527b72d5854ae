"""API test fixtures - authenticated TestClient over mocked services."""

from datetime import timedelta
from unittest.mock import Mock
from uuid import UUID

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from auth.types import Session, SessionValidator
from core.models import Invoice
from core.services.client_service import ClientService
from core.services.company_service import CompanyService
from core.services.export_service import ExportService
from core.services.invoice_service import InvoiceService
from core.services.product_service import ProductService
from utils.timezone import now_utc


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def stored_invoice(invoice_row) -> Invoice:
    return Invoice.model_validate(invoice_row())


@pytest.fixture
def invoice_service(stored_invoice):
    service = Mock(spec=InvoiceService)
    service.create.return_value = stored_invoice
    service.update.return_value = stored_invoice
    service.set_paid_status.return_value = stored_invoice.model_copy(update={"paid": True})
    service.get_by_id.return_value = stored_invoice
    service.delete.return_value = True
    service.count.return_value = 1
    return service


@pytest.fixture
def client_service(live_client):
    service = Mock(spec=ClientService)
    service.get_by_id.return_value = live_client
    service.list_all.return_value = [live_client]
    service.search.return_value = [live_client]
    return service


@pytest.fixture
def product_service(product):
    service = Mock(spec=ProductService)
    service.get_by_id.return_value = product
    service.list_active.return_value = [product]
    return service


@pytest.fixture
def company_service(company):
    service = Mock(spec=CompanyService)
    service.get_profile.return_value = company
    return service


@pytest.fixture
def export_service():
    return Mock(spec=ExportService)


# =============================================================================
# SERVICES DICT
# =============================================================================


@pytest.fixture
def services(invoice_service, client_service, product_service, company_service, export_service):
    return {
        "invoice": invoice_service,
        "client": client_service,
        "product": product_service,
        "company": company_service,
        "export": export_service,
    }


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def mock_session_validator(test_owner_id: UUID):
    mock = Mock(spec=SessionValidator)
    mock.validate_session.return_value = Session(
        token="test-token",
        owner_id=test_owner_id,
        expires_at=now_utc() + timedelta(hours=24),
    )
    return mock


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(mock_session_validator, services):
    """Billing app with auth middleware, error handlers and all routers."""
    return create_app(services, mock_session_validator)


@pytest.fixture
def client(app):
    """Authenticated test client."""
    c = TestClient(app, raise_server_exceptions=False)
    c.cookies.set("session_token", "test-token")
    return c


@pytest.fixture
def unauthed_client(app):
    """Unauthenticated test client (no session cookie)."""
    return TestClient(app, raise_server_exceptions=False)
