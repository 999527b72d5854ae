"""Shared test fixtures for the billing test suite."""

import json
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from dotenv import load_dotenv

# Load .env before anything reads VAULT_* variables
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from core.models import Client, ClientSnapshot, CompanyProfile, Currency, Language, LineItem, Product
from utils.owner_context import clear_current_owner_id, owner_context


# =============================================================================
# OWNER CONSTANTS
# =============================================================================

TEST_OWNER_ID = UUID("00000000-0000-0000-0000-000000000001")
TEST_OWNER_B_ID = UUID("00000000-0000-0000-0000-000000000002")

CREATED_AT = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


# =============================================================================
# OWNER CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_owner_context():
    """Ensure clean owner context before and after each test."""
    clear_current_owner_id()
    yield
    clear_current_owner_id()


@pytest.fixture
def test_owner_id() -> UUID:
    return TEST_OWNER_ID


@pytest.fixture
def test_owner_b_id() -> UUID:
    return TEST_OWNER_B_ID


@pytest.fixture
def as_test_owner(test_owner_id):
    """Run the test inside the primary owner's context."""
    with owner_context(test_owner_id):
        yield test_owner_id


# =============================================================================
# DOMAIN FIXTURES
# =============================================================================


@pytest.fixture
def company() -> CompanyProfile:
    return CompanyProfile(
        name="Garage Rossi",
        address="Via Roma 1\n6900 Lugano",
        email="info@garage-rossi.ch",
        phone="+41 91 000 00 00",
        currency=Currency.CHF,
        language=Language.EN,
        tax_rate=Decimal("8"),
        logo="https://cdn.example.com/logo.png",
    )


@pytest.fixture
def live_client(test_owner_id) -> Client:
    """Live client record as the client service returns it."""
    return Client(
        id=UUID("11111111-1111-1111-1111-111111111111"),
        owner_id=test_owner_id,
        name="Mario Bianchi",
        address="Via Lago 5",
        phone="+41 79 123 45 67",
        email="mario@example.com",
        created_at=CREATED_AT,
        updated_at=CREATED_AT,
    )


@pytest.fixture
def client_snapshot(live_client) -> ClientSnapshot:
    return live_client.snapshot()


@pytest.fixture
def product(test_owner_id) -> Product:
    return Product(
        id=uuid4(),
        owner_id=test_owner_id,
        name="Oil change",
        description="Synthetic 5W-30",
        price=Decimal("100"),
        discount=Decimal("10"),
        created_at=CREATED_AT,
        updated_at=CREATED_AT,
    )


@pytest.fixture
def line_item() -> LineItem:
    """2 x 100 at 10% off."""
    return LineItem.build(name="Oil change", price=Decimal("100"), quantity=2, discount=Decimal("10"), item_id="line-1")


@pytest.fixture
def invoice_row(test_owner_id, client_snapshot, line_item):
    """
    Factory for rows as PostgresClient returns them from the invoices table.

    JSONB columns come back as plain dicts/lists, NUMERIC as Decimal.
    """

    def make(**overrides) -> dict:
        row = {
            "id": uuid4(),
            "owner_id": test_owner_id,
            "number": "INV-0001",
            "issue_date": date(2024, 3, 1),
            "paid": False,
            "hide_status": False,
            "show_status_watermark": False,
            "client": json.loads(client_snapshot.model_dump_json()),
            "items": [json.loads(line_item.model_dump_json())],
            "subtotal": Decimal("180.00"),
            "tax": Decimal("14.4000"),
            "total": Decimal("194.4000"),
            "notes": "",
            "terms": "",
            "created_at": CREATED_AT,
            "updated_at": CREATED_AT,
        }
        row.update(overrides)
        return row

    return make
