"""
HTTP client for the billing API.

Implements the same create/update/set_paid_status contract as
InvoiceService, so an InvoiceDraft can save through either. Error
envelopes are mapped back to the typed exceptions the service raises;
transport failures become NetworkError. Nothing is retried.
"""

import logging
from uuid import UUID

import requests

from api.base import ErrorCodes
from core.exceptions import (
    BillingError,
    ClientOwnershipError,
    DuplicateNumberError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from core.models import Invoice, InvoiceCreate, InvoiceListPage, InvoiceUpdate

logger = logging.getLogger(__name__)


class BillingAPIClient:
    """Invoice gateway over the /api/actions and /api/data endpoints."""

    def __init__(self, base_url: str, session_token: str, timeout: int = 10):
        """
        Args:
            base_url: API root, e.g. https://billing.example.com
            session_token: Value of the session cookie
            timeout: Seconds to wait for each request

        Raises:
            ValueError: If base_url or session_token is empty
        """
        if not base_url:
            raise ValueError("base_url is required")
        if not session_token:
            raise ValueError("session_token is required")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.cookies.set("session_token", session_token)

    def _unwrap(self, response: requests.Response, context: dict):
        """Return the envelope's data or raise the typed error it carries."""
        try:
            body = response.json()
        except ValueError:
            logger.error(f"Billing API returned non-JSON ({response.status_code}): {response.text[:200]}")
            raise NetworkError(f"Invalid response from billing API (HTTP {response.status_code})")

        if response.status_code == 200 and body.get("success"):
            return body.get("data")

        error = body.get("error") or {}
        code = error.get("code")
        message = error.get("message") or f"HTTP {response.status_code}"
        logger.warning(f"Billing API error {code}: {message}")

        if code == ErrorCodes.VALIDATION_ERROR:
            raise ValidationError(message, field=error.get("field"))
        if code == ErrorCodes.DUPLICATE_NUMBER:
            raise DuplicateNumberError(context.get("number") or "")
        if code == ErrorCodes.CLIENT_OWNERSHIP:
            raise ClientOwnershipError(context.get("client_id"))
        if code == ErrorCodes.NOT_FOUND:
            raise NotFoundError(message)
        if response.status_code >= 500:
            raise NetworkError(message)
        raise BillingError(message)

    def _send(self, method: str, path: str, context: dict, **kwargs):
        try:
            response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Billing API connection failed: {e}")
            raise NetworkError(f"Connection failed: {e}") from e
        return self._unwrap(response, context)

    def _action(self, action: str, data: dict, context: dict | None = None):
        payload = {"domain": "invoice", "action": action, "data": data}
        return self._send("POST", "/api/actions", context or {}, json=payload)

    def create(self, data: InvoiceCreate) -> Invoice:
        """
        Create an invoice remotely.

        Raises:
            ValidationError, DuplicateNumberError, ClientOwnershipError: Rejected by the API
            NetworkError: Transport failure or server error
        """
        context = {"number": data.number, "client_id": data.client.id if data.client else None}
        result = self._action("create", data.model_dump(mode="json"), context)
        return Invoice.model_validate(result)

    def update(self, invoice_id: UUID, data: InvoiceUpdate) -> Invoice:
        """Update an invoice remotely. Only fields set on ``data`` are sent."""
        payload = {"id": str(invoice_id), **data.model_dump(mode="json", exclude_unset=True)}
        context = {"number": data.number, "client_id": data.client.id if data.client else None}
        result = self._action("update", payload, context)
        return Invoice.model_validate(result)

    def set_paid_status(self, invoice_id: UUID, paid: bool) -> Invoice:
        result = self._action("set_status", {"id": str(invoice_id), "paid": paid})
        return Invoice.model_validate(result)

    def delete(self, invoice_id: UUID) -> bool:
        try:
            self._action("delete", {"id": str(invoice_id)})
        except NotFoundError:
            return False
        return True

    def get_by_id(self, invoice_id: UUID) -> Invoice | None:
        try:
            result = self._send("GET", "/api/data", {}, params={"type": "invoices", "id": str(invoice_id)})
        except NotFoundError:
            return None
        return Invoice.model_validate(result)

    def list(
        self,
        paid: bool | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> InvoiceListPage:
        params = {"type": "invoices", "page": page, "limit": limit}
        if paid is not None:
            params["paid"] = "true" if paid else "false"
        if search:
            params["search"] = search

        result = self._send("GET", "/api/data", {}, params=params)
        return InvoiceListPage(invoices=result["invoices"], **result["pagination"])

    def count(self) -> int:
        result = self._send("GET", "/api/data/invoices/count", {})
        return int(result["count"])
