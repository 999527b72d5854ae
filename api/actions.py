"""POST /api/actions - unified mutation endpoint."""

from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from api.base import success_response
from core.exceptions import NotFoundError, ValidationError
from core.models import InvoiceCreate, InvoiceStatusUpdate, InvoiceUpdate


class ActionRequest(BaseModel):
    domain: str
    action: str
    data: dict = Field(default_factory=dict)


def create_actions_router(services: dict) -> APIRouter:
    router = APIRouter()

    handlers = {
        "invoice": InvoiceHandler(services["invoice"]),
    }

    @router.post("/actions")
    async def perform_action(request: Request, body: ActionRequest):
        handler = handlers.get(body.domain)
        if handler is None:
            raise ValueError(
                f"Unknown domain '{body.domain}'. "
                f"Valid domains: {', '.join(sorted(handlers.keys()))}"
            )

        if body.action not in handler.ALLOWED_ACTIONS:
            raise ValueError(
                f"Action '{body.action}' not allowed on '{body.domain}'. "
                f"Allowed: {', '.join(sorted(handler.ALLOWED_ACTIONS))}"
            )

        method = getattr(handler, f"_handle_{body.action}")
        result = method(dict(body.data))
        request_id = getattr(request.state, "request_id", None)
        return success_response(result, request_id=request_id).model_dump(mode="json")

    return router


def _require_id(data: dict) -> UUID:
    raw = data.pop("id", None)
    if not raw:
        raise ValidationError("'id' is required", field="id")
    return UUID(str(raw))


# =============================================================================
# HANDLER CLASSES
# =============================================================================


class InvoiceHandler:
    ALLOWED_ACTIONS = {"create", "update", "set_status", "delete"}

    def __init__(self, service):
        self.service = service

    def _handle_create(self, data: dict):
        invoice = self.service.create(InvoiceCreate(**data))
        return invoice.model_dump(mode="json")

    def _handle_update(self, data: dict):
        invoice_id = _require_id(data)
        invoice = self.service.update(invoice_id, InvoiceUpdate(**data))
        return invoice.model_dump(mode="json")

    def _handle_set_status(self, data: dict):
        invoice_id = _require_id(data)
        status = InvoiceStatusUpdate(**data)
        invoice = self.service.set_paid_status(invoice_id, status.paid)
        return invoice.model_dump(mode="json")

    def _handle_delete(self, data: dict):
        invoice_id = _require_id(data)
        if not self.service.delete(invoice_id):
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return {"deleted": True}
