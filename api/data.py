"""GET /api/data - unified read endpoint."""

from uuid import UUID

from fastapi import APIRouter, Query, Request

from api.base import success_response
from core.exceptions import NotFoundError


VALID_TYPES = {"invoices", "clients", "products", "company"}


def create_data_router(services: dict) -> APIRouter:
    router = APIRouter()

    invoice_svc = services["invoice"]
    client_svc = services["client"]
    product_svc = services["product"]
    company_svc = services["company"]

    @router.get("/data/invoices/count")
    async def invoice_count(request: Request):
        return _ok(request, {"count": invoice_svc.count()})

    @router.get("/data")
    async def get_data(
        request: Request,
        type: str | None = Query(None),
        id: str | None = Query(None),
        search: str | None = Query(None),
        paid: bool | None = Query(None),
        include_archived: bool = Query(False),
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=500),
    ):
        if type is None:
            raise ValueError("'type' query parameter is required")

        if type not in VALID_TYPES:
            raise ValueError(f"Unknown type '{type}'. Valid types: {', '.join(sorted(VALID_TYPES))}")

        if type == "invoices":
            return _ok(request, _handle_invoices(invoice_svc, id, paid, search, page, limit))

        if type == "clients":
            return _ok(request, _handle_clients(client_svc, id, search, include_archived, page, limit))

        if type == "products":
            return _ok(request, _handle_products(product_svc, id, search, limit))

        return _ok(request, company_svc.get_profile().model_dump(mode="json"))

    return router


def _ok(request: Request, data) -> dict:
    request_id = getattr(request.state, "request_id", None)
    return success_response(data, request_id=request_id).model_dump(mode="json")


def _handle_invoices(invoice_svc, id, paid, search, page, limit):
    if id:
        invoice = invoice_svc.get_by_id(UUID(id))
        if invoice is None:
            raise NotFoundError(f"Invoice {id} not found")
        return invoice.model_dump(mode="json")

    result = invoice_svc.list(paid=paid, search=search, page=page, limit=limit)
    return {
        "invoices": [i.model_dump(mode="json") for i in result.invoices],
        "pagination": {
            "page": result.page,
            "limit": result.limit,
            "total": result.total,
            "pages": result.pages,
        },
    }


def _handle_clients(client_svc, id, search, include_archived, page, limit):
    if id:
        client = client_svc.get_by_id(UUID(id))
        if client is None:
            raise NotFoundError(f"Client {id} not found")
        return client.model_dump(mode="json")

    if search:
        clients = client_svc.search(search, limit)
    else:
        clients = client_svc.list_all(include_archived, limit, (page - 1) * limit)
    return [c.model_dump(mode="json") for c in clients]


def _handle_products(product_svc, id, search, limit):
    if id:
        product = product_svc.get_by_id(UUID(id))
        if product is None:
            raise NotFoundError(f"Product {id} not found")
        return product.model_dump(mode="json")

    return [p.model_dump(mode="json") for p in product_svc.list_active(search, limit)]
