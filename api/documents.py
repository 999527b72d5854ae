"""Document endpoints: draft preview, print HTML and PDF download.

Rendering reads the company profile from PostgreSQL and PDF export waits
on the converter, so every handler runs its export call in a worker
thread. asyncio.to_thread copies the request context, which keeps the
owner scoping intact.
"""

import asyncio
from uuid import UUID

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, Response
from pydantic import BaseModel

from core.models import InvoiceContent
from core.rendering import Direction


class PreviewRequest(BaseModel):
    invoice: InvoiceContent
    direction: Direction | None = None


def create_documents_router(services: dict) -> APIRouter:
    router = APIRouter(prefix="/documents")

    export_svc = services["export"]

    @router.post("/preview", response_class=HTMLResponse)
    async def preview(body: PreviewRequest):
        html = await asyncio.to_thread(export_svc.preview, body.invoice, direction=body.direction)
        return HTMLResponse(html)

    @router.get("/invoices/{invoice_id}", response_class=HTMLResponse)
    async def document(invoice_id: UUID):
        return HTMLResponse(await asyncio.to_thread(export_svc.document_html, invoice_id))

    @router.get("/invoices/{invoice_id}/print", response_class=HTMLResponse)
    async def print_document(invoice_id: UUID):
        return HTMLResponse(await asyncio.to_thread(export_svc.print_document, invoice_id))

    @router.get("/invoices/{invoice_id}/pdf")
    async def pdf(invoice_id: UUID):
        exported = await asyncio.to_thread(export_svc.export_pdf, invoice_id)
        return Response(
            content=exported.content,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
        )

    return router
