"""Application factory wiring middleware, error handlers and routers."""

import logging

from fastapi import FastAPI

from api.actions import create_actions_router
from api.data import create_data_router
from api.documents import create_documents_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.security_middleware import AuthMiddleware
from auth.types import SessionValidator
from clients.pdf_render_client import PdfRenderClient
from clients.postgres_client import PostgresClient
from clients.vault_client import get_database_url, get_pdf_renderer_config
from core.config import BillingConfig, DEFAULT_CONFIG
from core.services.client_service import ClientService
from core.services.company_service import CompanyService
from core.services.export_service import ExportService
from core.services.invoice_service import InvoiceService
from core.services.product_service import ProductService

logger = logging.getLogger(__name__)


def build_services(
    postgres: PostgresClient,
    pdf_client: PdfRenderClient | None = None,
    config: BillingConfig = DEFAULT_CONFIG,
) -> dict:
    """Services dict consumed by the router factories."""
    clients = ClientService(postgres)
    company = CompanyService(postgres)
    invoices = InvoiceService(postgres, clients, company, config)
    return {
        "invoice": invoices,
        "client": clients,
        "product": ProductService(postgres),
        "company": company,
        "export": ExportService(invoices, company, pdf_client),
    }


def build_services_from_vault(config: BillingConfig = DEFAULT_CONFIG) -> dict:
    """
    Services dict for a deployed instance.

    The database URL and the PDF renderer address come from Vault
    (billing/database, billing/pdf_renderer).
    """
    postgres = PostgresClient(get_database_url())
    pdf_client = PdfRenderClient(config=config, **get_pdf_renderer_config())
    return build_services(postgres, pdf_client, config)


def create_app(services: dict, session_validator: SessionValidator) -> FastAPI:
    """
    Build the billing API.

    Args:
        services: Keys invoice, client, product, company, export
        session_validator: Resolves session cookies to owners

    Returns:
        Configured FastAPI app; every /api route requires a session
    """
    app = FastAPI(title="Dealership Billing")

    # Added last runs first: request IDs are assigned before authentication
    app.add_middleware(AuthMiddleware, session_validator=session_validator)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_data_router(services), prefix="/api")
    app.include_router(create_actions_router(services), prefix="/api")
    app.include_router(create_documents_router(services), prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    logger.info("Billing API ready")
    return app
