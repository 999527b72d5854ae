# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_database_url,
    get_pdf_renderer_config,
)
from clients.postgres_client import PostgresClient
from clients.pdf_render_client import PdfRenderClient
from clients.billing_api_client import BillingAPIClient
