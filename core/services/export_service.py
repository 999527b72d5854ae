"""
Invoice document export: preview HTML, print HTML and PDF.

All three go through the same renderer with the owner's company profile.
Export is read-only; a failed PDF render leaves every invoice untouched.
"""

import logging
import re
from dataclasses import dataclass
from uuid import UUID

from clients.pdf_render_client import PdfRenderClient
from core.exceptions import NotFoundError, RenderError
from core.models import Invoice, InvoiceContent
from core.rendering import Direction, RenderMode, render_invoice
from core.services.company_service import CompanyService
from core.services.invoice_service import InvoiceService

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class ExportedPdf:
    filename: str
    content: bytes


def pdf_filename(invoice: InvoiceContent) -> str:
    """invoice-INV-0001.pdf, with anything outside [A-Za-z0-9._-] replaced."""
    number = _UNSAFE_FILENAME_CHARS.sub("_", invoice.number).strip("_") or "draft"
    return f"invoice-{number}.pdf"


class ExportService:
    """Render invoices for preview, printing and PDF download."""

    def __init__(
        self,
        invoices: InvoiceService,
        company: CompanyService,
        pdf_client: PdfRenderClient | None = None,
    ):
        self.invoices = invoices
        self.company = company
        self.pdf_client = pdf_client

    def _load(self, invoice_id: UUID) -> Invoice:
        invoice = self.invoices.get_by_id(invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def render_html(
        self,
        invoice: InvoiceContent,
        mode: RenderMode = RenderMode.PRINT,
        direction: Direction | None = None,
        auto_print: bool = False,
    ) -> str:
        """Render draft or stored content with the current owner's company profile."""
        profile = self.company.get_profile()
        return render_invoice(invoice, profile, direction=direction, mode=mode, auto_print=auto_print)

    def preview(self, content: InvoiceContent, direction: Direction | None = None) -> str:
        """Interactive preview of a draft: click targets and placeholders included."""
        return self.render_html(content, mode=RenderMode.PREVIEW, direction=direction)

    def document_html(self, invoice_id: UUID) -> str:
        """Print-mode HTML of a stored invoice."""
        return self.render_html(self._load(invoice_id))

    def print_document(self, invoice_id: UUID) -> str:
        """
        Print-mode HTML that opens the browser print dialog on load.

        Raises:
            NotFoundError: Invoice does not exist for this owner
        """
        invoice = self._load(invoice_id)
        logger.info(f"Print requested for invoice {invoice.number}")
        return self.render_html(invoice, auto_print=True)

    def export_pdf(self, invoice_id: UUID) -> ExportedPdf:
        """
        Render a stored invoice to PDF.

        Args:
            invoice_id: Invoice UUID

        Returns:
            ExportedPdf with a download filename and the PDF bytes

        Raises:
            NotFoundError: Invoice does not exist for this owner
            RenderError: No renderer configured, or the renderer failed
        """
        if self.pdf_client is None:
            raise RenderError("PDF export is not configured")

        invoice = self._load(invoice_id)
        filename = pdf_filename(invoice)
        content = self.pdf_client.render(self.render_html(invoice), filename=filename)

        logger.info(f"Exported invoice {invoice.number} as {filename}")
        return ExportedPdf(filename=filename, content=content)
