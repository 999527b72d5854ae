"""
HTML-to-PDF renderer client.

Posts a self-contained HTML document to a Chromium-based conversion
service (Gotenberg's /forms/chromium/convert/html route) and returns the
PDF bytes. Page size, margins and background printing are sent with every
request so the output matches the browser print path.
"""

import logging

import requests

from core.config import BillingConfig, DEFAULT_CONFIG
from core.exceptions import RenderError

logger = logging.getLogger(__name__)

CONVERT_PATH = "/forms/chromium/convert/html"


class PdfRenderClient:
    """Convert invoice HTML to PDF over HTTP."""

    def __init__(self, base_url: str, api_key: str | None = None, config: BillingConfig = DEFAULT_CONFIG):
        """
        Args:
            base_url: Renderer root URL, e.g. http://pdf-renderer:3000
            api_key: Sent as X-API-Key when the renderer sits behind a gateway
            config: Paper size, margins and request timeout

        Raises:
            ValueError: If base_url is empty
        """
        if not base_url:
            raise ValueError("base_url is required")

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.config = config

    def _page_options(self) -> dict:
        margin = f"{self.config.margin_mm:g}mm"
        return {
            "paperWidth": f"{self.config.paper_width_mm:g}mm",
            "paperHeight": f"{self.config.paper_height_mm:g}mm",
            "marginTop": margin,
            "marginBottom": margin,
            "marginLeft": margin,
            "marginRight": margin,
            "printBackground": "true",
            "preferCssPageSize": "false",
        }

    def render(self, html: str, filename: str = "invoice.pdf") -> bytes:
        """
        Render an HTML document to PDF.

        Args:
            html: Complete HTML document
            filename: Output filename hint for the renderer

        Returns:
            PDF file contents

        Raises:
            RenderError: Transport failure, timeout, non-200 status or a non-PDF body
        """
        headers = {"Gotenberg-Output-Filename": filename.removesuffix(".pdf")}
        if self.api_key:
            headers["X-API-Key"] = self.api_key

        try:
            response = requests.post(
                f"{self.base_url}{CONVERT_PATH}",
                files={"files": ("index.html", html.encode("utf-8"), "text/html")},
                data=self._page_options(),
                headers=headers,
                timeout=self.config.render_timeout_seconds,
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"PDF renderer timed out after {self.config.render_timeout_seconds}s")
            raise RenderError("PDF renderer timed out") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"PDF renderer connection failed: {e}")
            raise RenderError(f"PDF renderer unavailable: {e}") from e

        if response.status_code != 200:
            logger.error(f"PDF renderer returned {response.status_code}: {response.text[:200]}")
            raise RenderError(f"PDF renderer returned HTTP {response.status_code}")

        if not response.content.startswith(b"%PDF"):
            logger.error("PDF renderer returned a body that is not a PDF")
            raise RenderError("PDF renderer returned an invalid document")

        logger.info(f"Rendered {filename} ({len(response.content)} bytes)")
        return response.content
