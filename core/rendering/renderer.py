"""
Invoice document renderer.

One template serves the interactive preview, the browser print path and
PDF export. Preview mode adds ``data-panel`` click targets and the
"click to ..." placeholders; print mode leaves both out, so a printed
document never shows editing affordances.

Output is a single self-contained HTML string: inline CSS, fixed A4 page
margins, logo referenced by URL. Every piece of user-supplied text is
escaped.
"""

import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from html import escape

from core.config import BillingConfig, DEFAULT_CONFIG
from core.models import CompanyProfile, InvoiceContent, LineItem, round2
from core.rendering.labels import Direction, currency_symbol, default_direction, label

logger = logging.getLogger(__name__)


class RenderMode(str, Enum):
    PREVIEW = "preview"
    PRINT = "print"


AUTO_PRINT_SCRIPT = "<script>window.addEventListener('load', function () { window.focus(); window.print(); });</script>"


def format_money(value: Decimal, symbol: str) -> str:
    """Symbol followed by the value at two decimals, e.g. CHF194.40."""
    return f"{symbol}{round2(value)}"


def format_percent(value: Decimal) -> str:
    """Percentage without trailing zeros: 8, 7.7, 100."""
    return f"{Decimal(value).normalize():f}"


def format_date(value: date) -> str:
    """Fixed DD/MM/YYYY regardless of document language."""
    return value.strftime("%d/%m/%Y")


def _text(value: str | None) -> str:
    return escape(value or "")


class _Context:
    """Per-render settings shared by the block builders."""

    def __init__(self, company: CompanyProfile, direction: Direction, mode: RenderMode, config: BillingConfig):
        self.company = company
        self.direction = direction
        self.mode = mode
        self.config = config
        self.symbol = currency_symbol(company.currency or config.default_currency, direction)

    @property
    def rtl(self) -> bool:
        return self.direction == Direction.RTL

    @property
    def preview(self) -> bool:
        return self.mode == RenderMode.PREVIEW

    def t(self, key: str) -> str:
        return escape(label(key, self.company.language))

    def panel(self, name: str) -> str:
        """Click target attribute, preview only."""
        return f' data-panel="{name}"' if self.preview else ""

    def placeholder(self, key: str, tag: str = "p", cls: str = "placeholder") -> str:
        if not self.preview:
            return ""
        return f'<{tag} class="{cls}">{self.t(key)}</{tag}>'


def _styles(ctx: _Context) -> str:
    start = "right" if ctx.rtl else "left"
    font = "'Noto Sans Arabic', Arial, sans-serif" if ctx.rtl else "Arial, sans-serif"
    margin = ctx.config.margin_mm
    panel_rule = "[data-panel] { cursor: pointer; }" if ctx.preview else ""
    totals_align = "flex-start" if ctx.rtl else "flex-end"
    return f"""
    @page {{ size: {ctx.config.paper_width_mm:g}mm {ctx.config.paper_height_mm:g}mm; margin: {margin:g}mm; }}
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    body {{ font-family: {font}; line-height: 1.6; color: #333; background: white; direction: {ctx.direction.value}; }}
    .invoice-container {{ position: relative; margin: 0 auto; max-width: 8.5in; padding: 16px; }}
    .invoice-title {{ text-align: center; margin-bottom: 24px; }}
    .invoice-title h1 {{ font-size: 24px; font-weight: bold; color: #111827; }}
    .company-logo {{ object-fit: contain; max-height: 150px; max-width: 300px; margin-bottom: 16px; }}
    .parties {{ display: flex; flex-direction: row; justify-content: space-between; margin-bottom: 24px; direction: ltr; }}
    .company-info, .bill-to {{ width: 50%; text-align: {start}; direction: {ctx.direction.value}; }}
    .company-name {{ font-size: 18px; font-weight: 600; color: #111827; margin-bottom: 8px; }}
    .company-address, .company-contact, .client-details {{ color: #4b5563; font-size: 14px; white-space: pre-line; word-wrap: break-word; }}
    .client-name {{ font-weight: 500; margin-bottom: 4px; font-size: 14px; color: #111827; }}
    .section-title {{ font-size: 16px; font-weight: 600; color: #111827; margin-bottom: 8px; }}
    .invoice-meta {{ border: 1px solid #d1d5db; padding: 16px; border-radius: 4px; max-width: 640px; margin: 0 auto 24px; }}
    .meta-grid {{ display: flex; justify-content: space-around; gap: 16px; text-align: center; }}
    .meta-label {{ font-size: 12px; color: #4b5563; margin-bottom: 4px; }}
    .meta-value {{ font-weight: 500; color: #111827; font-size: 14px; }}
    .ltr {{ direction: ltr; unicode-bidi: isolate; }}
    .items-table {{ width: 100%; border-collapse: collapse; margin-bottom: 24px; border: 1px solid #d1d5db; }}
    .items-table th {{ background-color: #f9fafb; border: 1px solid #d1d5db; padding: 8px 16px; font-size: 14px; font-weight: normal; white-space: nowrap; }}
    .items-table td {{ border: 1px solid #d1d5db; padding: 8px 16px; font-size: 14px; }}
    .items-table th:nth-child(1), .items-table td:nth-child(1) {{ text-align: {start}; }}
    .items-table th:not(:first-child), .items-table td:not(:first-child) {{ width: 96px; text-align: center; }}
    .product-name {{ font-weight: 500; color: #111827; }}
    .product-description {{ font-size: 12px; color: #6b7280; white-space: pre-wrap; word-wrap: break-word; }}
    .totals {{ display: flex; justify-content: {totals_align}; margin-bottom: 24px; }}
    .totals-table {{ width: 100%; max-width: 256px; }}
    .totals-row {{ display: flex; justify-content: space-between; margin-bottom: 8px; padding: 4px 0; font-size: 14px; }}
    .totals-row.total {{ border-top: 2px solid #111827; padding-top: 8px; font-weight: 600; font-size: 16px; }}
    .notes-section, .terms-section {{ margin-bottom: 16px; text-align: {start}; }}
    .section-content {{ color: #4b5563; white-space: pre-line; word-wrap: break-word; font-size: 14px; }}
    .placeholder {{ color: #9ca3af; font-style: italic; }}
    .cta-row td {{ text-align: center; padding: 24px 16px; }}
    {panel_rule}
    .watermark {{ position: fixed; top: 50%; left: 0; width: 100%; text-align: center; z-index: 0;
        transform: translateY(-50%) rotate(-45deg); opacity: 0.1; font-size: 120px; font-weight: bold;
        color: #000; text-transform: uppercase; pointer-events: none; user-select: none; font-family: {font}; }}
    @media print {{
        .invoice-container {{ padding: 0; max-width: 100%; }}
        .watermark {{ opacity: 0.2; }}
    }}
    """


def _watermark(invoice: InvoiceContent, ctx: _Context) -> str:
    if invoice.show_status_watermark and not invoice.hide_status:
        text = ctx.t("paid" if invoice.paid else "unpaid")
    elif ctx.company.watermark:
        text = _text(ctx.company.watermark)
    else:
        return ""
    return f'<div class="watermark" aria-hidden="true">{text}</div>'


def _company_block(ctx: _Context) -> str:
    company = ctx.company
    lines = [f'<h2 class="company-name">{_text(company.name)}</h2>']
    if company.address:
        lines.append(f'<p class="company-address">{_text(company.address)}</p>')
    for contact in (company.email, company.phone):
        if contact:
            lines.append(f'<p class="company-contact">{_text(contact)}</p>')
    return f'<div class="company-info">{"".join(lines)}</div>'


def _bill_to_block(invoice: InvoiceContent, ctx: _Context) -> str:
    client = invoice.client
    lines = [f'<h3 class="section-title">{ctx.t("bill_to")}</h3>']
    if client is None:
        lines.append(ctx.placeholder("select_client"))
    else:
        lines.append(f'<div class="client-name">{_text(client.name)}</div>')
        for detail in (client.email, client.address, client.phone):
            if detail:
                lines.append(f'<div class="client-details">{_text(detail)}</div>')
    return f'<div class="bill-to"{ctx.panel("client")}>{"".join(lines)}</div>'


def _parties(invoice: InvoiceContent, ctx: _Context) -> str:
    # The row itself is always laid out left to right, so RTL mirrors by DOM order
    blocks = [_company_block(ctx), _bill_to_block(invoice, ctx)]
    if ctx.rtl:
        blocks.reverse()
    return f'<div class="parties">{"".join(blocks)}</div>'


def _meta_cell(label_html: str, value_html: str) -> str:
    return f'<div class="meta-cell"><div class="meta-label">{label_html}</div>{value_html}</div>'


def _details(invoice: InvoiceContent, ctx: _Context) -> str:
    number = invoice.number or ctx.config.placeholder_number(0)
    cells = [_meta_cell(ctx.t("invoice_number"), f'<div class="meta-value">{_text(number)}</div>')]

    if invoice.issue_date is not None:
        date_value = f'<div class="meta-value"><span class="ltr" dir="ltr">{format_date(invoice.issue_date)}</span></div>'
    elif ctx.preview:
        date_value = f'<div class="meta-value placeholder">{ctx.t("select_date")}</div>'
    else:
        date_value = '<div class="meta-value"></div>'
    cells.append(_meta_cell(ctx.t("invoice_date"), date_value))

    if not invoice.hide_status:
        status = ctx.t("paid" if invoice.paid else "unpaid")
        cells.append(_meta_cell(ctx.t("status"), f'<div class="meta-value status">{status}</div>'))

    return f'<div class="invoice-meta"{ctx.panel("details")}><div class="meta-grid">{"".join(cells)}</div></div>'


def _item_row(item: LineItem, ctx: _Context) -> str:
    name = _text(item.name)
    if item.quantity != 1:
        name = f"{name} × {item.quantity}"
    description = ""
    if item.description:
        description = f'<div class="product-description">{_text(item.description)}</div>'
    return (
        "<tr>"
        f'<td><div class="product-name">{name}</div>{description}</td>'
        f"<td>{format_money(item.display_unit_price, ctx.symbol)}</td>"
        f"<td>{format_percent(item.discount)}%</td>"
        f"<td>{format_money(item.amount, ctx.symbol)}</td>"
        "</tr>"
    )


def _items(invoice: InvoiceContent, ctx: _Context) -> str:
    header = "".join(f"<th>{ctx.t(key)}</th>" for key in ("product", "price", "discount", "amount"))
    if invoice.items:
        rows = "".join(_item_row(item, ctx) for item in invoice.items)
    elif ctx.preview:
        rows = f'<tr class="cta-row"><td colspan="4" class="placeholder">{ctx.t("add_products")}</td></tr>'
    else:
        rows = ""
    return (
        f'<table class="items-table"{ctx.panel("products")}>'
        f"<thead><tr>{header}</tr></thead><tbody>{rows}</tbody></table>"
    )


def _totals(invoice: InvoiceContent, ctx: _Context) -> str:
    rate = format_percent(ctx.company.tax_rate or Decimal("0"))
    rows = [
        ("totals-row", ctx.t("subtotal"), invoice.subtotal),
        ("totals-row", f"{ctx.t('tax')} ({rate}%)", invoice.tax),
        ("totals-row total", ctx.t("total"), invoice.total),
    ]
    body = "".join(
        f'<div class="{cls}"><span>{text}</span><span>{format_money(value, ctx.symbol)}</span></div>'
        for cls, text, value in rows
    )
    return f'<div class="totals"><div class="totals-table">{body}</div></div>'


def _free_text(kind: str, text: str, enabled: bool, ctx: _Context) -> str:
    """Notes or terms section: the text when present, else a preview placeholder when the section is enabled."""
    if text:
        content = f'<div class="section-content">{_text(text)}</div>'
    elif enabled and ctx.preview:
        content = ctx.placeholder(f"add_{kind}", tag="div", cls="section-content placeholder")
    else:
        return ""
    return (
        f'<div class="{kind}-section"{ctx.panel(kind)}>'
        f'<div class="section-title">{ctx.t(kind)}</div>{content}</div>'
    )


def render_invoice(
    invoice: InvoiceContent,
    company: CompanyProfile,
    direction: Direction | None = None,
    mode: RenderMode = RenderMode.PRINT,
    config: BillingConfig = DEFAULT_CONFIG,
    auto_print: bool = False,
) -> str:
    """
    Render an invoice (draft or persisted) to a standalone HTML document.

    Args:
        invoice: Content to render; draft content may lack client, date and items
        company: Company profile supplying currency, language, tax rate and branding
        direction: Text direction; defaults from the company language
        mode: PREVIEW adds click targets and placeholders, PRINT omits them
        config: Page geometry and placeholder numbering
        auto_print: Open the browser print dialog once the document loads

    Returns:
        Complete HTML document as a string
    """
    direction = direction or default_direction(company.language)
    ctx = _Context(company, direction, mode, config)

    logo = ""
    if company.logo:
        logo = f'<img src="{escape(company.logo, quote=True)}" alt="Company Logo" class="company-logo">'

    body = "".join([
        _watermark(invoice, ctx),
        f'<div class="invoice-title"><h1>{ctx.t("invoice")}</h1></div>',
        logo,
        _parties(invoice, ctx),
        _details(invoice, ctx),
        _items(invoice, ctx),
        _totals(invoice, ctx),
        _free_text("notes", invoice.notes, company.show_notes, ctx),
        _free_text("terms", invoice.terms, company.show_terms, ctx),
    ])

    script = AUTO_PRINT_SCRIPT if auto_print else ""
    title = f"{ctx.t('invoice')} {_text(invoice.number)}".strip()

    logger.debug(f"Rendered invoice {invoice.number!r} ({mode.value}, {direction.value})")

    return f"""<!DOCTYPE html>
<html dir="{direction.value}" lang="{company.language.value}">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{title}</title>
<style>{_styles(ctx)}</style>
</head>
<body>
<div class="invoice-container">{body}</div>
{script}
</body>
</html>"""
