"""Billing engine configuration."""

from pydantic import BaseModel, Field

from core.models.company import Currency


class BillingConfig(BaseModel):
    """
    Invoice engine configuration.

    Page geometry is in millimetres because that is how print margins
    are specified everywhere else in the pipeline.
    """

    # Draft numbering
    placeholder_prefix: str = Field(
        default="INV-",
        description="Prefix of the advisory invoice number offered to new drafts",
        max_length=10,
    )
    placeholder_digits: int = Field(
        default=4,
        description="Zero padding of the advisory sequence number",
        ge=1,
        le=10,
    )

    # Rendering
    default_currency: Currency = Field(
        default=Currency.CHF,
        description="Currency used when a company profile has none or an unknown one",
    )
    paper_width_mm: float = Field(default=210.0, gt=0)
    paper_height_mm: float = Field(default=297.0, gt=0)
    margin_mm: float = Field(
        default=20.0,
        description="Fixed print margin applied on every side",
        ge=0,
        le=50,
    )

    # PDF export
    render_timeout_seconds: int = Field(
        default=30,
        description="How long to wait for the PDF renderer",
        ge=1,
        le=300,
    )

    # Listing
    list_default_limit: int = Field(default=50, ge=1, le=500)
    list_max_limit: int = Field(default=500, ge=1, le=5000)

    def placeholder_number(self, known_count: int) -> str:
        """Advisory number for the next draft, e.g. INV-0001."""
        return f"{self.placeholder_prefix}{known_count + 1:0{self.placeholder_digits}d}"


DEFAULT_CONFIG = BillingConfig()
