"""Company profile domain models.

The profile belongs to the dealership account. The invoice engine only
reads it: currency and language drive the document, tax rate drives totals.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class Currency(str, Enum):
    """Closed set of supported invoice currencies."""

    CHF = "CHF"
    USD = "USD"
    EGP = "EGP"


class Language(str, Enum):
    """Closed set of document languages."""

    IT = "it"
    EN = "en"
    DE = "de"
    AR = "ar"

    @property
    def is_rtl(self) -> bool:
        return self is Language.AR


DEFAULT_LOGO = "/images/default-logo.png"


class CompanyProfile(BaseModel):
    """Company details printed on every invoice."""

    name: str = Field("", max_length=255)
    address: str | None = Field(None, max_length=500)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    currency: Currency = Currency.CHF
    language: Language = Language.IT
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100)
    logo: str | None = DEFAULT_LOGO
    watermark: str | None = Field(None, max_length=10)
    show_notes: bool = False
    show_terms: bool = False

    model_config = {"from_attributes": True}

    @field_validator("currency", mode="before")
    @classmethod
    def fallback_unknown_currency(cls, value):
        """Stored profiles may carry legacy codes. Anything unknown becomes CHF."""
        if value is None:
            return Currency.CHF
        try:
            return Currency(value)
        except ValueError:
            return Currency.CHF

    @field_validator("language", mode="before")
    @classmethod
    def fallback_unknown_language(cls, value):
        """Unknown or missing languages fall back to Italian, the account default."""
        if value is None:
            return Language.IT
        try:
            return Language(value)
        except ValueError:
            return Language.IT
