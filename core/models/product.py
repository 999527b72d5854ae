"""Product catalog models.

Products are the source of selectable invoice lines. Price and discount are
copied into the line when it is added, so later catalog edits do not
change existing invoices.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class Product(BaseModel):
    """Catalog product as stored."""

    id: UUID
    owner_id: UUID
    name: str
    description: str | None = ""
    price: Decimal
    discount: Decimal = Decimal("0")
    archived: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
