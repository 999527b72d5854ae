"""Client (buyer) domain models.

The live client record is owned by the client-management screens. Invoices
never reference it directly; they carry a ClientSnapshot captured at save time.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class Client(BaseModel):
    """Live client record as stored."""

    id: UUID
    owner_id: UUID
    name: str
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    archived: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    def snapshot(self) -> "ClientSnapshot":
        """Freeze the fields an invoice prints."""
        return ClientSnapshot(
            id=self.id,
            name=self.name,
            address=self.address or "",
            phone=self.phone or "",
            email=self.email or "",
        )


class ClientRef(BaseModel):
    """Client selection by id, as sent when an invoice is re-assigned."""

    id: UUID

    model_config = {"frozen": True}


class ClientSnapshot(ClientRef):
    """
    By-value copy of a client taken when an invoice is saved.

    Later edits to (or archiving of) the live client do not touch it.
    """

    name: str = Field(..., min_length=1, max_length=255)
    address: str | None = Field("", max_length=500)
    phone: str | None = Field("", max_length=50)
    email: str | None = Field("", max_length=255)

    model_config = {"frozen": True}
