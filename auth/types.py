"""Pydantic models for the authenticated session."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from pydantic import BaseModel, Field


class Session(BaseModel):
    """A validated dealership session. ``owner_id`` scopes every invoice, client and product query."""

    token: str = Field(..., description="Session token (opaque string)")
    owner_id: UUID
    expires_at: datetime


class SessionValidator(Protocol):
    """
    Resolves a session cookie to a Session.

    Implemented by the account service that issues sessions; invoicing
    only consumes it.
    """

    def validate_session(self, token: str) -> Session:
        """Raises InvalidTokenError or SessionExpiredError."""
        ...
