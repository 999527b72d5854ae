"""
Client (buyer) lookups for invoicing.

Client records are managed elsewhere; invoicing reads them to offer a
picker and to take snapshots when an invoice is saved. Queries filter on
owner_id explicitly on top of RLS.
"""

import logging
from uuid import UUID

from clients.postgres_client import PostgresClient, contains_pattern
from core.models import Client
from utils.owner_context import get_current_owner_id

logger = logging.getLogger(__name__)


class ClientService:
    """Read access to the current owner's clients."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def get_by_id(self, client_id: UUID) -> Client | None:
        """
        Get a client by ID, archived or not.

        Args:
            client_id: Client UUID

        Returns:
            Client if it exists and belongs to the current owner, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM clients WHERE id = %s AND owner_id = %s",
            (client_id, get_current_owner_id())
        )

        if row is None:
            return None

        return Client.model_validate(row)

    def list_all(self, include_archived: bool = False, limit: int = 50, offset: int = 0) -> list[Client]:
        """Clients ordered by name."""
        archived_clause = "" if include_archived else "AND archived = FALSE"
        rows = self.postgres.execute(
            f"""
            SELECT * FROM clients
            WHERE owner_id = %s {archived_clause}
            ORDER BY name
            LIMIT %s OFFSET %s
            """,
            (get_current_owner_id(), limit, offset)
        )

        return [Client.model_validate(row) for row in rows]

    def search(self, query: str, limit: int = 20) -> list[Client]:
        """
        Search active clients by name, email or phone (case-insensitive).

        Args:
            query: Search string
            limit: Maximum results

        Returns:
            Matching clients
        """
        pattern = contains_pattern(query)

        rows = self.postgres.execute(
            """
            SELECT * FROM clients
            WHERE owner_id = %s
              AND archived = FALSE
              AND (name ILIKE %s OR email ILIKE %s OR phone ILIKE %s)
            ORDER BY name
            LIMIT %s
            """,
            (get_current_owner_id(), pattern, pattern, pattern, limit)
        )

        return [Client.model_validate(row) for row in rows]
