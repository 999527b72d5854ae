"""Product catalog lookups for building invoice lines."""

import logging
from uuid import UUID

from clients.postgres_client import PostgresClient, contains_pattern
from core.models import Product
from utils.owner_context import get_current_owner_id

logger = logging.getLogger(__name__)


class ProductService:
    """Read access to the current owner's product catalog."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def get_by_id(self, product_id: UUID) -> Product | None:
        row = self.postgres.execute_single(
            "SELECT * FROM products WHERE id = %s AND owner_id = %s",
            (product_id, get_current_owner_id())
        )

        if row is None:
            return None

        return Product.model_validate(row)

    def list_active(self, search: str | None = None, limit: int = 100) -> list[Product]:
        """
        Products that can still be added to an invoice.

        Args:
            search: Optional case-insensitive match on name or description
            limit: Maximum results

        Returns:
            Active products ordered by name
        """
        params: list = [get_current_owner_id()]
        search_clause = ""
        if search:
            pattern = contains_pattern(search)
            search_clause = "AND (name ILIKE %s OR description ILIKE %s)"
            params.extend([pattern, pattern])
        params.append(limit)

        rows = self.postgres.execute(
            f"""
            SELECT * FROM products
            WHERE owner_id = %s AND archived = FALSE {search_clause}
            ORDER BY name
            LIMIT %s
            """,
            tuple(params)
        )

        return [Product.model_validate(row) for row in rows]
