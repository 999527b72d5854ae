"""
Company profile reads.

The profile is edited on the settings screens; invoicing only needs to
read it (currency, language, tax rate, branding, section toggles).
"""

import logging

from clients.postgres_client import PostgresClient
from core.models import CompanyProfile
from utils.owner_context import get_current_owner_id

logger = logging.getLogger(__name__)


class CompanyService:
    """Read access to the current owner's company profile."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def get_profile(self) -> CompanyProfile:
        """
        Company profile of the current owner.

        Returns:
            Stored profile, or an all-defaults profile when the account has
            not filled in its settings yet.
        """
        owner_id = get_current_owner_id()
        row = self.postgres.execute_single(
            "SELECT * FROM company_profiles WHERE owner_id = %s",
            (owner_id,)
        )

        if row is None:
            logger.warning(f"No company profile for owner {owner_id}, using defaults")
            return CompanyProfile()

        return CompanyProfile.model_validate(row)
