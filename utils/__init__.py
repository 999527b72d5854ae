"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, today_utc, to_utc, parse_invoice_date
from utils.owner_context import (
    get_current_owner_id,
    peek_current_owner_id,
    set_current_owner_id,
    clear_current_owner_id,
    owner_context,
)
