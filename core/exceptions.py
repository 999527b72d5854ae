"""Typed exceptions for invoice drafting, persistence and export."""


class BillingError(Exception):
    """Base class for all invoice engine errors."""


class ValidationError(BillingError):
    """
    Input is missing or malformed. Blocks the save.

    ``field`` names the offending input (``client``, ``items``,
    ``items.0.quantity``...) so callers can surface the message next to it.
    """

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class DuplicateNumberError(BillingError):
    """
    The owner already has an invoice with this number.

    The user must pick a new number. Nothing is renumbered automatically.
    """

    def __init__(self, number: str):
        self.number = number
        super().__init__(f"Invoice number {number} already exists")


class ClientOwnershipError(BillingError):
    """Referenced client does not exist or belongs to another owner. Fatal to the save."""

    def __init__(self, client_id):
        self.client_id = client_id
        super().__init__(f"Client {client_id} not found or doesn't belong to this account")


class NotFoundError(BillingError):
    """Entity does not exist under the current owner."""


class NetworkError(BillingError):
    """
    Transport failure talking to the billing API.

    Recoverable by retrying the same call. The draft is never cleared.
    """


class RenderError(BillingError):
    """PDF rendering failed. Reported to the user, editing continues."""
