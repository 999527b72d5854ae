"""Propagate the dealership owner identity through the call stack using contextvars."""

from contextvars import ContextVar
from uuid import UUID
from contextlib import contextmanager

_current_owner_id: ContextVar[UUID | None] = ContextVar("current_owner_id", default=None)


def get_current_owner_id() -> UUID:
    """
    Get the owning account ID from context.

    Raises RuntimeError if no owner context is set. Every invoice, client
    and product query is scoped to an owner, so reaching owner-scoped code
    without one is a bug.
    """
    owner_id = _current_owner_id.get()
    if owner_id is None:
        raise RuntimeError(
            "No owner context set. This usually means owner-scoped code "
            "was called outside of an authenticated request."
        )
    return owner_id


def peek_current_owner_id() -> UUID | None:
    """Owner ID if one is set, None otherwise. Never raises."""
    return _current_owner_id.get()


def set_current_owner_id(owner_id: UUID) -> None:
    """
    Set the owner ID in context.

    Called by auth middleware after validating the session.
    """
    _current_owner_id.set(owner_id)


def clear_current_owner_id() -> None:
    """
    Clear owner context.

    Must be called in a finally block so the owner never leaks
    into the next request handled by the same worker.
    """
    _current_owner_id.set(None)


@contextmanager
def owner_context(owner_id: UUID):
    """
    Temporarily act as the given owner.

    Useful for tests, exports run outside a request, and admin tooling:

        with owner_context(dealership_id):
            invoices = invoice_service.list(paid=False)
    """
    previous = _current_owner_id.get()
    set_current_owner_id(owner_id)
    try:
        yield
    finally:
        if previous is None:
            clear_current_owner_id()
        else:
            set_current_owner_id(previous)
