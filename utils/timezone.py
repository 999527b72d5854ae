"""UTC-everywhere time handling plus the calendar-date helpers invoices need."""

from datetime import date, datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def today_utc() -> date:
    """Current calendar date in UTC. Default issue date for new invoices."""
    return now_utc().date()


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def parse_invoice_date(value: str | date | datetime) -> date:
    """
    Parse an invoice issue date.

    Accepts a plain ``YYYY-MM-DD`` string, a full ISO 8601 timestamp
    (``2024-03-01T00:00:00.000Z`` as browsers send it), or a date/datetime.
    Timestamps are converted to UTC before the calendar date is taken, so
    the same instant always maps to the same issue date.

    Raises ValueError for anything else.
    """
    if isinstance(value, datetime):
        return to_utc(value).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value

    text = value.strip()
    if not text:
        raise ValueError("Invoice date is required")

    if "T" not in text and " " not in text:
        return date.fromisoformat(text)

    dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    return to_utc(dt).date() if dt.tzinfo else dt.date()
