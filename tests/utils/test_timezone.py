"""Tests for utils/timezone.py - UTC-everywhere time handling and invoice dates."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from utils.timezone import now_utc, parse_invoice_date, to_utc, today_utc


class TestNowUtc:
    """Tests for now_utc()."""

    def test_returns_timezone_aware(self):
        assert now_utc().tzinfo is not None

    def test_is_utc(self):
        assert now_utc().tzinfo == timezone.utc

    def test_today_is_utc_date(self):
        assert today_utc() in {now_utc().date(), datetime.now(timezone.utc).date()}


class TestToUtc:
    """Tests for to_utc()."""

    def test_raises_on_naive(self):
        """Naive datetime must raise ValueError."""
        with pytest.raises(ValueError, match="naive"):
            to_utc(datetime(2024, 1, 1, 12, 0, 0))

    def test_converts_other_timezone(self):
        """Zurich 12:00 in January is UTC 11:00."""
        zurich = datetime(2024, 1, 1, 12, 0, 0, tzinfo=ZoneInfo("Europe/Zurich"))

        result = to_utc(zurich)

        assert result.tzinfo == timezone.utc
        assert result.hour == 11


class TestParseInvoiceDate:
    """Tests for parse_invoice_date()."""

    def test_plain_date(self):
        assert parse_invoice_date("2024-03-01") == date(2024, 3, 1)

    def test_browser_timestamp(self):
        """JavaScript toISOString() output."""
        assert parse_invoice_date("2024-03-01T00:00:00.000Z") == date(2024, 3, 1)

    def test_offset_timestamp_uses_utc_calendar_date(self):
        """23:30 at UTC-2 is already the next day in UTC."""
        assert parse_invoice_date("2024-03-01T23:30:00-02:00") == date(2024, 3, 2)

    def test_cairo_evening_is_same_utc_day(self):
        cairo = datetime(2024, 3, 1, 20, 0, tzinfo=ZoneInfo("Africa/Cairo"))
        assert parse_invoice_date(cairo) == date(2024, 3, 1)

    def test_date_passes_through(self):
        assert parse_invoice_date(date(2024, 3, 1)) == date(2024, 3, 1)

    @pytest.mark.parametrize("value", ["", "   ", "01/03/2024", "yesterday"])
    def test_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            parse_invoice_date(value)
