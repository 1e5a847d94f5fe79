"""
Tests for flexible date parsing and the UTC date basis used by analytics.
"""

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from src.services.dates import (
    in_year_utc,
    normalize_year,
    parse_flexible_date,
    to_close_date_utc,
    to_date_only_utc,
    to_datetime_utc,
    year_month_utc,
)


# ── parse_flexible_date ──────────────────────────────────


class TestParseFlexibleDate:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2024-12-15", "2024-12-15"),
            ("2024/1/5", "2024-01-05"),
            ("12/15/2024", "2024-12-15"),
            ("12/15/24", "2024-12-15"),
            ("1-5-99", "1999-01-05"),
            ("12.15.2024", "2024-12-15"),
            ("2024.12.15", "2024-12-15"),
            ("Dec 15, 2024", "2024-12-15"),
            ("December 15 2024", "2024-12-15"),
            ("sept 3, 2023", "2023-09-03"),
            ("15 December 2024", "2024-12-15"),
            ("  2024-12-15  ", "2024-12-15"),
        ],
    )
    def test_accepted_formats(self, raw, expected):
        assert parse_flexible_date(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "2024-02-30", "13/01/2024", "Foo 15, 2024", "tomorrow", "", "   ", None, "2024-12",
            "0050-01-01", "0099.12.31", "March 5, 0020",
        ],
    )
    def test_rejected(self, raw):
        assert parse_flexible_date(raw) is None

    def test_leap_day(self):
        assert parse_flexible_date("2024-02-29") == "2024-02-29"
        assert parse_flexible_date("2023-02-29") is None

    def test_year_pivot(self):
        assert normalize_year(70) == 1970
        assert normalize_year(69) == 2069
        assert normalize_year(2024) == 2024


# ── UTC date basis ───────────────────────────────────────


class TestCloseDateBasis:
    def test_close_date_wins_over_closed_at(self):
        deal = SimpleNamespace(
            close_date=date(2024, 12, 31),
            closed_at=datetime(2025, 1, 2, 10, 0, tzinfo=timezone.utc),
        )
        assert to_close_date_utc(deal) == datetime(2024, 12, 31, tzinfo=timezone.utc)

    def test_falls_back_to_closed_at(self):
        deal = {"close_date": None, "closed_at": "2025-01-02T10:00:00Z"}
        assert to_close_date_utc(deal) == datetime(2025, 1, 2, 10, 0, tzinfo=timezone.utc)

    def test_malformed_close_date_falls_back(self):
        deal = {"close_date": "12/31/2024", "closed_at": "2025-01-02T10:00:00+00:00"}
        assert to_close_date_utc(deal).year == 2025

    def test_neither_set(self):
        assert to_close_date_utc({}) is None

    def test_closed_at_converted_to_utc(self):
        est = timezone(timedelta(hours=-5))
        value = datetime(2024, 12, 31, 22, 0, tzinfo=est)
        assert year_month_utc(to_datetime_utc(value)) == (2025, 1)

    def test_naive_datetime_is_utc(self):
        assert to_datetime_utc(datetime(2024, 6, 1, 12)) == datetime(2024, 6, 1, 12, tzinfo=timezone.utc)

    def test_date_only_strings(self):
        assert to_date_only_utc("2024-06-01") == datetime(2024, 6, 1, tzinfo=timezone.utc)
        assert to_date_only_utc("2024-02-30") is None
        assert to_date_only_utc("") is None

    def test_in_year(self):
        assert in_year_utc(datetime(2024, 1, 1, tzinfo=timezone.utc), 2024)
        assert not in_year_utc(None, 2024)
