"""
Date parsing for imports and reporting.

parse_flexible_date normalises the formats agents type into spreadsheets.
The *_utc helpers define the date basis used by analytics: every grouping is
done on UTC year/month, and a deal's close date wins over the timestamp that
was stamped when it moved to a closed stage.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Any, Optional

MONTH_NAMES = {
    "jan": 1,
    "january": 1,
    "feb": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "jun": 6,
    "june": 6,
    "jul": 7,
    "july": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
}

# Checked in this order; the first pattern that matches decides.
ISO_RE = re.compile(r"([0-9]{4})[/-]([0-9]{1,2})[/-]([0-9]{1,2})")
US_RE = re.compile(r"([0-9]{1,2})[/.-]([0-9]{1,2})[/.-]([0-9]{2}|[0-9]{4})")
DOTTED_ISO_RE = re.compile(r"([0-9]{4})\.([0-9]{1,2})\.([0-9]{1,2})")
MONTH_FIRST_RE = re.compile(r"([A-Za-z]+)[\s-]([0-9]{1,2}),?[\s-]*([0-9]{4})")
DAY_FIRST_RE = re.compile(r"([0-9]{1,2})[\s-]([A-Za-z]+),?[\s-]*([0-9]{4})")

DATE_ONLY_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def _build_iso(year: int, month: int, day: int) -> Optional[str]:
    # years 0000-0099 are rejected; two-digit years are pivoted before this
    if year < 100:
        return None
    try:
        value = date(year, month, day)
    except ValueError:
        return None
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def normalize_year(year: int) -> int:
    """Two-digit years pivot at 70: 70-99 -> 19xx, 00-69 -> 20xx."""
    if year < 100:
        return 1900 + year if year >= 70 else 2000 + year
    return year


def month_from_name(name: str) -> Optional[int]:
    return MONTH_NAMES.get(name.lower())


def parse_flexible_date(value: Optional[str]) -> Optional[str]:
    """Parse a user-entered date into YYYY-MM-DD, or None if unrecognised.

    Accepts 2024-12-15, 2024/12/15, 12/15/2024, 12-15-24, 12.15.2024,
    2024.12.15, Dec 15, 2024 and 15 December 2024. Calendar-invalid dates
    such as 2024-02-30 are rejected.
    """
    if not value:
        return None
    raw = value.strip()
    if not raw:
        return None

    normalized = re.sub(r"\s+", " ", raw)

    match = ISO_RE.fullmatch(normalized)
    if match:
        y, m, d = match.groups()
        return _build_iso(int(y), int(m), int(d))

    match = US_RE.fullmatch(normalized)
    if match:
        m, d, y = match.groups()
        return _build_iso(normalize_year(int(y)), int(m), int(d))

    match = DOTTED_ISO_RE.fullmatch(normalized)
    if match:
        y, m, d = match.groups()
        return _build_iso(int(y), int(m), int(d))

    match = MONTH_FIRST_RE.fullmatch(normalized)
    if match:
        month = month_from_name(match.group(1))
        if month:
            return _build_iso(int(match.group(3)), month, int(match.group(2)))

    match = DAY_FIRST_RE.fullmatch(normalized)
    if match:
        month = month_from_name(match.group(2))
        if month:
            return _build_iso(int(match.group(3)), month, int(match.group(1)))

    return None


# ── Analytics date basis ─────────────────────────────────────────────────────

def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_date_only_utc(value: Any) -> Optional[datetime]:
    """YYYY-MM-DD (or a date) as UTC midnight."""
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    trimmed = str(value).strip()
    if not trimmed or not DATE_ONLY_RE.fullmatch(trimmed):
        return None
    try:
        parsed = date.fromisoformat(trimmed)
    except ValueError:
        return None
    return datetime.combine(parsed, time.min, tzinfo=timezone.utc)


def to_datetime_utc(value: Any) -> Optional[datetime]:
    """Full timestamp in UTC. Naive values are taken to be UTC already."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    trimmed = str(value).strip()
    if not trimmed:
        return None
    if trimmed.endswith(("Z", "z")):
        trimmed = trimmed[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(trimmed)
    except ValueError:
        return None
    return _as_utc(parsed)


def to_close_date_utc(deal: Any) -> Optional[datetime]:
    """Effective close moment: close_date if set and well formed, else closed_at."""
    if isinstance(deal, dict):
        close_date = deal.get("close_date")
        closed_at = deal.get("closed_at")
    else:
        close_date = getattr(deal, "close_date", None)
        closed_at = getattr(deal, "closed_at", None)

    result = to_date_only_utc(close_date)
    if result is not None:
        return result
    return to_datetime_utc(closed_at)


def year_month_utc(value: datetime) -> tuple[int, int]:
    """(year, month) with month 1-12."""
    value = _as_utc(value)
    return value.year, value.month


def in_year_utc(value: Optional[datetime], year: int) -> bool:
    if value is None:
        return False
    return _as_utc(value).year == year
