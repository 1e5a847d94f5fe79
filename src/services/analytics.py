"""
Reporting aggregations over deals.

All functions work on plain objects (ORM rows or SimpleNamespace) and take a
breakdown_for callable that returns the CommissionBreakdown of a deal, so the
caller decides which lead source and deductions apply.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Iterable, Optional

from src.services.commission import CommissionBreakdown
from src.services.dates import in_year_utc, to_close_date_utc, to_datetime_utc, year_month_utc

BreakdownFn = Callable[[Any], CommissionBreakdown]

CLOSED = "closed"
DEAD = "dead"
IN_PROGRESS = "in_progress"

# stages counted by "closing this month": under contract and closed
CLOSING_STAGES = (IN_PROGRESS, CLOSED)

BUYER_SIDES = ("buyer", "buyer_and_seller")
SELLER_SIDES = ("seller", "buyer_and_seller")

DATE_RANGES = ("this_month", "last_30_days", "this_quarter", "ytd", "custom")

CENT = Decimal("0.01")
SECONDS_PER_DAY = 86400


def _stage(deal: Any) -> Optional[str]:
    status = getattr(deal, "status", None)
    return getattr(status, "value", status)


def _deal_type(deal: Any) -> Optional[str]:
    deal_type = getattr(deal, "deal_type", None)
    return getattr(deal_type, "value", deal_type)


def _average(total: Decimal, count: int) -> Decimal:
    if not count:
        return Decimal("0")
    return (total / count).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class MonthBucket:
    month: int
    deals: int = 0
    volume: Decimal = Decimal("0")
    gci: Decimal = Decimal("0")


@dataclass
class LeadSourceStats:
    lead_source_id: Any
    name: str
    total: int = 0
    closed: int = 0
    dead: int = 0
    closed_volume: Decimal = Decimal("0")
    net_gci: Decimal = Decimal("0")
    conversion_rate: float = 0.0


@dataclass
class ClosedYearReport:
    year: int
    months: list[MonthBucket] = field(default_factory=list)
    buyer_deals: int = 0
    seller_deals: int = 0
    days_to_close_total: float = 0.0
    deals_with_duration: int = 0
    closing_this_month: int = 0
    closing_this_month_gci: Decimal = Decimal("0")
    gci_goal: Decimal = Decimal("0")
    remaining_months: int = 0

    @property
    def total_deals(self) -> int:
        return sum(m.deals for m in self.months)

    @property
    def total_volume(self) -> Decimal:
        return sum((m.volume for m in self.months), Decimal("0"))

    @property
    def total_gci(self) -> Decimal:
        return sum((m.gci for m in self.months), Decimal("0"))

    @property
    def avg_sale_price(self) -> Decimal:
        return _average(self.total_volume, self.total_deals)

    @property
    def avg_commission(self) -> Decimal:
        return _average(self.total_gci, self.total_deals)

    @property
    def avg_days_to_close(self) -> float:
        if not self.deals_with_duration:
            return 0.0
        return round(self.days_to_close_total / self.deals_with_duration, 1)

    @property
    def goal_progress(self) -> float:
        """Percent of the annual GCI goal reached; 0 when no goal is set."""
        if self.gci_goal <= 0:
            return 0.0
        return round(float(self.total_gci / self.gci_goal * 100), 1)

    @property
    def remaining_to_goal(self) -> Decimal:
        return max(Decimal("0"), self.gci_goal - self.total_gci)

    @property
    def needed_per_month(self) -> Decimal:
        if self.gci_goal <= 0:
            return Decimal("0")
        return _average(self.remaining_to_goal, self.remaining_months)


def closed_deals_by_month(
    deals: Iterable[Any],
    year: int,
    breakdown_for: BreakdownFn,
    now: Optional[datetime] = None,
    gci_goal: Any = None,
) -> ClosedYearReport:
    """
    Yearly closed-deal report bucketed by the UTC month of the effective
    close date (close_date, else closed_at).

    Besides the monthly buckets it carries buyer/seller sides, days from
    creation to close, the deals closing in the current month (only when
    year is the current year) and progress against gci_goal.
    """
    now = to_datetime_utc(now or datetime.now(timezone.utc))
    is_current_year = now.year == year

    report = ClosedYearReport(
        year=year,
        months=[MonthBucket(month=m) for m in range(1, 13)],
        gci_goal=Decimal(str(gci_goal or 0)),
        remaining_months=12 - now.month + 1 if is_current_year else 0,
    )

    for deal in deals:
        stage = _stage(deal)
        closed_on = to_close_date_utc(deal)
        if closed_on is None:
            continue

        closes_this_month = year_month_utc(closed_on) == (now.year, now.month)
        if is_current_year and closes_this_month and stage in CLOSING_STAGES:
            report.closing_this_month += 1
            report.closing_this_month_gci += breakdown_for(deal).net

        if stage != CLOSED or not in_year_utc(closed_on, year):
            continue

        _, month = year_month_utc(closed_on)
        breakdown = breakdown_for(deal)
        bucket = report.months[month - 1]
        bucket.deals += 1
        bucket.volume += breakdown.sale_price
        bucket.gci += breakdown.net

        deal_type = _deal_type(deal)
        if deal_type in BUYER_SIDES:
            report.buyer_deals += 1
        if deal_type in SELLER_SIDES:
            report.seller_deals += 1

        created_at = to_datetime_utc(getattr(deal, "created_at", None))
        if created_at is not None:
            days = (closed_on - created_at).total_seconds() / SECONDS_PER_DAY
            if days >= 0:
                report.days_to_close_total += days
                report.deals_with_duration += 1

    return report


def lead_source_summary(
    deals: Iterable[Any],
    lead_sources: Iterable[Any],
    breakdown_for: BreakdownFn,
) -> list[LeadSourceStats]:
    """Per lead source totals, highest net GCI first. Conversion = closed / total."""
    stats = {ls.id: LeadSourceStats(lead_source_id=ls.id, name=ls.name) for ls in lead_sources}

    for deal in deals:
        key = getattr(deal, "lead_source_id", None)
        if key not in stats:
            stats[key] = LeadSourceStats(lead_source_id=key, name="Unassigned")
        entry = stats[key]
        entry.total += 1

        stage = _stage(deal)
        if stage == CLOSED:
            breakdown = breakdown_for(deal)
            entry.closed += 1
            entry.closed_volume += breakdown.sale_price
            entry.net_gci += breakdown.net
        elif stage == DEAD:
            entry.dead += 1

    for entry in stats.values():
        entry.conversion_rate = round(entry.closed / entry.total * 100, 1) if entry.total else 0.0

    return sorted(stats.values(), key=lambda s: s.net_gci, reverse=True)


@dataclass
class RangeSummary:
    start: date
    end: date
    closed_deals: int = 0
    volume: Decimal = Decimal("0")
    gci: Decimal = Decimal("0")
    total_leads: int = 0

    @property
    def avg_commission(self) -> Decimal:
        return _average(self.gci, self.closed_deals)

    @property
    def conversion_rate(self) -> float:
        if not self.total_leads:
            return 0.0
        return round(self.closed_deals / self.total_leads * 100, 1)


def closed_in_range(
    deals: Iterable[Any],
    start: date,
    end: date,
    breakdown_for: BreakdownFn,
) -> RangeSummary:
    """Closed deals whose effective close date falls within [start, end]."""
    summary = RangeSummary(start=start, end=end)

    for deal in deals:
        summary.total_leads += 1
        if _stage(deal) != CLOSED:
            continue
        closed_on = to_close_date_utc(deal)
        if closed_on is None or not start <= closed_on.date() <= end:
            continue

        breakdown = breakdown_for(deal)
        summary.closed_deals += 1
        summary.volume += breakdown.sale_price
        summary.gci += breakdown.net

    return summary


# ── Date ranges and stage age ────────────────────────────────────────────────

def date_range(
    kind: str,
    today: date,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> tuple[date, date]:
    """Inclusive (start, end) for a dashboard range selector."""
    year_start = date(today.year, 1, 1)

    if kind == "this_month":
        last_day = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=1), today.replace(day=last_day)

    if kind == "last_30_days":
        return today - timedelta(days=30), today

    if kind == "this_quarter":
        first_month = (today.month - 1) // 3 * 3 + 1
        last_month = first_month + 2
        last_day = calendar.monthrange(today.year, last_month)[1]
        return date(today.year, first_month, 1), date(today.year, last_month, last_day)

    if kind == "custom":
        return custom_start or year_start, custom_end or today

    # ytd and anything unrecognised
    return year_start, today


def days_in_stage(stage_entered_at: Any, now: Optional[datetime] = None) -> int:
    entered = to_datetime_utc(stage_entered_at)
    if entered is None:
        return 0
    now = now or datetime.now(timezone.utc)
    return int((to_datetime_utc(now) - entered).total_seconds() // 86400)


def is_stalled(stage_entered_at: Any, threshold_days: int = 30, now: Optional[datetime] = None) -> bool:
    return days_in_stage(stage_entered_at, now) > threshold_days
