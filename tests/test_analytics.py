"""
Tests for reporting aggregations.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

from src.services.analytics import (
    closed_deals_by_month,
    closed_in_range,
    date_range,
    days_in_stage,
    is_stalled,
    lead_source_summary,
)
from src.services.commission import calculate_commission_breakdown

D = Decimal


def _deal(status="closed", **kwargs):
    defaults = {
        "status": SimpleNamespace(value=status),
        "lead_source_id": 1,
        "actual_sale_price": D("500000"),
        "gross_commission_rate": D("0.03"),
        "brokerage_split_rate": D("0.2"),
        "transaction_fee": D("0"),
        "close_date": None,
        "closed_at": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── closed_deals_by_month ────────────────────────────────


class TestClosedDealsByMonth:
    def test_buckets_by_close_date(self):
        deals = [
            _deal(close_date=date(2024, 3, 10)),
            _deal(close_date=date(2024, 3, 28)),
            _deal(close_date=date(2024, 11, 1)),
        ]
        report = closed_deals_by_month(deals, 2024, calculate_commission_breakdown)
        assert len(report.months) == 12
        assert report.months[2].deals == 2
        assert report.months[2].volume == D("1000000")
        assert report.months[2].gci == D("24000")
        assert report.months[10].deals == 1
        assert report.total_deals == 3
        assert report.total_gci == D("36000")

    def test_close_date_wins_over_closed_at(self):
        deal = _deal(
            close_date=date(2024, 12, 31),
            closed_at=datetime(2025, 1, 3, tzinfo=timezone.utc),
        )
        assert closed_deals_by_month([deal], 2024, calculate_commission_breakdown).total_deals == 1
        assert closed_deals_by_month([deal], 2025, calculate_commission_breakdown).total_deals == 0

    def test_closed_at_fallback(self):
        deal = _deal(closed_at=datetime(2024, 7, 4, 15, tzinfo=timezone.utc))
        report = closed_deals_by_month([deal], 2024, calculate_commission_breakdown)
        assert report.months[6].deals == 1

    def test_only_closed_stage_counts(self):
        deals = [
            _deal(status="in_progress", close_date=date(2024, 5, 1)),
            _deal(status="dead", close_date=date(2024, 5, 1)),
            _deal(close_date=None, closed_at=None),
        ]
        assert closed_deals_by_month(deals, 2024, calculate_commission_breakdown).total_deals == 0

    def test_yearly_averages_and_sides(self):
        utc = timezone.utc
        deals = [
            _deal(deal_type="buyer", close_date=date(2024, 3, 10), created_at=datetime(2024, 2, 9, tzinfo=utc)),
            _deal(
                deal_type="buyer_and_seller",
                actual_sale_price=D("300000"),
                close_date=date(2024, 5, 1),
                created_at=datetime(2024, 4, 21, tzinfo=utc),
            ),
            # created after the close date: no duration
            _deal(deal_type="seller", close_date=date(2024, 6, 1), created_at=datetime(2024, 6, 5, tzinfo=utc)),
        ]
        report = closed_deals_by_month(
            deals, 2024, calculate_commission_breakdown, now=datetime(2025, 1, 1, tzinfo=utc)
        )
        assert report.total_volume == D("1300000")
        assert report.avg_sale_price == D("433333.33")
        assert report.total_gci == D("31200")
        assert report.avg_commission == D("10400.00")
        assert report.buyer_deals == 2
        assert report.seller_deals == 2
        assert report.avg_days_to_close == 20.0

    def test_empty_year_averages_are_zero(self):
        report = closed_deals_by_month([], 2024, calculate_commission_breakdown)
        assert report.avg_sale_price == D("0")
        assert report.avg_commission == D("0")
        assert report.avg_days_to_close == 0.0

    def test_closing_this_month(self):
        now = datetime(2024, 6, 15, tzinfo=timezone.utc)
        deals = [
            _deal(status="in_progress", close_date=date(2024, 6, 20)),
            _deal(close_date=date(2024, 6, 2)),
            _deal(status="new", close_date=date(2024, 6, 25)),
            _deal(status="dead", close_date=date(2024, 6, 3)),
            _deal(status="in_progress", close_date=date(2024, 7, 1)),
        ]
        report = closed_deals_by_month(deals, 2024, calculate_commission_breakdown, now=now)
        assert report.closing_this_month == 2
        assert report.closing_this_month_gci == D("24000")

        past = closed_deals_by_month(deals, 2023, calculate_commission_breakdown, now=now)
        assert past.closing_this_month == 0

    def test_goal_progress(self):
        now = datetime(2024, 10, 5, tzinfo=timezone.utc)
        deals = [_deal(close_date=date(2024, 3, 10))]
        report = closed_deals_by_month(
            deals, 2024, calculate_commission_breakdown, now=now, gci_goal=D("100000")
        )
        assert report.goal_progress == 12.0
        assert report.remaining_to_goal == D("88000")
        assert report.remaining_months == 3
        assert report.needed_per_month == D("29333.33")

    def test_no_goal(self):
        report = closed_deals_by_month(
            [_deal(close_date=date(2024, 3, 10))], 2024, calculate_commission_breakdown
        )
        assert report.goal_progress == 0.0
        assert report.needed_per_month == D("0")


# ── lead_source_summary ──────────────────────────────────


class TestLeadSourceSummary:
    def test_conversion_and_gci(self):
        lead_sources = [SimpleNamespace(id=1, name="Zillow"), SimpleNamespace(id=2, name="Referral")]
        deals = [
            _deal(),
            _deal(),
            _deal(status="dead"),
            _deal(status="new"),
            _deal(status="closed", lead_source_id=2),
        ]
        stats = {s.name: s for s in lead_source_summary(deals, lead_sources, calculate_commission_breakdown)}

        zillow = stats["Zillow"]
        assert zillow.total == 4
        assert zillow.closed == 2
        assert zillow.dead == 1
        assert zillow.conversion_rate == 50.0
        assert zillow.net_gci == D("24000")
        assert stats["Referral"].conversion_rate == 100.0

    def test_open_deals_count_against_conversion(self):
        lead_sources = [SimpleNamespace(id=1, name="Zillow")]
        deals = [_deal(), _deal(status="new"), _deal(status="new"), _deal(status="new")]
        stats = lead_source_summary(deals, lead_sources, calculate_commission_breakdown)
        assert stats[0].conversion_rate == 25.0

    def test_sorted_by_net_gci(self):
        lead_sources = [
            SimpleNamespace(id=1, name="Open House"),
            SimpleNamespace(id=2, name="Referral"),
            SimpleNamespace(id=3, name="Zillow"),
        ]
        deals = [
            _deal(lead_source_id=2, actual_sale_price=D("300000")),
            _deal(lead_source_id=3, actual_sale_price=D("900000")),
            _deal(status="new", lead_source_id=1),
        ]
        stats = lead_source_summary(deals, lead_sources, calculate_commission_breakdown)
        assert [s.name for s in stats] == ["Zillow", "Referral", "Open House"]

    def test_unassigned_and_empty_sources(self):
        lead_sources = [SimpleNamespace(id=1, name="Zillow")]
        stats = lead_source_summary(
            [_deal(lead_source_id=None)], lead_sources, calculate_commission_breakdown
        )
        by_name = {s.name: s for s in stats}
        assert by_name["Zillow"].total == 0
        assert by_name["Zillow"].conversion_rate == 0.0
        assert by_name["Unassigned"].closed == 1


# ── closed_in_range ──────────────────────────────────────


class TestClosedInRange:
    def test_counts_closes_inside_inclusive_range(self):
        deals = [
            _deal(close_date=date(2024, 3, 10)),
            _deal(close_date=date(2024, 5, 1)),
            _deal(closed_at=datetime(2024, 5, 31, 23, tzinfo=timezone.utc)),
            _deal(close_date=date(2024, 6, 1)),
            _deal(status="new"),
        ]
        summary = closed_in_range(deals, date(2024, 3, 1), date(2024, 5, 31), calculate_commission_breakdown)
        assert summary.closed_deals == 3
        assert summary.volume == D("1500000")
        assert summary.gci == D("36000")
        assert summary.avg_commission == D("12000.00")
        assert summary.total_leads == 5
        assert summary.conversion_rate == 60.0

    def test_empty(self):
        summary = closed_in_range([], date(2024, 1, 1), date(2024, 12, 31), calculate_commission_breakdown)
        assert summary.closed_deals == 0
        assert summary.conversion_rate == 0.0


# ── Date ranges and stage age ────────────────────────────


class TestDateRange:
    def test_this_month(self):
        assert date_range("this_month", date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_this_quarter(self):
        assert date_range("this_quarter", date(2024, 8, 15)) == (date(2024, 7, 1), date(2024, 9, 30))

    def test_last_30_days(self):
        assert date_range("last_30_days", date(2024, 3, 31)) == (date(2024, 3, 1), date(2024, 3, 31))

    def test_ytd_and_unknown(self):
        assert date_range("ytd", date(2024, 5, 5)) == (date(2024, 1, 1), date(2024, 5, 5))
        assert date_range("whatever", date(2024, 5, 5)) == (date(2024, 1, 1), date(2024, 5, 5))

    def test_custom(self):
        start, end = date(2023, 1, 1), date(2023, 6, 30)
        assert date_range("custom", date(2024, 5, 5), start, end) == (start, end)


class TestStageAge:
    def test_days_in_stage(self):
        now = datetime(2024, 6, 30, 12, tzinfo=timezone.utc)
        assert days_in_stage(now - timedelta(days=10, hours=3), now) == 10
        assert days_in_stage(None, now) == 0

    def test_stalled_after_threshold(self):
        now = datetime(2024, 6, 30, tzinfo=timezone.utc)
        assert is_stalled(now - timedelta(days=31), 30, now)
        assert not is_stalled(now - timedelta(days=30), 30, now)

    def test_naive_timestamps_from_sqlite(self):
        now = datetime(2024, 6, 30, tzinfo=timezone.utc)
        assert days_in_stage(datetime(2024, 6, 20), now) == 10
