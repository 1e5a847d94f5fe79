"""
Tests for the commission breakdown engine.

Covers:
- Standard, partnership and tiered payout structures
- Referral out / referral in stages
- Transaction fee floor and custom deductions
- Wrapper functions and input coercion
"""

from decimal import Decimal
from types import SimpleNamespace

from src.services.commission import (
    CommissionInput,
    CustomDeduction,
    PartnershipPayout,
    StandardPayout,
    TieredPayout,
    TieredSplit,
    apply_custom_deductions,
    build_payout,
    calculate_actual_gci,
    calculate_commission_breakdown,
    calculate_expected_gci,
    calculate_gross_commission,
    calculate_net_commission,
    get_tiered_split_rate,
)

D = Decimal

TIERS = [
    {"min_amount": 300000, "max_amount": 599999, "split_rate": 0.20},
    {"min_amount": 0, "max_amount": 299999, "split_rate": 0.30},
    {"min_amount": 600000, "max_amount": 999999, "split_rate": 0.10},
]


def _deal(**kwargs):
    defaults = {
        "actual_sale_price": 500000,
        "gross_commission_rate": D("0.03"),
        "brokerage_split_rate": D("0.2"),
    }
    defaults.update(kwargs)
    return defaults


# ── Standard payout ──────────────────────────────────────


class TestStandardPayout:
    def test_net_with_transaction_fee(self):
        net = calculate_net_commission({
            "actual_sale_price": 500000,
            "gross_commission_rate": 0.03,
            "brokerage_split_rate": 0.2,
            "referral_out_rate": None,
            "transaction_fee": 500,
        })
        assert net == D("11500")

    def test_breakdown_exposes_every_stage(self):
        b = calculate_commission_breakdown(_deal(referral_out_rate=D("0.25"), transaction_fee=500))
        assert b.sale_price == D("500000")
        assert b.gross == D("15000")
        assert b.after_partnership == D("15000")
        assert b.after_brokerage == D("12000")
        assert b.after_referral_out == D("9000")
        assert b.after_referral_in == D("9000")
        assert b.transaction_fee == D("500")
        assert b.custom_deductions == 0
        assert b.deduction_details == ()
        assert b.net == D("8500")

    def test_transaction_fee_floors_at_zero(self):
        b = calculate_commission_breakdown(_deal(transaction_fee=50000))
        assert b.net == 0

    def test_partnership_fields_ignored_for_standard(self):
        b = calculate_commission_breakdown(_deal(partnership_split_rate=D("0.35")))
        assert b.after_partnership == b.gross


# ── Sale price selection ─────────────────────────────────


class TestSalePrice:
    def test_actual_preferred(self):
        data = _deal(actual_sale_price=500000, expected_sale_price=400000)
        assert calculate_commission_breakdown(data).sale_price == D("500000")

    def test_expected_used_when_actual_missing(self):
        data = _deal(actual_sale_price=None, expected_sale_price=400000)
        assert calculate_commission_breakdown(data).sale_price == D("400000")

    def test_zero_actual_falls_back_to_expected(self):
        data = _deal(actual_sale_price=0, expected_sale_price=400000)
        assert calculate_commission_breakdown(data).sale_price == D("400000")

    def test_prefer_expected(self):
        data = _deal(actual_sale_price=500000, expected_sale_price=400000)
        b = calculate_commission_breakdown(data, prefer_actual=False)
        assert b.sale_price == D("400000")

    def test_gci_wrappers(self):
        data = _deal(actual_sale_price=500000, expected_sale_price=400000)
        assert calculate_actual_gci(data) == D("12000")
        assert calculate_expected_gci(data) == D("9600")
        assert calculate_gross_commission(data) == D("15000")
        assert calculate_gross_commission(data, prefer_actual=False) == D("12000")


# ── Partnership payout ───────────────────────────────────


class TestPartnershipPayout:
    def test_partner_paid_before_brokerage(self):
        b = calculate_commission_breakdown(
            _deal(payout_structure="partnership", partnership_split_rate=D("0.35"))
        )
        assert b.gross == D("15000")
        assert b.after_partnership == D("9750")
        assert b.after_brokerage == D("7800")

    def test_zero_partner_rate_is_noop(self):
        b = calculate_commission_breakdown(_deal(payout_structure="partnership"))
        assert b.after_partnership == b.gross


# ── Tiered payout ────────────────────────────────────────


class TestTieredPayout:
    def test_tier_selected_by_price(self):
        b = calculate_commission_breakdown(_deal(payout_structure="tiered", tiered_splits=TIERS))
        # 500k falls in 300k-599,999 -> 20%
        assert b.after_brokerage == D("12000")

    def test_lowest_tier(self):
        b = calculate_commission_breakdown(
            _deal(actual_sale_price=200000, payout_structure="tiered", tiered_splits=TIERS)
        )
        assert b.after_brokerage == D("6000") * D("0.7")

    def test_bounds_are_inclusive(self):
        tiers = [TieredSplit.from_record(t) for t in TIERS]
        assert get_tiered_split_rate(D("299999"), tiers, D("0.5")) == D("0.3")
        assert get_tiered_split_rate(D("300000"), tiers, D("0.5")) == D("0.2")

    def test_price_above_every_tier_uses_last_tier(self):
        tiers = [TieredSplit.from_record(t) for t in TIERS]
        assert get_tiered_split_rate(D("2000000"), tiers, D("0.5")) == D("0.1")

    def test_open_ended_top_tier(self):
        tiers = [
            TieredSplit(min_amount=D("0"), max_amount=D("100000"), split_rate=D("0.3")),
            TieredSplit(min_amount=D("100001"), max_amount=None, split_rate=D("0.15")),
        ]
        assert get_tiered_split_rate(D("5000000"), tiers, D("0.5")) == D("0.15")

    def test_no_tiers_uses_default_rate(self):
        assert get_tiered_split_rate(D("100"), [], D("0.25")) == D("0.25")

    def test_tiered_without_tiers_is_standard(self):
        b = calculate_commission_breakdown(_deal(payout_structure="tiered", tiered_splits=[]))
        assert b.after_brokerage == D("12000")


# ── Referrals ────────────────────────────────────────────


class TestReferrals:
    def test_referral_in_excluded_by_default(self):
        b = calculate_commission_breakdown(_deal(referral_in_rate=D("0.1")))
        assert b.after_referral_in == b.after_referral_out

    def test_referral_in_opt_in_increases(self):
        b = calculate_commission_breakdown(_deal(referral_in_rate=D("0.1")), include_referral_in=True)
        assert b.after_referral_in == D("13200")
        assert b.net == D("13200")


# ── Custom deductions ────────────────────────────────────


class TestCustomDeductions:
    def test_applied_in_order_against_remaining_balance(self):
        deductions = [
            {"name": "E&O", "type": "percentage", "value": D("0.10"), "apply_order": 2},
            {"name": "Franchise", "type": "flat", "value": 1000, "apply_order": 1},
        ]
        b = calculate_commission_breakdown(_deal(custom_deductions=deductions))
        # 12000 - 1000 = 11000, then 10% of 11000
        assert [d.name for d in b.deduction_details] == ["Franchise", "E&O"]
        assert b.deduction_details[1].amount == D("1100")
        assert b.custom_deductions == D("2100")
        assert b.net == D("9900")

    def test_flat_capped_at_remaining(self):
        result = apply_custom_deductions(
            D("300"), [CustomDeduction(name="Desk fee", type="flat", value=D("500"))]
        )
        assert result.total == D("300")
        assert result.final_amount == 0

    def test_zero_value_deduction_changes_nothing(self):
        without = calculate_net_commission(_deal())
        with_zero = calculate_net_commission(
            _deal(custom_deductions=[{"name": "Nothing", "type": "flat", "value": 0}])
        )
        assert without == with_zero

    def test_enum_deduction_types_from_orm_rows(self):
        row = SimpleNamespace(
            name="Fee",
            type=SimpleNamespace(value="percentage"),
            value=D("0.5"),
            apply_order=0,
        )
        deduction = CustomDeduction.from_record(row)
        assert deduction.type == "percentage"


# ── Input coercion ───────────────────────────────────────


class TestInputCoercion:
    def test_empty_input_is_all_zero(self):
        b = calculate_commission_breakdown({})
        assert b.sale_price == 0
        assert b.net == 0

    def test_nan_and_garbage_become_zero(self):
        data = CommissionInput.from_record({
            "actual_sale_price": float("nan"),
            "gross_commission_rate": "0.03",
            "transaction_fee": float("inf"),
        })
        assert data.actual_sale_price == 0
        assert data.gross_commission_rate == 0
        assert data.transaction_fee == 0

    def test_from_orm_like_object(self):
        deal = SimpleNamespace(
            actual_sale_price=D("500000"),
            gross_commission_rate=D("0.03"),
            brokerage_split_rate=D("0.2"),
            transaction_fee=D("500"),
        )
        assert calculate_net_commission(deal) == D("11500")

    def test_for_deal_uses_lead_source_payout(self):
        deal = SimpleNamespace(**_deal())
        lead_source = SimpleNamespace(
            payout_structure=SimpleNamespace(value="partnership"),
            partnership_split_rate=D("0.5"),
            tiered_splits=None,
        )
        data = CommissionInput.for_deal(deal, lead_source=lead_source)
        assert isinstance(data.payout, PartnershipPayout)
        assert calculate_net_commission(data) == D("6000")

    def test_build_payout_variants(self):
        assert isinstance(build_payout(None), StandardPayout)
        assert isinstance(build_payout("tiered", tiered_splits=TIERS), TieredPayout)
        assert isinstance(build_payout("tiered"), StandardPayout)
        assert build_payout("partnership", partnership_split_rate=0.4).split_rate == D("0.4")
