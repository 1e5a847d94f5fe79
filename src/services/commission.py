"""
Commission breakdown engine.

Pipeline (fixed order, each stage feeds the next):
    sale price -> gross -> partnership -> brokerage split -> referral out
    -> referral in (opt-in) -> transaction fee -> custom deductions -> net

Missing or non-numeric inputs count as zero. The engine never raises.

Usage:
    data = CommissionInput.from_record(deal_row)
    breakdown = calculate_commission_breakdown(data)
    net = calculate_net_commission(deal_row)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Union

ZERO = Decimal("0")
ONE = Decimal("1")

PAYOUT_STANDARD = "standard"
PAYOUT_PARTNERSHIP = "partnership"
PAYOUT_TIERED = "tiered"

DEDUCTION_FLAT = "flat"
DEDUCTION_PERCENTAGE = "percentage"


def _num(value: Any) -> Decimal:
    """Coerce a numeric input to Decimal; anything unusable becomes zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return ZERO
    else:
        return ZERO
    if not result.is_finite():
        return ZERO
    return result


def _field(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


# ── Input types ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TieredSplit:
    """Brokerage split for sale prices in [min_amount, max_amount]."""
    min_amount: Decimal = ZERO
    max_amount: Optional[Decimal] = None  # None = unbounded
    split_rate: Decimal = ZERO

    @classmethod
    def from_record(cls, record: Any) -> "TieredSplit":
        max_amount = _field(record, "max_amount")
        return cls(
            min_amount=_num(_field(record, "min_amount")),
            max_amount=None if max_amount is None else _num(max_amount),
            split_rate=_num(_field(record, "split_rate")),
        )


@dataclass(frozen=True)
class CustomDeduction:
    name: str = ""
    type: str = DEDUCTION_FLAT
    value: Decimal = ZERO
    apply_order: int = 0

    @classmethod
    def from_record(cls, record: Any) -> "CustomDeduction":
        apply_order = _field(record, "apply_order")
        deduction_type = _field(record, "type") or DEDUCTION_FLAT
        return cls(
            name=str(_field(record, "name") or ""),
            type=getattr(deduction_type, "value", deduction_type),
            value=_num(_field(record, "value")),
            apply_order=int(apply_order) if isinstance(apply_order, (int, float)) else 0,
        )


@dataclass(frozen=True)
class StandardPayout:
    kind: str = PAYOUT_STANDARD


@dataclass(frozen=True)
class PartnershipPayout:
    """A partner is paid split_rate of the gross before the brokerage split."""
    split_rate: Decimal = ZERO
    kind: str = PAYOUT_PARTNERSHIP


@dataclass(frozen=True)
class TieredPayout:
    """Brokerage split resolved from the sale price bracket."""
    tiers: tuple[TieredSplit, ...] = ()
    kind: str = PAYOUT_TIERED


Payout = Union[StandardPayout, PartnershipPayout, TieredPayout]


@dataclass(frozen=True)
class CommissionInput:
    actual_sale_price: Decimal = ZERO
    expected_sale_price: Decimal = ZERO
    gross_commission_rate: Decimal = ZERO
    brokerage_split_rate: Decimal = ZERO
    referral_out_rate: Decimal = ZERO
    referral_in_rate: Decimal = ZERO
    transaction_fee: Decimal = ZERO
    payout: Payout = field(default_factory=StandardPayout)
    custom_deductions: tuple[CustomDeduction, ...] = ()

    @classmethod
    def from_record(cls, record: Any) -> "CommissionInput":
        """Build an input from a dict, ORM row or schema.

        This is the only place numeric defaults are applied. Fields that do
        not belong to the selected payout structure are ignored.
        """
        if isinstance(record, CommissionInput):
            return record

        return cls(
            actual_sale_price=_num(_field(record, "actual_sale_price")),
            expected_sale_price=_num(_field(record, "expected_sale_price")),
            gross_commission_rate=_num(_field(record, "gross_commission_rate")),
            brokerage_split_rate=_num(_field(record, "brokerage_split_rate")),
            referral_out_rate=_num(_field(record, "referral_out_rate")),
            referral_in_rate=_num(_field(record, "referral_in_rate")),
            transaction_fee=_num(_field(record, "transaction_fee")),
            payout=build_payout(
                _field(record, "payout_structure"),
                partnership_split_rate=_field(record, "partnership_split_rate"),
                tiered_splits=_field(record, "tiered_splits"),
            ),
            custom_deductions=tuple(
                CustomDeduction.from_record(d)
                for d in (_field(record, "custom_deductions") or ())
            ),
        )

    @classmethod
    def for_deal(
        cls,
        deal: Any,
        lead_source: Any = None,
        deductions: Iterable[Any] = (),
    ) -> "CommissionInput":
        """Input for a stored deal.

        Rates come from the deal itself, the payout structure from its lead
        source and the deductions from the workspace.
        """
        payout: Payout = StandardPayout()
        if lead_source is not None:
            payout = build_payout(
                getattr(lead_source, "payout_structure", None),
                partnership_split_rate=getattr(lead_source, "partnership_split_rate", None),
                tiered_splits=getattr(lead_source, "tiered_splits", None),
            )

        return cls(
            actual_sale_price=_num(getattr(deal, "actual_sale_price", None)),
            expected_sale_price=_num(getattr(deal, "expected_sale_price", None)),
            gross_commission_rate=_num(getattr(deal, "gross_commission_rate", None)),
            brokerage_split_rate=_num(getattr(deal, "brokerage_split_rate", None)),
            referral_out_rate=_num(getattr(deal, "referral_out_rate", None)),
            referral_in_rate=_num(getattr(deal, "referral_in_rate", None)),
            transaction_fee=_num(getattr(deal, "transaction_fee", None)),
            payout=payout,
            custom_deductions=tuple(CustomDeduction.from_record(d) for d in deductions),
        )


def build_payout(
    structure: Any,
    partnership_split_rate: Any = None,
    tiered_splits: Any = None,
) -> Payout:
    structure = getattr(structure, "value", structure)
    if structure == PAYOUT_TIERED and tiered_splits:
        return TieredPayout(tiers=tuple(TieredSplit.from_record(t) for t in tiered_splits))
    if structure == PAYOUT_PARTNERSHIP:
        return PartnershipPayout(split_rate=_num(partnership_split_rate))
    return StandardPayout()


# ── Result containers ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DeductionDetail:
    name: str
    amount: Decimal


@dataclass(frozen=True)
class DeductionResult:
    final_amount: Decimal
    total: Decimal
    details: tuple[DeductionDetail, ...] = ()


@dataclass(frozen=True)
class CommissionBreakdown:
    sale_price: Decimal
    gross: Decimal
    after_partnership: Decimal
    after_brokerage: Decimal
    after_referral_out: Decimal
    after_referral_in: Decimal
    transaction_fee: Decimal
    custom_deductions: Decimal
    deduction_details: tuple[DeductionDetail, ...]
    net: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "sale_price": self.sale_price,
            "gross": self.gross,
            "after_partnership": self.after_partnership,
            "after_brokerage": self.after_brokerage,
            "after_referral_out": self.after_referral_out,
            "after_referral_in": self.after_referral_in,
            "transaction_fee": self.transaction_fee,
            "custom_deductions": self.custom_deductions,
            "deduction_details": [
                {"name": d.name, "amount": d.amount} for d in self.deduction_details
            ],
            "net": self.net,
        }


# ── Stages ───────────────────────────────────────────────────────────────────

def get_tiered_split_rate(
    sale_price: Decimal,
    tiers: Iterable[TieredSplit],
    default_rate: Decimal,
) -> Decimal:
    """Brokerage split rate for sale_price.

    Tiers are matched in ascending min_amount order with inclusive bounds.
    A price above every tier uses the last (highest) tier.
    """
    ordered = sorted(tiers, key=lambda t: t.min_amount)
    if not ordered:
        return default_rate

    for tier in ordered:
        if sale_price >= tier.min_amount and (
            tier.max_amount is None or sale_price <= tier.max_amount
        ):
            return tier.split_rate

    return ordered[-1].split_rate


def apply_custom_deductions(
    amount: Decimal,
    deductions: Iterable[CustomDeduction],
) -> DeductionResult:
    """Apply deductions in apply_order against a shrinking balance."""
    remaining = amount
    total = ZERO
    details: list[DeductionDetail] = []

    for deduction in sorted(deductions, key=lambda d: d.apply_order):
        if deduction.type == DEDUCTION_FLAT:
            deducted = min(deduction.value, remaining)
        else:
            deducted = remaining * deduction.value

        remaining -= deducted
        total += deducted
        details.append(DeductionDetail(name=deduction.name, amount=deducted))

    return DeductionResult(
        final_amount=max(ZERO, remaining),
        total=total,
        details=tuple(details),
    )


def select_sale_price(data: CommissionInput, prefer_actual: bool = True) -> Decimal:
    if prefer_actual:
        return data.actual_sale_price or data.expected_sale_price
    return data.expected_sale_price or data.actual_sale_price


# ── Public API ───────────────────────────────────────────────────────────────

def calculate_commission_breakdown(
    record: Any,
    prefer_actual: bool = True,
    include_referral_in: bool = False,
) -> CommissionBreakdown:
    data = CommissionInput.from_record(record)
    payout = data.payout

    sale_price = select_sale_price(data, prefer_actual)
    gross = sale_price * data.gross_commission_rate

    after_partnership = gross
    if isinstance(payout, PartnershipPayout) and payout.split_rate:
        after_partnership = gross * (ONE - payout.split_rate)

    if isinstance(payout, TieredPayout) and payout.tiers:
        brokerage_split = get_tiered_split_rate(
            sale_price, payout.tiers, data.brokerage_split_rate
        )
    else:
        brokerage_split = data.brokerage_split_rate

    after_brokerage = after_partnership * (ONE - brokerage_split)

    after_referral_out = after_brokerage
    if data.referral_out_rate > 0:
        after_referral_out = after_brokerage * (ONE - data.referral_out_rate)

    after_referral_in = after_referral_out
    if include_referral_in and data.referral_in_rate > 0:
        after_referral_in = after_referral_out * (ONE + data.referral_in_rate)

    after_transaction_fee = max(ZERO, after_referral_in - data.transaction_fee)

    deductions = apply_custom_deductions(after_transaction_fee, data.custom_deductions)

    return CommissionBreakdown(
        sale_price=sale_price,
        gross=gross,
        after_partnership=after_partnership,
        after_brokerage=after_brokerage,
        after_referral_out=after_referral_out,
        after_referral_in=after_referral_in,
        transaction_fee=data.transaction_fee,
        custom_deductions=deductions.total,
        deduction_details=deductions.details,
        net=deductions.final_amount,
    )


def calculate_net_commission(
    record: Any,
    prefer_actual: bool = True,
    include_referral_in: bool = False,
) -> Decimal:
    return calculate_commission_breakdown(
        record,
        prefer_actual=prefer_actual,
        include_referral_in=include_referral_in,
    ).net


def calculate_actual_gci(record: Any) -> Decimal:
    return calculate_net_commission(record, prefer_actual=True)


def calculate_expected_gci(record: Any) -> Decimal:
    return calculate_net_commission(record, prefer_actual=False)


def calculate_gross_commission(record: Any, prefer_actual: bool = True) -> Decimal:
    return calculate_commission_breakdown(record, prefer_actual=prefer_actual).gross
