"""Commission preview schemas."""

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from src.services.commission import CommissionBreakdown


class TieredSplitSchema(BaseModel):
    """One sale-price bracket of a tiered brokerage split."""

    min_amount: Decimal = Field(..., ge=0)
    max_amount: Optional[Decimal] = Field(None, ge=0)
    split_rate: Decimal = Field(..., ge=0, le=1)

    @model_validator(mode="after")
    def check_bounds(self) -> "TieredSplitSchema":
        if self.max_amount is not None and self.max_amount < self.min_amount:
            raise ValueError("max_amount must be greater than or equal to min_amount")
        return self


class CustomDeductionSchema(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: Literal["flat", "percentage"]
    value: Decimal = Field(..., ge=0)
    apply_order: int = 0


class CommissionRequest(BaseModel):
    """
    Ad-hoc commission input.

    Everything is optional: missing numbers count as zero.
    """

    actual_sale_price: Optional[Decimal] = None
    expected_sale_price: Optional[Decimal] = None
    gross_commission_rate: Optional[Decimal] = None
    brokerage_split_rate: Optional[Decimal] = None
    referral_out_rate: Optional[Decimal] = None
    referral_in_rate: Optional[Decimal] = None
    transaction_fee: Optional[Decimal] = None
    payout_structure: Optional[Literal["standard", "partnership", "tiered"]] = None
    partnership_split_rate: Optional[Decimal] = None
    tiered_splits: Optional[List[TieredSplitSchema]] = None
    custom_deductions: Optional[List[CustomDeductionSchema]] = None

    prefer_actual: bool = True
    include_referral_in: bool = False


class DeductionDetailResponse(BaseModel):
    name: str
    amount: Decimal


class CommissionBreakdownResponse(BaseModel):
    """Every intermediate figure of the payout calculation."""

    sale_price: Decimal
    gross: Decimal
    after_partnership: Decimal
    after_brokerage: Decimal
    after_referral_out: Decimal
    after_referral_in: Decimal
    transaction_fee: Decimal
    custom_deductions: Decimal
    deduction_details: List[DeductionDetailResponse] = []
    net: Decimal

    @classmethod
    def from_breakdown(cls, breakdown: CommissionBreakdown) -> "CommissionBreakdownResponse":
        return cls(**breakdown.to_dict())
