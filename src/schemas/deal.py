"""
Deal schemas.

Commission figures are never accepted from the client; responses carry the
computed breakdown instead.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models.deal import DealType
from src.models.pipeline_status import LifecycleStage
from src.schemas.commission import CommissionBreakdownResponse

RATE = {"ge": 0, "le": 1}


class DealCreate(BaseModel):
    """Create a deal. Missing rates fall back to the workspace defaults."""

    client_name: str = Field(..., min_length=1, max_length=200)
    client_phone: Optional[str] = Field(None, max_length=50)
    client_email: Optional[str] = Field(None, max_length=255)
    property_address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip: Optional[str] = Field(None, max_length=20)
    deal_type: DealType
    lead_source_id: Optional[int] = None
    pipeline_status_id: Optional[int] = None

    expected_sale_price: Optional[Decimal] = Field(None, ge=0)
    actual_sale_price: Optional[Decimal] = Field(None, ge=0)
    gross_commission_rate: Optional[Decimal] = Field(None, **RATE)
    brokerage_split_rate: Optional[Decimal] = Field(None, **RATE)
    referral_out_rate: Optional[Decimal] = Field(None, **RATE)
    referral_in_rate: Optional[Decimal] = Field(None, **RATE)
    transaction_fee: Optional[Decimal] = Field(None, ge=0)
    close_date: Optional[date] = None


class DealUpdate(BaseModel):
    """Partial update; only the fields sent are changed."""

    client_name: Optional[str] = Field(None, min_length=1, max_length=200)
    client_phone: Optional[str] = Field(None, max_length=50)
    client_email: Optional[str] = Field(None, max_length=255)
    property_address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip: Optional[str] = Field(None, max_length=20)
    deal_type: Optional[DealType] = None
    lead_source_id: Optional[int] = None
    pipeline_status_id: Optional[int] = None

    expected_sale_price: Optional[Decimal] = Field(None, ge=0)
    actual_sale_price: Optional[Decimal] = Field(None, ge=0)
    gross_commission_rate: Optional[Decimal] = Field(None, **RATE)
    brokerage_split_rate: Optional[Decimal] = Field(None, **RATE)
    referral_out_rate: Optional[Decimal] = Field(None, **RATE)
    referral_in_rate: Optional[Decimal] = Field(None, **RATE)
    transaction_fee: Optional[Decimal] = Field(None, ge=0)
    close_date: Optional[date] = None
    archived_reason: Optional[str] = Field(None, max_length=2000)


class DealResponse(BaseModel):
    id: int
    user_id: int
    client_name: str
    client_phone: Optional[str]
    client_email: Optional[str]
    property_address: Optional[str]
    city: Optional[str]
    state: Optional[str]
    zip: Optional[str]
    deal_type: DealType
    lead_source_id: Optional[int]
    pipeline_status_id: Optional[int]
    status: LifecycleStage
    stage_entered_at: Optional[datetime]

    expected_sale_price: Optional[Decimal]
    actual_sale_price: Optional[Decimal]
    gross_commission_rate: Decimal
    brokerage_split_rate: Decimal
    referral_out_rate: Optional[Decimal]
    referral_in_rate: Optional[Decimal]
    transaction_fee: Decimal
    close_date: Optional[date]
    closed_at: Optional[datetime]
    archived_reason: Optional[str]
    created_at: datetime

    # Computed
    net_commission: Decimal = Decimal("0")
    days_in_stage: int = 0
    is_stalled: bool = False

    model_config = {"from_attributes": True}


class DealDetailResponse(DealResponse):
    """Deal with the full commission breakdown."""

    breakdown: CommissionBreakdownResponse


class DealListResponse(BaseModel):
    items: List[DealResponse]
    total: int
    page: int
    per_page: int
    pages: int


class RowErrorResponse(BaseModel):
    row: int
    errors: List[str]


class ImportResultResponse(BaseModel):
    """Outcome of a CSV import. Row numbers count the header as row 1."""

    success: int
    failed: int
    errors: List[RowErrorResponse] = []
