"""Lead source schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models.lead_source import PayoutStructure
from src.schemas.commission import TieredSplitSchema


class LeadSourceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: Optional[str] = Field(None, max_length=50)
    sort_order: int = 0
    brokerage_split_rate: Decimal = Field(Decimal("0.20"), ge=0, le=1)
    payout_structure: PayoutStructure = PayoutStructure.STANDARD
    partnership_split_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    partnership_notes: Optional[str] = Field(None, max_length=2000)
    tiered_splits: Optional[List[TieredSplitSchema]] = None


class LeadSourceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = Field(None, max_length=50)
    sort_order: Optional[int] = None
    brokerage_split_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    payout_structure: Optional[PayoutStructure] = None
    partnership_split_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    partnership_notes: Optional[str] = Field(None, max_length=2000)
    tiered_splits: Optional[List[TieredSplitSchema]] = None


class LeadSourceResponse(BaseModel):
    id: int
    name: str
    category: Optional[str]
    sort_order: int
    brokerage_split_rate: Decimal
    payout_structure: PayoutStructure
    partnership_split_rate: Optional[Decimal]
    partnership_notes: Optional[str]
    tiered_splits: Optional[List[TieredSplitSchema]]
    created_at: datetime

    model_config = {"from_attributes": True}


def tiers_to_json(tiers: Optional[List[TieredSplitSchema]]) -> Optional[list]:
    """Tiers as plain JSON numbers for the tiered_splits column."""
    if tiers is None:
        return None
    return [
        {
            "min_amount": float(tier.min_amount),
            "max_amount": None if tier.max_amount is None else float(tier.max_amount),
            "split_rate": float(tier.split_rate),
        }
        for tier in tiers
    ]
