"""Analytics response schemas."""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class MonthBucketResponse(BaseModel):
    month: int
    deals: int
    volume: Decimal
    gci: Decimal


class ClosedYearResponse(BaseModel):
    year: int
    months: List[MonthBucketResponse]
    total_deals: int
    total_volume: Decimal
    total_gci: Decimal
    avg_sale_price: Decimal
    avg_commission: Decimal
    buyer_deals: int
    seller_deals: int
    avg_days_to_close: float
    closing_this_month: int
    closing_this_month_gci: Decimal
    gci_goal: Decimal
    goal_progress: float
    remaining_to_goal: Decimal
    needed_per_month: Decimal


class RangeSummaryResponse(BaseModel):
    range: str
    start: date
    end: date
    closed_deals: int
    volume: Decimal
    gci: Decimal
    avg_commission: Decimal
    total_leads: int
    conversion_rate: float


class LeadSourceStatsResponse(BaseModel):
    lead_source_id: Optional[int]
    name: str
    total: int
    closed: int
    dead: int
    closed_volume: Decimal
    net_gci: Decimal
    conversion_rate: float
