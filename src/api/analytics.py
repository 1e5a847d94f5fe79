"""
Analytics API endpoints.

Figures cover the deals the current user is allowed to see.
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.db import get_db
from src.models import Deal, LeadSource, User, Workspace
from src.schemas.analytics import (
    ClosedYearResponse,
    LeadSourceStatsResponse,
    MonthBucketResponse,
    RangeSummaryResponse,
)
from src.services.analytics import (
    DATE_RANGES,
    closed_deals_by_month,
    closed_in_range,
    date_range,
    lead_source_summary,
)
from src.services.workspace_data import load_commission_context, load_visible_user_ids

router = APIRouter(prefix="/analytics", tags=["Analytics"])

RANGE_PATTERN = "^(" + "|".join(DATE_RANGES) + ")$"


async def _visible_deals(db: AsyncSession, user: User) -> list[Deal]:
    visible_ids = await load_visible_user_ids(db, user)
    result = await db.scalars(
        select(Deal).where(
            Deal.workspace_id == user.workspace_id,
            Deal.user_id.in_(visible_ids),
        )
    )
    return list(result.all())


@router.get("/closed", response_model=ClosedYearResponse)
async def closed_by_month(
    year: Optional[int] = Query(None, ge=1970, le=9999),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Yearly closed-deal report, bucketed by close date (closed_at as fallback)."""
    now = datetime.now(timezone.utc)
    year = year or now.year
    deals = await _visible_deals(db, current_user)
    ctx = await load_commission_context(db, current_user.workspace_id)
    workspace = await db.get(Workspace, current_user.workspace_id)

    report = closed_deals_by_month(
        deals, year, ctx.breakdown, now=now, gci_goal=workspace.annual_gci_goal
    )

    return ClosedYearResponse(
        year=report.year,
        months=[
            MonthBucketResponse(month=m.month, deals=m.deals, volume=m.volume, gci=m.gci)
            for m in report.months
        ],
        total_deals=report.total_deals,
        total_volume=report.total_volume,
        total_gci=report.total_gci,
        avg_sale_price=report.avg_sale_price,
        avg_commission=report.avg_commission,
        buyer_deals=report.buyer_deals,
        seller_deals=report.seller_deals,
        avg_days_to_close=report.avg_days_to_close,
        closing_this_month=report.closing_this_month,
        closing_this_month_gci=report.closing_this_month_gci,
        gci_goal=report.gci_goal,
        goal_progress=report.goal_progress,
        remaining_to_goal=report.remaining_to_goal,
        needed_per_month=report.needed_per_month,
    )


@router.get("/summary", response_model=RangeSummaryResponse)
async def range_summary(
    range_: str = Query("ytd", alias="range", pattern=RANGE_PATTERN),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Closed deals, volume and GCI for a dashboard date range."""
    start, end = date_range(range_, datetime.now(timezone.utc).date(), start, end)
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start must not be after end",
        )

    deals = await _visible_deals(db, current_user)
    ctx = await load_commission_context(db, current_user.workspace_id)

    summary = closed_in_range(deals, start, end, ctx.breakdown)

    return RangeSummaryResponse(
        range=range_,
        start=summary.start,
        end=summary.end,
        closed_deals=summary.closed_deals,
        volume=summary.volume,
        gci=summary.gci,
        avg_commission=summary.avg_commission,
        total_leads=summary.total_leads,
        conversion_rate=summary.conversion_rate,
    )


@router.get("/lead-sources", response_model=List[LeadSourceStatsResponse])
async def lead_source_performance(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Lead source performance, highest net GCI first."""
    deals = await _visible_deals(db, current_user)
    lead_sources = await db.scalars(
        select(LeadSource)
        .where(LeadSource.workspace_id == current_user.workspace_id)
        .order_by(LeadSource.sort_order, LeadSource.name)
    )
    ctx = await load_commission_context(db, current_user.workspace_id)

    stats = lead_source_summary(deals, lead_sources.all(), ctx.breakdown)

    return [
        LeadSourceStatsResponse(
            lead_source_id=s.lead_source_id,
            name=s.name,
            total=s.total,
            closed=s.closed,
            dead=s.dead,
            closed_volume=s.closed_volume,
            net_gci=s.net_gci,
            conversion_rate=s.conversion_rate,
        )
        for s in stats
    ]
