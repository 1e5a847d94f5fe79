"""
Deals API endpoints.

Agents see their own deals, team leads their team's, managers and admins
the whole workspace.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, Response, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user
from src.config import settings
from src.db import get_db
from src.models import (
    AuditAction,
    Deal,
    DealType,
    LeadSource,
    LifecycleStage,
    PipelineStatus,
    User,
    Workspace,
)
from src.schemas.commission import CommissionBreakdownResponse
from src.schemas.deal import (
    DealCreate,
    DealDetailResponse,
    DealListResponse,
    DealResponse,
    DealUpdate,
    ImportResultResponse,
)
from src.services.analytics import days_in_stage, is_stalled
from src.services.csv_parser import generate_example_csv
from src.services.deal_import import (
    CSVImportError,
    ImportDefaults,
    LeadSourceRef,
    PipelineStatusRef,
    import_deals,
)
from src.services.workspace_data import (
    CommissionContext,
    get_pipeline_status,
    get_visible_deal,
    load_commission_context,
    load_visible_user_ids,
)
from src.utils.audit import get_client_ip, log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/deals", tags=["Deals"])

TEMPLATE_FILENAME = "deals_import_template.csv"

# NOT NULL columns; a null in a PATCH body leaves them unchanged
REQUIRED_FIELDS = (
    "client_name",
    "deal_type",
    "gross_commission_rate",
    "brokerage_split_rate",
    "transaction_fee",
)


def _deal_response(deal: Deal, ctx: CommissionContext, now: datetime) -> DealResponse:
    response = DealResponse.model_validate(deal)
    response.net_commission = ctx.breakdown(deal).net
    response.days_in_stage = days_in_stage(deal.stage_entered_at, now)
    response.is_stalled = (
        deal.status not in (LifecycleStage.CLOSED, LifecycleStage.DEAD)
        and is_stalled(deal.stage_entered_at, settings.stalled_deal_days, now)
    )
    return response


def _deal_detail(deal: Deal, ctx: CommissionContext, now: datetime) -> DealDetailResponse:
    base = _deal_response(deal, ctx, now)
    return DealDetailResponse(
        **base.model_dump(),
        breakdown=CommissionBreakdownResponse.from_breakdown(ctx.breakdown(deal)),
    )


async def _check_lead_source(db: AsyncSession, workspace_id: int, lead_source_id: int) -> LeadSource:
    lead_source = await db.scalar(
        select(LeadSource).where(
            LeadSource.id == lead_source_id,
            LeadSource.workspace_id == workspace_id,
        )
    )
    if not lead_source:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Lead source not found",
        )
    return lead_source


async def _resolve_status(db: AsyncSession, workspace_id: int, status_id: int) -> PipelineStatus:
    pipeline_status = await get_pipeline_status(db, workspace_id, status_id)
    if not pipeline_status:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Pipeline status not found",
        )
    return pipeline_status


def _enter_stage(deal: Deal, stage: LifecycleStage, now: datetime) -> None:
    if deal.status != stage:
        deal.stage_entered_at = now
    deal.status = stage
    if stage == LifecycleStage.CLOSED and deal.closed_at is None:
        deal.closed_at = now


@router.get("", response_model=DealListResponse)
async def list_deals(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stage: Optional[LifecycleStage] = Query(None),
    lead_source_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
):
    """List deals visible to the current user."""
    visible_ids = await load_visible_user_ids(db, current_user)
    query = select(Deal).where(
        Deal.workspace_id == current_user.workspace_id,
        Deal.user_id.in_(visible_ids),
    )

    if stage is not None:
        query = query.where(Deal.status == stage)

    if lead_source_id is not None:
        query = query.where(Deal.lead_source_id == lead_source_id)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(Deal.created_at.desc(), Deal.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)
    deals = (await db.scalars(query)).all()

    ctx = await load_commission_context(db, current_user.workspace_id)
    now = datetime.now(timezone.utc)

    return DealListResponse(
        items=[_deal_response(deal, ctx, now) for deal in deals],
        total=total or 0,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
    )


@router.post("", response_model=DealDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_deal(
    request: Request,
    body: DealCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a deal owned by the current user."""
    workspace = await db.get(Workspace, current_user.workspace_id)
    now = datetime.now(timezone.utc)

    lead_source = None
    if body.lead_source_id is not None:
        lead_source = await _check_lead_source(db, current_user.workspace_id, body.lead_source_id)

    stage = LifecycleStage.NEW
    if body.pipeline_status_id is not None:
        pipeline_status = await _resolve_status(db, current_user.workspace_id, body.pipeline_status_id)
        stage = pipeline_status.lifecycle_stage

    values = body.model_dump()
    if values["gross_commission_rate"] is None:
        values["gross_commission_rate"] = workspace.default_gross_commission_rate
    if values["brokerage_split_rate"] is None:
        # the lead source's split is the starting point, then the workspace's
        if lead_source is not None:
            values["brokerage_split_rate"] = lead_source.brokerage_split_rate
        else:
            values["brokerage_split_rate"] = workspace.default_brokerage_split_rate
    if values["transaction_fee"] is None:
        values.pop("transaction_fee")

    deal = Deal(
        workspace_id=current_user.workspace_id,
        user_id=current_user.id,
        status=stage,
        stage_entered_at=now,
        closed_at=now if stage == LifecycleStage.CLOSED else None,
        **values,
    )
    db.add(deal)
    await db.flush()
    await db.refresh(deal)

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.CREATE_DEAL,
        target_type="deal",
        target_id=deal.id,
        action_metadata={"client_name": deal.client_name},
        ip_address=get_client_ip(request),
    )

    ctx = await load_commission_context(db, current_user.workspace_id)
    return _deal_detail(deal, ctx, now)


@router.get("/import/template")
async def download_import_template(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Example CSV listing the workspace's own pipeline statuses."""
    names = await db.scalars(
        select(PipelineStatus.name)
        .where(PipelineStatus.workspace_id == current_user.workspace_id)
        .order_by(PipelineStatus.sort_order)
    )
    content = generate_example_csv(names.all())
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.post("/import", response_model=ImportResultResponse)
async def import_deals_csv(
    request: Request,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Import deals from a CSV upload.

    Each valid row becomes a deal owned by the current user. A row that
    fails to save is reported like a validation error; the others are kept.
    """
    raw = await file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV file must be UTF-8 encoded",
        )

    workspace = await db.get(Workspace, current_user.workspace_id)
    lead_sources = await db.scalars(
        select(LeadSource).where(LeadSource.workspace_id == workspace.id)
    )
    statuses = await db.scalars(
        select(PipelineStatus).where(PipelineStatus.workspace_id == workspace.id)
    )

    try:
        result = import_deals(
            content,
            lead_sources=[LeadSourceRef(id=ls.id, name=ls.name) for ls in lead_sources],
            pipeline_statuses=[
                PipelineStatusRef(id=ps.id, name=ps.name, lifecycle_stage=ps.lifecycle_stage.value)
                for ps in statuses
            ],
            defaults=ImportDefaults(
                gross_commission_rate=workspace.default_gross_commission_rate,
                brokerage_split_rate=workspace.default_brokerage_split_rate,
                max_rows=settings.import_max_rows,
            ),
        )
    except CSVImportError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    for draft in result.drafts:
        values = draft.to_insert()
        values["deal_type"] = DealType(values["deal_type"])
        values["status"] = LifecycleStage(values["status"])
        try:
            async with db.begin_nested():
                db.add(
                    Deal(
                        workspace_id=workspace.id,
                        user_id=current_user.id,
                        **values,
                    )
                )
        except SQLAlchemyError as e:
            logger.warning(f"Import row {draft.row} failed to save: {e}")
            result.mark_failed(draft.row, "Failed to save deal")

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.IMPORT_DEALS,
        target_type="deal",
        action_metadata={
            "filename": file.filename,
            "success": result.success,
            "failed": result.failed,
        },
        ip_address=get_client_ip(request),
    )

    logger.info(
        f"User {current_user.id} imported {result.success} deals "
        f"({result.failed} failed) into workspace {workspace.id}"
    )
    return ImportResultResponse(**result.summary())


@router.get("/{deal_id}", response_model=DealDetailResponse)
async def get_deal(
    deal_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Deal with its commission breakdown."""
    deal = await get_visible_deal(db, current_user, deal_id)
    if not deal:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Deal not found",
        )

    ctx = await load_commission_context(db, current_user.workspace_id)
    return _deal_detail(deal, ctx, datetime.now(timezone.utc))


@router.patch("/{deal_id}", response_model=DealDetailResponse)
async def update_deal(
    request: Request,
    deal_id: int,
    body: DealUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deal = await get_visible_deal(db, current_user, deal_id)
    if not deal:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Deal not found",
        )

    now = datetime.now(timezone.utc)
    changes = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key not in REQUIRED_FIELDS
    }

    if changes.get("lead_source_id") is not None:
        await _check_lead_source(db, current_user.workspace_id, changes["lead_source_id"])

    if changes.get("pipeline_status_id") is not None:
        pipeline_status = await _resolve_status(db, current_user.workspace_id, changes["pipeline_status_id"])
        _enter_stage(deal, pipeline_status.lifecycle_stage, now)

    for field_name, value in changes.items():
        setattr(deal, field_name, value)

    await db.flush()
    await db.refresh(deal)

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.UPDATE_DEAL,
        target_type="deal",
        target_id=deal.id,
        action_metadata={"fields": sorted(changes)},
        ip_address=get_client_ip(request),
    )

    ctx = await load_commission_context(db, current_user.workspace_id)
    return _deal_detail(deal, ctx, now)


@router.delete("/{deal_id}")
async def delete_deal(
    request: Request,
    deal_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deal = await get_visible_deal(db, current_user, deal_id)
    if not deal:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Deal not found",
        )

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.DELETE_DEAL,
        target_type="deal",
        target_id=deal.id,
        action_metadata={"client_name": deal.client_name},
        ip_address=get_client_ip(request),
    )
    await db.delete(deal)

    return {"success": True, "message": "Deal deleted"}
