"""
Lead source API endpoints.

Every member can read lead sources; sales managers and admins edit the
payout configuration.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_manager
from src.db import get_db
from src.models import AuditAction, Deal, LeadSource, User
from src.schemas.lead_source import (
    LeadSourceCreate,
    LeadSourceResponse,
    LeadSourceUpdate,
    tiers_to_json,
)
from src.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/lead-sources", tags=["Lead Sources"])


async def _get_lead_source(db: AsyncSession, workspace_id: int, lead_source_id: int) -> LeadSource:
    lead_source = await db.scalar(
        select(LeadSource).where(
            LeadSource.id == lead_source_id,
            LeadSource.workspace_id == workspace_id,
        )
    )
    if not lead_source:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Lead source not found",
        )
    return lead_source


async def _check_name_free(
    db: AsyncSession,
    workspace_id: int,
    name: str,
    exclude_id: int = None,
) -> None:
    query = select(LeadSource.id).where(
        LeadSource.workspace_id == workspace_id,
        func.lower(LeadSource.name) == name.lower().strip(),
    )
    if exclude_id is not None:
        query = query.where(LeadSource.id != exclude_id)

    if await db.scalar(query):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'Lead source "{name}" already exists',
        )


@router.get("", response_model=List[LeadSourceResponse])
async def list_lead_sources(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.scalars(
        select(LeadSource)
        .where(LeadSource.workspace_id == current_user.workspace_id)
        .order_by(LeadSource.sort_order, LeadSource.name)
    )
    return result.all()


@router.post("", response_model=LeadSourceResponse, status_code=status.HTTP_201_CREATED)
async def create_lead_source(
    request: Request,
    body: LeadSourceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    await _check_name_free(db, current_user.workspace_id, body.name)

    values = body.model_dump(exclude={"tiered_splits"})
    values["name"] = body.name.strip()
    lead_source = LeadSource(
        workspace_id=current_user.workspace_id,
        tiered_splits=tiers_to_json(body.tiered_splits),
        **values,
    )
    db.add(lead_source)
    await db.flush()
    await db.refresh(lead_source)

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.CREATE_LEAD_SOURCE,
        target_type="lead_source",
        target_id=lead_source.id,
        action_metadata={"name": lead_source.name},
        ip_address=get_client_ip(request),
    )

    return lead_source


@router.patch("/{lead_source_id}", response_model=LeadSourceResponse)
async def update_lead_source(
    request: Request,
    lead_source_id: int,
    body: LeadSourceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    lead_source = await _get_lead_source(db, current_user.workspace_id, lead_source_id)

    changes = body.model_dump(exclude_unset=True, exclude={"tiered_splits"})
    if "name" in changes:
        await _check_name_free(db, current_user.workspace_id, changes["name"], exclude_id=lead_source.id)
        changes["name"] = changes["name"].strip()

    for field_name, value in changes.items():
        setattr(lead_source, field_name, value)

    if "tiered_splits" in body.model_fields_set:
        lead_source.tiered_splits = tiers_to_json(body.tiered_splits)

    await db.flush()
    await db.refresh(lead_source)

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.UPDATE_LEAD_SOURCE,
        target_type="lead_source",
        target_id=lead_source.id,
        action_metadata={"fields": sorted(body.model_fields_set)},
        ip_address=get_client_ip(request),
    )

    return lead_source


@router.delete("/{lead_source_id}")
async def delete_lead_source(
    request: Request,
    lead_source_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Delete a lead source. Its deals keep existing without a source."""
    lead_source = await _get_lead_source(db, current_user.workspace_id, lead_source_id)

    deal_count = await db.scalar(
        select(func.count()).select_from(Deal).where(Deal.lead_source_id == lead_source.id)
    )

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.DELETE_LEAD_SOURCE,
        target_type="lead_source",
        target_id=lead_source.id,
        action_metadata={"name": lead_source.name, "deals": deal_count or 0},
        ip_address=get_client_ip(request),
    )
    await db.delete(lead_source)

    return {"success": True, "message": "Lead source deleted"}
