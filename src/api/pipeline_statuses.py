"""Pipeline status API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_manager
from src.db import get_db
from src.models import AuditAction, PipelineStatus, User, slugify
from src.schemas.pipeline_status import (
    PipelineStatusCreate,
    PipelineStatusResponse,
    PipelineStatusUpdate,
)
from src.services.workspace_data import get_pipeline_status
from src.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/pipeline-statuses", tags=["Pipeline"])


async def _check_slug_free(db: AsyncSession, workspace_id: int, slug: str, exclude_id: int = None) -> None:
    query = select(PipelineStatus.id).where(
        PipelineStatus.workspace_id == workspace_id,
        PipelineStatus.slug == slug,
    )
    if exclude_id is not None:
        query = query.where(PipelineStatus.id != exclude_id)

    if await db.scalar(query):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A pipeline status with this name already exists",
        )


@router.get("", response_model=List[PipelineStatusResponse])
async def list_pipeline_statuses(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.scalars(
        select(PipelineStatus)
        .where(PipelineStatus.workspace_id == current_user.workspace_id)
        .order_by(PipelineStatus.sort_order, PipelineStatus.id)
    )
    return result.all()


@router.post("", response_model=PipelineStatusResponse, status_code=status.HTTP_201_CREATED)
async def create_pipeline_status(
    request: Request,
    body: PipelineStatusCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    """Add a status. Without sort_order it goes to the end."""
    name = body.name.strip()
    slug = slugify(name)
    await _check_slug_free(db, current_user.workspace_id, slug)

    sort_order = body.sort_order
    if sort_order is None:
        last = await db.scalar(
            select(func.max(PipelineStatus.sort_order)).where(
                PipelineStatus.workspace_id == current_user.workspace_id
            )
        )
        sort_order = 0 if last is None else last + 1

    pipeline_status = PipelineStatus(
        workspace_id=current_user.workspace_id,
        name=name,
        slug=slug,
        sort_order=sort_order,
        color=body.color,
        lifecycle_stage=body.lifecycle_stage,
    )
    db.add(pipeline_status)
    await db.flush()
    await db.refresh(pipeline_status)

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.UPDATE_PIPELINE_STATUS,
        target_type="pipeline_status",
        target_id=pipeline_status.id,
        action_metadata={"created": name},
        ip_address=get_client_ip(request),
    )

    return pipeline_status


@router.patch("/{status_id}", response_model=PipelineStatusResponse)
async def update_pipeline_status(
    request: Request,
    status_id: int,
    body: PipelineStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_manager),
):
    pipeline_status = await get_pipeline_status(db, current_user.workspace_id, status_id)
    if not pipeline_status:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Pipeline status not found",
        )

    changes = body.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        changes["name"] = changes["name"].strip()
        changes["slug"] = slugify(changes["name"])
        await _check_slug_free(db, current_user.workspace_id, changes["slug"], exclude_id=pipeline_status.id)

    for field_name, value in changes.items():
        if value is not None:
            setattr(pipeline_status, field_name, value)

    await db.flush()
    await db.refresh(pipeline_status)

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.UPDATE_PIPELINE_STATUS,
        target_type="pipeline_status",
        target_id=pipeline_status.id,
        action_metadata={"fields": sorted(changes)},
        ip_address=get_client_ip(request),
    )

    return pipeline_status
