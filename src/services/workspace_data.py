"""
Workspace-scoped queries shared by the API routers.

Everything here filters by workspace_id; callers pass the authenticated
user and never a raw workspace id taken from the request.
"""

import logging
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.models import (
    DEFAULT_PIPELINE_STATUSES,
    Deal,
    GlobalRole,
    LeadSource,
    PipelineStatus,
    User,
    Workspace,
    WorkspaceDeduction,
    slugify,
)
from src.services import rbac
from src.services.commission import (
    CommissionBreakdown,
    CommissionInput,
    calculate_commission_breakdown,
)
from src.utils.password import hash_password

logger = logging.getLogger(__name__)


class CommissionContext:
    """Lead sources and active deductions of one workspace."""

    def __init__(self, lead_sources: list, deductions: list):
        self.lead_sources = {ls.id: ls for ls in lead_sources}
        self.deductions = deductions

    def breakdown(self, deal: Any) -> CommissionBreakdown:
        data = CommissionInput.for_deal(
            deal,
            lead_source=self.lead_sources.get(deal.lead_source_id),
            deductions=self.deductions,
        )
        return calculate_commission_breakdown(data)


async def load_commission_context(db: AsyncSession, workspace_id: int) -> CommissionContext:
    lead_sources = await db.scalars(
        select(LeadSource).where(LeadSource.workspace_id == workspace_id)
    )
    deductions = await db.scalars(
        select(WorkspaceDeduction)
        .where(
            WorkspaceDeduction.workspace_id == workspace_id,
            WorkspaceDeduction.is_active == True,
        )
        .order_by(WorkspaceDeduction.apply_order)
    )
    return CommissionContext(list(lead_sources), list(deductions))


async def load_visible_user_ids(db: AsyncSession, user: User) -> list[int]:
    """IDs of members whose deals the user may see."""
    members = await db.scalars(
        select(User).where(User.workspace_id == user.workspace_id)
    )
    return rbac.visible_user_ids(user, members.all())


async def get_visible_deal(db: AsyncSession, user: User, deal_id: int) -> Optional[Deal]:
    visible_ids = await load_visible_user_ids(db, user)
    return await db.scalar(
        select(Deal).where(
            Deal.id == deal_id,
            Deal.workspace_id == user.workspace_id,
            Deal.user_id.in_(visible_ids),
        )
    )


async def get_pipeline_status(
    db: AsyncSession,
    workspace_id: int,
    status_id: int,
) -> Optional[PipelineStatus]:
    return await db.scalar(
        select(PipelineStatus).where(
            PipelineStatus.id == status_id,
            PipelineStatus.workspace_id == workspace_id,
        )
    )


async def seed_pipeline_statuses(db: AsyncSession, workspace_id: int) -> int:
    """Create the default pipeline statuses if the workspace has none."""
    existing = await db.scalar(
        select(func.count())
        .select_from(PipelineStatus)
        .where(PipelineStatus.workspace_id == workspace_id)
    )
    if existing:
        return 0

    for order, (name, stage, color) in enumerate(DEFAULT_PIPELINE_STATUSES):
        db.add(
            PipelineStatus(
                workspace_id=workspace_id,
                name=name,
                slug=slugify(name),
                sort_order=order,
                color=color,
                is_default=True,
                lifecycle_stage=stage,
            )
        )
    logger.info(f"Seeded {len(DEFAULT_PIPELINE_STATUSES)} pipeline statuses for workspace {workspace_id}")
    return len(DEFAULT_PIPELINE_STATUSES)


async def bootstrap_workspace(db: AsyncSession) -> Workspace:
    """
    Make sure a workspace with an admin account exists.

    Called on startup. Safe to run repeatedly.
    """
    workspace = await db.scalar(select(Workspace).order_by(Workspace.id).limit(1))
    if not workspace:
        logger.info("Creating workspace...")
        workspace = Workspace(
            name=settings.workspace_name,
            default_gross_commission_rate=settings.default_gross_commission_rate,
            default_brokerage_split_rate=settings.default_brokerage_split_rate,
        )
        db.add(workspace)
        await db.flush()
        logger.info(f"Workspace created: {settings.workspace_name}")

    admin = await db.scalar(
        select(User).where(
            User.workspace_id == workspace.id,
            User.global_role == GlobalRole.ADMIN,
        )
    )
    if not admin:
        logger.info("Creating admin account...")
        db.add(
            User(
                workspace_id=workspace.id,
                email=settings.admin_email.lower().strip(),
                password_hash=hash_password(settings.admin_password),
                display_name="Admin",
                global_role=GlobalRole.ADMIN,
                is_active=True,
            )
        )
        logger.info(f"Admin account created: {settings.admin_email}")

    await seed_pipeline_statuses(db, workspace.id)
    return workspace
