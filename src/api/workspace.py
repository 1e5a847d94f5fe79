"""
Workspace administration: settings, members, teams and deductions.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_admin, require_inviter
from src.db import get_db
from src.models import (
    AuditAction,
    GlobalRole,
    Team,
    TeamRole,
    User,
    Workspace,
    WorkspaceDeduction,
)
from src.schemas.workspace import (
    DeductionCreate,
    DeductionResponse,
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    TeamCreate,
    TeamResponse,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from src.services import rbac
from src.utils.audit import get_client_ip, log_action
from src.utils.password import hash_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workspace", tags=["Workspace"])


@router.get("", response_model=WorkspaceResponse)
async def get_workspace(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await db.get(Workspace, current_user.workspace_id)


@router.patch("", response_model=WorkspaceResponse)
async def update_workspace(
    request: Request,
    body: WorkspaceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    workspace = await db.get(Workspace, current_user.workspace_id)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)

    for field_name, value in changes.items():
        setattr(workspace, field_name, value)

    await db.flush()
    await db.refresh(workspace)

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.UPDATE_WORKSPACE,
        target_type="workspace",
        target_id=workspace.id,
        action_metadata={"fields": sorted(changes)},
        ip_address=get_client_ip(request),
    )

    return workspace


# ── Members ──────────────────────────────────────────────────────────────────

async def _check_team(db: AsyncSession, workspace_id: int, team_id: int) -> None:
    exists = await db.scalar(
        select(Team.id).where(Team.id == team_id, Team.workspace_id == workspace_id)
    )
    if not exists:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Team not found",
        )


@router.get("/members", response_model=List[MemberResponse])
async def list_members(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_inviter),
):
    """Members the current user can see. Team leads get their own team."""
    query = select(User).where(User.workspace_id == current_user.workspace_id)
    if not rbac.can_view_all_teams(current_user):
        if current_user.team_id is None:
            return [current_user]
        query = query.where(User.team_id == current_user.team_id)

    result = await db.scalars(query.order_by(User.display_name))
    return result.all()


@router.post("/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def create_member(
    request: Request,
    body: MemberCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_inviter),
):
    """
    Add a member.

    Team leads and sales managers can add agents; only admins add elevated
    roles. Members added by a team lead join the lead's team.
    """
    if not rbac.can_assign_role(current_user, body.global_role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot add members with this role",
        )

    email = body.email.lower().strip()
    existing = await db.scalar(select(User.id).where(User.email == email))
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A user with this email already exists",
        )

    team_id = body.team_id
    team_role = body.team_role
    if not rbac.can_view_all_teams(current_user):
        team_id = current_user.team_id
        team_role = TeamRole.AGENT
    if team_id is not None:
        await _check_team(db, current_user.workspace_id, team_id)

    member = User(
        workspace_id=current_user.workspace_id,
        email=email,
        password_hash=hash_password(body.password),
        display_name=body.display_name.strip(),
        global_role=body.global_role,
        team_id=team_id,
        team_role=team_role if team_id is not None else None,
        is_active=True,
    )
    db.add(member)
    await db.flush()
    await db.refresh(member)

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.CREATE_MEMBER,
        target_type="user",
        target_id=member.id,
        action_metadata={"email": member.email, "role": body.global_role.value},
        ip_address=get_client_ip(request),
    )

    logger.info(f"Member {member.email} added to workspace {current_user.workspace_id}")
    return member


@router.patch("/members/{member_id}", response_model=MemberResponse)
async def update_member(
    request: Request,
    member_id: int,
    body: MemberUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    member = await db.scalar(
        select(User).where(
            User.id == member_id,
            User.workspace_id == current_user.workspace_id,
        )
    )
    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found",
        )

    # Only team membership may be cleared with null
    changes = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key in ("team_id", "team_role")
    }

    if member.id == current_user.id and (
        changes.get("is_active") is False
        or changes.get("global_role", GlobalRole.ADMIN) != GlobalRole.ADMIN
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot demote or deactivate yourself",
        )

    if changes.get("global_role") is not None and not rbac.can_assign_role(current_user, changes["global_role"]):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot assign this role",
        )

    if changes.get("team_id") is not None:
        await _check_team(db, current_user.workspace_id, changes["team_id"])

    for field_name, value in changes.items():
        setattr(member, field_name, value)
    if "team_id" in changes and member.team_id is None:
        member.team_role = None

    await db.flush()
    await db.refresh(member)

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.UPDATE_MEMBER,
        target_type="user",
        target_id=member.id,
        action_metadata={"fields": sorted(changes)},
        ip_address=get_client_ip(request),
    )

    return member


# ── Teams ────────────────────────────────────────────────────────────────────

@router.get("/teams", response_model=List[TeamResponse])
async def list_teams(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    counts = (
        select(User.team_id, func.count(User.id).label("member_count"))
        .where(User.workspace_id == current_user.workspace_id)
        .group_by(User.team_id)
        .subquery()
    )
    result = await db.execute(
        select(Team, counts.c.member_count)
        .outerjoin(counts, counts.c.team_id == Team.id)
        .where(Team.workspace_id == current_user.workspace_id)
        .order_by(Team.name)
    )
    return [
        TeamResponse(id=team.id, name=team.name, member_count=member_count or 0)
        for team, member_count in result.all()
    ]


@router.post("/teams", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    request: Request,
    body: TeamCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    team = Team(workspace_id=current_user.workspace_id, name=body.name.strip())
    db.add(team)
    await db.flush()

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.CREATE_TEAM,
        target_type="team",
        target_id=team.id,
        action_metadata={"name": team.name},
        ip_address=get_client_ip(request),
    )

    return TeamResponse(id=team.id, name=team.name, member_count=0)


# ── Deductions ───────────────────────────────────────────────────────────────

@router.get("/deductions", response_model=List[DeductionResponse])
async def list_deductions(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = await db.scalars(
        select(WorkspaceDeduction)
        .where(WorkspaceDeduction.workspace_id == current_user.workspace_id)
        .order_by(WorkspaceDeduction.apply_order, WorkspaceDeduction.id)
    )
    return result.all()


@router.post("/deductions", response_model=DeductionResponse, status_code=status.HTTP_201_CREATED)
async def create_deduction(
    request: Request,
    body: DeductionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    deduction = WorkspaceDeduction(
        workspace_id=current_user.workspace_id,
        name=body.name.strip(),
        type=body.type,
        value=body.value,
        apply_order=body.apply_order,
        is_active=body.is_active,
    )
    db.add(deduction)
    await db.flush()
    await db.refresh(deduction)

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.UPDATE_DEDUCTIONS,
        target_type="deduction",
        target_id=deduction.id,
        action_metadata={"created": deduction.name},
        ip_address=get_client_ip(request),
    )

    return deduction


@router.delete("/deductions/{deduction_id}")
async def delete_deduction(
    request: Request,
    deduction_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    deduction = await db.scalar(
        select(WorkspaceDeduction).where(
            WorkspaceDeduction.id == deduction_id,
            WorkspaceDeduction.workspace_id == current_user.workspace_id,
        )
    )
    if not deduction:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Deduction not found",
        )

    await log_action(
        db=db,
        user=current_user,
        action=AuditAction.UPDATE_DEDUCTIONS,
        target_type="deduction",
        target_id=deduction.id,
        action_metadata={"deleted": deduction.name},
        ip_address=get_client_ip(request),
    )
    await db.delete(deduction)

    return {"success": True, "message": "Deduction deleted"}
