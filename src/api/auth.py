"""
Authentication API endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, get_current_user_optional
from src.auth.jwt import COOKIE_NAME, create_access_token
from src.config import settings
from src.db import get_db
from src.models import AuditAction, User
from src.schemas.auth import LoginRequest, LoginResponse, MeResponse
from src.services import rbac
from src.utils.audit import get_client_ip, log_action
from src.utils.password import hash_password, password_needs_rehash, verify_password

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate user and set JWT cookie.
    """
    # E-mails are stored lower-cased
    result = await db.execute(
        select(User).where(User.email == credentials.email.lower().strip())
    )
    user = result.scalar_one_or_none()

    # Verify credentials
    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled",
        )

    role = rbac.global_role(user)
    token = create_access_token(user.id, role, user.workspace_id)

    # Set httpOnly cookie
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.jwt_expire_hours * 3600,
    )

    user.last_active_at = datetime.now(timezone.utc)
    if password_needs_rehash(user.password_hash):
        user.password_hash = hash_password(credentials.password)

    await log_action(
        db=db,
        user=user,
        action=AuditAction.LOGIN,
        ip_address=get_client_ip(request),
    )

    return LoginResponse(
        success=True,
        message="Login successful",
        role=role,
        workspace_id=user.workspace_id,
    )


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user_optional),
):
    """
    Clear JWT cookie and log out.
    """
    if current_user:
        await log_action(
            db=db,
            user=current_user,
            action=AuditAction.LOGOUT,
            ip_address=get_client_ip(request),
        )

    response.delete_cookie(
        key=COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )

    return {"success": True, "message": "Logged out"}


@router.get("/me", response_model=MeResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Current user and what they are allowed to do."""
    return MeResponse(
        id=current_user.id,
        email=current_user.email,
        display_name=current_user.display_name,
        global_role=rbac.global_role(current_user),
        role_label=rbac.role_label(current_user.global_role),
        workspace_id=current_user.workspace_id,
        team_id=current_user.team_id,
        team_role=rbac.team_role(current_user),
        last_active_at=current_user.last_active_at,
        can_manage_teams=rbac.can_manage_teams(current_user),
        can_view_all_teams=rbac.can_view_all_teams(current_user),
        can_view_team_analytics=rbac.can_view_team_analytics(current_user),
        can_invite_agents=rbac.can_invite_agents(current_user),
        can_invite_elevated_roles=rbac.can_invite_elevated_roles(current_user),
        can_manage_workspace_members=rbac.can_manage_workspace_members(current_user),
    )
