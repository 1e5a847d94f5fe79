"""
FastAPI dependencies for authentication and role checks.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.jwt import get_token_from_cookie, verify_token
from src.db import get_db
from src.models import User
from src.services import rbac


async def _load_user(db: AsyncSession, payload: dict) -> Optional[User]:
    result = await db.execute(
        select(User).where(
            User.id == payload["user_id"],
            User.workspace_id == payload["workspace_id"],
        )
    )
    return result.scalar_one_or_none()


async def get_current_user_optional(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """
    Get current user from JWT cookie if present.

    Returns None if no valid token found (doesn't raise error).
    """
    token = get_token_from_cookie(request)
    if not token:
        return None

    payload = verify_token(token)
    if not payload:
        return None

    user = await _load_user(db, payload)
    if not user or not user.is_active:
        return None

    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get current authenticated user.

    Raises 401 if not authenticated, 403 if the account is disabled.
    """
    token = get_token_from_cookie(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    payload = verify_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    user = await _load_user(db, payload)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


async def require_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    """Require the workspace admin role."""
    if not rbac.is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


async def require_manager(
    current_user: User = Depends(get_current_user),
) -> User:
    """Require a sales manager or admin."""
    if not rbac.is_sales_manager_or_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Sales manager access required",
        )
    return current_user


async def require_inviter(
    current_user: User = Depends(get_current_user),
) -> User:
    """Require a role that may add members (admin, sales manager, team lead)."""
    if not rbac.can_invite_agents(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    return current_user
