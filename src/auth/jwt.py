"""
JWT token management.

Tokens are stored in httpOnly cookies and carry the user's workspace so a
token can never be replayed against another tenant.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from src.config import settings

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "access"
COOKIE_NAME = "access_token"


def create_access_token(
    user_id: int,
    role: str,
    workspace_id: int,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: User's database ID
        role: User's global role (agent/team_lead/sales_manager/admin)
        workspace_id: Workspace the user belongs to
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.jwt_expire_hours))

    payload = {
        "sub": str(user_id),
        "role": role,
        "ws": workspace_id,
        "exp": expire,
        "type": TOKEN_TYPE,
        "iat": now,
    }

    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """
    Verify and decode a JWT token.

    Returns:
        {"user_id", "role", "workspace_id"} or None if the token is
        invalid, expired or incomplete
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
        )
    except JWTError:
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None

    user_id = payload.get("sub")
    role = payload.get("role")
    workspace_id = payload.get("ws")

    if not user_id or not role or workspace_id is None:
        return None

    return {
        "user_id": int(user_id),
        "role": role,
        "workspace_id": int(workspace_id),
    }


def get_token_from_cookie(request) -> Optional[str]:
    """Extract JWT token from the httpOnly cookie."""
    return request.cookies.get(COOKIE_NAME)
