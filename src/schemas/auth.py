"""Authentication schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login request body."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """Login response."""

    success: bool
    message: str
    role: str = Field(default="")
    workspace_id: Optional[int] = None


class MeResponse(BaseModel):
    """Current user with the permissions the UI needs to render."""

    id: int
    email: str
    display_name: str
    global_role: str
    role_label: str
    workspace_id: int
    team_id: Optional[int]
    team_role: Optional[str]
    last_active_at: Optional[datetime]

    can_manage_teams: bool = False
    can_view_all_teams: bool = False
    can_view_team_analytics: bool = False
    can_invite_agents: bool = False
    can_invite_elevated_roles: bool = False
    can_manage_workspace_members: bool = False
