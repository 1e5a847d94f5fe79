"""Workspace, member, team and deduction schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from src.models.deduction import DeductionType
from src.models.user import GlobalRole, TeamRole
from src.utils.password import MIN_PASSWORD_LENGTH


class WorkspaceResponse(BaseModel):
    id: int
    name: str
    company_name: Optional[str]
    timezone: str
    locale: str
    default_gross_commission_rate: Decimal
    default_brokerage_split_rate: Decimal
    annual_gci_goal: Decimal

    model_config = {"from_attributes": True}


class WorkspaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    company_name: Optional[str] = Field(None, max_length=200)
    timezone: Optional[str] = Field(None, max_length=64)
    locale: Optional[str] = Field(None, max_length=16)
    default_gross_commission_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    default_brokerage_split_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    annual_gci_goal: Optional[Decimal] = Field(None, ge=0)


# Members

class MemberCreate(BaseModel):
    """Add a member to the workspace."""

    email: str = Field(..., min_length=3, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    global_role: GlobalRole = GlobalRole.AGENT
    team_id: Optional[int] = None
    team_role: Optional[TeamRole] = None


class MemberUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    global_role: Optional[GlobalRole] = None
    team_id: Optional[int] = None
    team_role: Optional[TeamRole] = None
    is_active: Optional[bool] = None


class MemberResponse(BaseModel):
    id: int
    email: str
    display_name: str
    global_role: GlobalRole
    team_id: Optional[int]
    team_role: Optional[TeamRole]
    is_active: bool
    last_active_at: Optional[datetime]
    created_at: datetime

    model_config = {"from_attributes": True}


# Teams

class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class TeamResponse(BaseModel):
    id: int
    name: str
    member_count: int = 0

    model_config = {"from_attributes": True}


# Deductions

class DeductionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: DeductionType
    value: Decimal = Field(..., ge=0)
    apply_order: int = 0
    is_active: bool = True


class DeductionResponse(BaseModel):
    id: int
    name: str
    type: DeductionType
    value: Decimal
    apply_order: int
    is_active: bool

    model_config = {"from_attributes": True}
