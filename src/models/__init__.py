"""
Database models for the CRM.

All models are exported here for convenient imports:
    from src.models import User, Deal, LeadSource, etc.
"""

from src.models.audit import AuditAction, AuditLog
from src.models.base import Base, BaseModel, TimestampMixin, WorkspaceScopedMixin
from src.models.deal import Deal, DealType
from src.models.deduction import DeductionType, WorkspaceDeduction
from src.models.lead_source import LeadSource, PayoutStructure
from src.models.pipeline_status import (
    DEFAULT_PIPELINE_STATUSES,
    LifecycleStage,
    PipelineStatus,
    slugify,
)
from src.models.user import GlobalRole, TeamRole, User
from src.models.workspace import Team, Workspace

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "TimestampMixin",
    "WorkspaceScopedMixin",
    # Workspace
    "Workspace",
    "Team",
    # User
    "User",
    "GlobalRole",
    "TeamRole",
    # Pipeline
    "PipelineStatus",
    "LifecycleStage",
    "DEFAULT_PIPELINE_STATUSES",
    "slugify",
    # Lead source
    "LeadSource",
    "PayoutStructure",
    # Deal
    "Deal",
    "DealType",
    # Deductions
    "WorkspaceDeduction",
    "DeductionType",
    # Audit
    "AuditLog",
    "AuditAction",
]
