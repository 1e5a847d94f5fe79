"""
User model for authentication and role management.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.audit import AuditLog
    from src.models.deal import Deal
    from src.models.workspace import Team, Workspace


class GlobalRole(str, Enum):
    """Workspace-wide roles for access control."""
    AGENT = "agent"
    TEAM_LEAD = "team_lead"
    SALES_MANAGER = "sales_manager"
    ADMIN = "admin"


class TeamRole(str, Enum):
    """Role inside a team."""
    AGENT = "agent"
    TEAM_LEAD = "team_lead"


class User(Base, TimestampMixin):
    """
    Workspace member.

    - admin: manages members, teams, deductions and workspace settings
    - sales_manager: sees every deal in the workspace, edits lead sources
    - team_lead: sees deals of their team
    - agent: sees own deals only
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    workspace_id: Mapped[int] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    global_role: Mapped[GlobalRole] = mapped_column(
        SQLAlchemyEnum(
            GlobalRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=GlobalRole.AGENT,
        nullable=False,
    )
    team_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    team_role: Mapped[Optional[TeamRole]] = mapped_column(
        SQLAlchemyEnum(
            TeamRole,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    last_active_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    workspace: Mapped["Workspace"] = relationship(
        "Workspace",
        back_populates="members",
    )
    team: Mapped[Optional["Team"]] = relationship(
        "Team",
        back_populates="members",
    )
    deals: Mapped[List["Deal"]] = relationship(
        "Deal",
        back_populates="owner",
    )
    audit_logs: Mapped[List["AuditLog"]] = relationship(
        "AuditLog",
        back_populates="user",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role={self.global_role})>"
