"""
Workspace (tenant) and team models.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel

if TYPE_CHECKING:
    from src.models.user import User


class Workspace(BaseModel):
    """
    A brokerage or team account. All CRM data belongs to one workspace.

    Holds the defaults applied to new and imported deals.
    """

    __tablename__ = "workspaces"

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    company_name: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
    )
    timezone: Mapped[str] = mapped_column(
        String(64),
        default="UTC",
        server_default="UTC",
        nullable=False,
    )
    locale: Mapped[str] = mapped_column(
        String(16),
        default="en-US",
        server_default="en-US",
        nullable=False,
    )
    default_gross_commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        default=Decimal("0.03"),
        server_default="0.03",
        nullable=False,
    )
    default_brokerage_split_rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        default=Decimal("0.20"),
        server_default="0.20",
        nullable=False,
        comment="Brokerage share used when an imported row leaves it empty",
    )
    annual_gci_goal: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        default=Decimal("0"),
        server_default="0",
        nullable=False,
    )

    # Relationships
    members: Mapped[List["User"]] = relationship(
        "User",
        back_populates="workspace",
    )
    teams: Mapped[List["Team"]] = relationship(
        "Team",
        back_populates="workspace",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Workspace(id={self.id}, name='{self.name}')>"


class Team(BaseModel):
    """A group of agents led by one or more team leads."""

    __tablename__ = "teams"

    workspace_id: Mapped[int] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    workspace: Mapped["Workspace"] = relationship(
        "Workspace",
        back_populates="teams",
    )
    members: Mapped[List["User"]] = relationship(
        "User",
        back_populates="team",
    )

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name='{self.name}')>"
