"""
PipelineStatus model: the configurable stages of a workspace's pipeline.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, Integer, String, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel, WorkspaceScopedMixin


class LifecycleStage(str, Enum):
    """Canonical bucket every pipeline status maps onto for reporting."""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"
    DEAD = "dead"


# (name, lifecycle stage, color) seeded for new workspaces
DEFAULT_PIPELINE_STATUSES = (
    ("New Lead", LifecycleStage.NEW, "#64748b"),
    ("Contacted", LifecycleStage.IN_PROGRESS, "#0ea5e9"),
    ("Showing Scheduled", LifecycleStage.IN_PROGRESS, "#6366f1"),
    ("Offer Submitted", LifecycleStage.IN_PROGRESS, "#a855f7"),
    ("Under Contract", LifecycleStage.IN_PROGRESS, "#f59e0b"),
    ("Pending", LifecycleStage.IN_PROGRESS, "#eab308"),
    ("Closed", LifecycleStage.CLOSED, "#22c55e"),
    ("Dead", LifecycleStage.DEAD, "#ef4444"),
)


def slugify(name: str) -> str:
    return "_".join(name.lower().split())


class PipelineStatus(BaseModel, WorkspaceScopedMixin):
    """A named pipeline column. Names are matched case-insensitively on import."""

    __tablename__ = "pipeline_statuses"
    __table_args__ = (
        UniqueConstraint("workspace_id", "slug", name="uq_pipeline_statuses_workspace_slug"),
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    color: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
    )
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    lifecycle_stage: Mapped[LifecycleStage] = mapped_column(
        SQLAlchemyEnum(
            LifecycleStage,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=LifecycleStage.IN_PROGRESS,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PipelineStatus(id={self.id}, name='{self.name}', stage={self.lifecycle_stage})>"
