"""
WorkspaceDeduction model: fees taken from every deal's commission.
"""

from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, Integer, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel, WorkspaceScopedMixin


class DeductionType(str, Enum):
    FLAT = "flat"              # currency amount, capped at what is left
    PERCENTAGE = "percentage"  # fraction of the remaining balance


class WorkspaceDeduction(BaseModel, WorkspaceScopedMixin):
    """
    Named deduction (E&O insurance, franchise fee, ...) applied after the
    transaction fee, in ascending apply_order.
    """

    __tablename__ = "workspace_deductions"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    type: Mapped[DeductionType] = mapped_column(
        SQLAlchemyEnum(
            DeductionType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    value: Mapped[Decimal] = mapped_column(
        Numeric(12, 4),
        nullable=False,
    )
    apply_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<WorkspaceDeduction(id={self.id}, name='{self.name}', type={self.type})>"
