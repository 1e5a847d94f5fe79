"""
Deal model: one client transaction moving through the pipeline.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel, WorkspaceScopedMixin
from src.models.pipeline_status import LifecycleStage

if TYPE_CHECKING:
    from src.models.lead_source import LeadSource
    from src.models.pipeline_status import PipelineStatus
    from src.models.user import User


class DealType(str, Enum):
    """Which side(s) of the transaction the agent represents."""
    BUYER = "buyer"
    SELLER = "seller"
    BUYER_AND_SELLER = "buyer_and_seller"
    RENTER = "renter"
    LANDLORD = "landlord"


class Deal(BaseModel, WorkspaceScopedMixin):
    """
    A deal owned by one agent.

    Rates are stored as fractions (0.03 = 3%). Commission figures are never
    stored; they are computed from these fields plus the lead source payout
    configuration and the workspace deductions.
    """

    __tablename__ = "deals"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Client
    client_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
    )
    client_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    client_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Property
    property_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    zip: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    deal_type: Mapped[DealType] = mapped_column(
        SQLAlchemyEnum(
            DealType,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )

    # Pipeline
    lead_source_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("lead_sources.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    pipeline_status_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("pipeline_statuses.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status: Mapped[LifecycleStage] = mapped_column(
        SQLAlchemyEnum(
            LifecycleStage,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=LifecycleStage.NEW,
        nullable=False,
        index=True,
    )
    stage_entered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Financials
    expected_sale_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    actual_sale_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(14, 2), nullable=True)
    gross_commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        default=Decimal("0.03"),
        nullable=False,
    )
    brokerage_split_rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        default=Decimal("0.20"),
        nullable=False,
    )
    referral_out_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 4), nullable=True)
    referral_in_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(6, 4), nullable=True)
    transaction_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        default=Decimal("0"),
        nullable=False,
    )

    # Closing
    close_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
        comment="Agreed close date; wins over closed_at in reports",
    )
    closed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Stamped when the deal enters a closed stage",
    )
    archived_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    owner: Mapped["User"] = relationship(
        "User",
        back_populates="deals",
    )
    lead_source: Mapped[Optional["LeadSource"]] = relationship("LeadSource")
    pipeline_status: Mapped[Optional["PipelineStatus"]] = relationship("PipelineStatus")

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, client='{self.client_name}', status={self.status})>"
