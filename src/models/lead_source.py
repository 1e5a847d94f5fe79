"""
LeadSource model with its payout configuration.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import BaseModel, WorkspaceScopedMixin


class PayoutStructure(str, Enum):
    """How commission from this source is split before it reaches the agent."""
    STANDARD = "standard"        # brokerage split only
    PARTNERSHIP = "partnership"  # partner paid off the top, then brokerage split
    TIERED = "tiered"            # brokerage split depends on sale price bracket


class LeadSource(BaseModel, WorkspaceScopedMixin):
    """
    Where a deal came from (Zillow, past client, referral...).

    Only the fields of the selected payout structure are used when computing
    commission; the others are kept so switching back does not lose them.
    """

    __tablename__ = "lead_sources"
    __table_args__ = (
        UniqueConstraint("workspace_id", "name", name="uq_lead_sources_workspace_name"),
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    category: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
    )
    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        server_default="0",
        nullable=False,
    )
    brokerage_split_rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 4),
        default=Decimal("0.20"),
        server_default="0.20",
        nullable=False,
    )
    payout_structure: Mapped[PayoutStructure] = mapped_column(
        SQLAlchemyEnum(
            PayoutStructure,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=PayoutStructure.STANDARD,
        nullable=False,
    )
    partnership_split_rate: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 4),
        nullable=True,
        comment="Partner share of gross commission (partnership only)",
    )
    partnership_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    tiered_splits: Mapped[Optional[list]] = mapped_column(
        JSON,
        nullable=True,
        comment="[{min_amount, max_amount|null, split_rate}] (tiered only)",
    )

    def __repr__(self) -> str:
        return f"<LeadSource(id={self.id}, name='{self.name}', payout={self.payout_structure})>"
