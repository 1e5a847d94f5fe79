"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Shared by deals.status and pipeline_statuses.lifecycle_stage
lifecycle_stage = postgresql.ENUM(
    "new", "in_progress", "closed", "dead",
    name="lifecyclestage",
    create_type=False,
)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _workspace_fk() -> sa.Column:
    return sa.Column(
        "workspace_id",
        sa.Integer(),
        sa.ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create all initial tables."""
    lifecycle_stage.create(op.get_bind(), checkfirst=True)

    # Workspaces
    op.create_table(
        "workspaces",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("company_name", sa.String(200), nullable=True),
        sa.Column("timezone", sa.String(64), server_default="UTC", nullable=False),
        sa.Column("locale", sa.String(16), server_default="en-US", nullable=False),
        sa.Column("default_gross_commission_rate", sa.Numeric(6, 4), server_default="0.03", nullable=False),
        sa.Column("default_brokerage_split_rate", sa.Numeric(6, 4), server_default="0.20", nullable=False),
        sa.Column("annual_gci_goal", sa.Numeric(14, 2), server_default="0", nullable=False),
        *_timestamps(),
    )

    # Teams
    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True),
        _workspace_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_teams_workspace_id", "teams", ["workspace_id"])

    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        _workspace_fk(),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column(
            "global_role",
            sa.Enum("agent", "team_lead", "sales_manager", "admin", name="globalrole"),
            nullable=False,
        ),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("team_role", sa.Enum("agent", "team_lead", name="teamrole"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_workspace_id", "users", ["workspace_id"])
    op.create_index("ix_users_team_id", "users", ["team_id"])

    # Pipeline statuses
    op.create_table(
        "pipeline_statuses",
        sa.Column("id", sa.Integer(), primary_key=True),
        _workspace_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("lifecycle_stage", lifecycle_stage, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("workspace_id", "slug", name="uq_pipeline_statuses_workspace_slug"),
    )
    op.create_index("ix_pipeline_statuses_workspace_id", "pipeline_statuses", ["workspace_id"])

    # Lead sources
    op.create_table(
        "lead_sources",
        sa.Column("id", sa.Integer(), primary_key=True),
        _workspace_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("brokerage_split_rate", sa.Numeric(6, 4), server_default="0.20", nullable=False),
        sa.Column(
            "payout_structure",
            sa.Enum("standard", "partnership", "tiered", name="payoutstructure"),
            nullable=False,
        ),
        sa.Column("partnership_split_rate", sa.Numeric(6, 4), nullable=True),
        sa.Column("partnership_notes", sa.Text(), nullable=True),
        sa.Column("tiered_splits", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("workspace_id", "name", name="uq_lead_sources_workspace_name"),
    )
    op.create_index("ix_lead_sources_workspace_id", "lead_sources", ["workspace_id"])

    # Deals
    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), primary_key=True),
        _workspace_fk(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("client_name", sa.String(200), nullable=False),
        sa.Column("client_phone", sa.String(50), nullable=True),
        sa.Column("client_email", sa.String(255), nullable=True),
        sa.Column("property_address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(50), nullable=True),
        sa.Column("zip", sa.String(20), nullable=True),
        sa.Column(
            "deal_type",
            sa.Enum("buyer", "seller", "buyer_and_seller", "renter", "landlord", name="dealtype"),
            nullable=False,
        ),
        sa.Column(
            "lead_source_id",
            sa.Integer(),
            sa.ForeignKey("lead_sources.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "pipeline_status_id",
            sa.Integer(),
            sa.ForeignKey("pipeline_statuses.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("status", lifecycle_stage, nullable=False),
        sa.Column("stage_entered_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("expected_sale_price", sa.Numeric(14, 2), nullable=True),
        sa.Column("actual_sale_price", sa.Numeric(14, 2), nullable=True),
        sa.Column("gross_commission_rate", sa.Numeric(6, 4), nullable=False),
        sa.Column("brokerage_split_rate", sa.Numeric(6, 4), nullable=False),
        sa.Column("referral_out_rate", sa.Numeric(6, 4), nullable=True),
        sa.Column("referral_in_rate", sa.Numeric(6, 4), nullable=True),
        sa.Column("transaction_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("close_date", sa.Date(), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_reason", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_deals_workspace_id", "deals", ["workspace_id"])
    op.create_index("ix_deals_user_id", "deals", ["user_id"])
    op.create_index("ix_deals_client_name", "deals", ["client_name"])
    op.create_index("ix_deals_lead_source_id", "deals", ["lead_source_id"])
    op.create_index("ix_deals_pipeline_status_id", "deals", ["pipeline_status_id"])
    op.create_index("ix_deals_status", "deals", ["status"])

    # Workspace deductions
    op.create_table(
        "workspace_deductions",
        sa.Column("id", sa.Integer(), primary_key=True),
        _workspace_fk(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.Enum("flat", "percentage", name="deductiontype"), nullable=False),
        sa.Column("value", sa.Numeric(12, 4), nullable=False),
        sa.Column("apply_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_workspace_deductions_workspace_id", "workspace_deductions", ["workspace_id"])

    # Audit logs
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        _workspace_fk(),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "action",
            sa.Enum(
                "login", "logout",
                "create_deal", "update_deal", "delete_deal", "import_deals",
                "create_lead_source", "update_lead_source", "delete_lead_source",
                "update_pipeline_status",
                "create_member", "update_member", "create_team",
                "update_deductions", "update_workspace",
                name="auditaction",
            ),
            nullable=False,
        ),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_workspace_id", "audit_logs", ["workspace_id"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("audit_logs")
    op.drop_table("workspace_deductions")
    op.drop_table("deals")
    op.drop_table("lead_sources")
    op.drop_table("pipeline_statuses")
    op.drop_table("users")
    op.drop_table("teams")
    op.drop_table("workspaces")

    for enum_name in (
        "auditaction",
        "deductiontype",
        "dealtype",
        "payoutstructure",
        "teamrole",
        "globalrole",
        "lifecyclestage",
    ):
        op.execute(f"DROP TYPE IF EXISTS {enum_name}")
