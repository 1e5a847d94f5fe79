"""Pydantic schemas for API request/response validation."""

from src.schemas.analytics import (
    ClosedYearResponse,
    LeadSourceStatsResponse,
    MonthBucketResponse,
    RangeSummaryResponse,
)
from src.schemas.auth import LoginRequest, LoginResponse, MeResponse
from src.schemas.commission import (
    CommissionBreakdownResponse,
    CommissionRequest,
    CustomDeductionSchema,
    TieredSplitSchema,
)
from src.schemas.deal import (
    DealCreate,
    DealDetailResponse,
    DealListResponse,
    DealResponse,
    DealUpdate,
    ImportResultResponse,
)
from src.schemas.lead_source import LeadSourceCreate, LeadSourceResponse, LeadSourceUpdate
from src.schemas.pipeline_status import (
    PipelineStatusCreate,
    PipelineStatusResponse,
    PipelineStatusUpdate,
)
from src.schemas.workspace import (
    DeductionCreate,
    DeductionResponse,
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    TeamCreate,
    TeamResponse,
    WorkspaceResponse,
    WorkspaceUpdate,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    # Commission
    "CommissionRequest",
    "CommissionBreakdownResponse",
    "TieredSplitSchema",
    "CustomDeductionSchema",
    # Deals
    "DealCreate",
    "DealUpdate",
    "DealResponse",
    "DealDetailResponse",
    "DealListResponse",
    "ImportResultResponse",
    # Lead sources
    "LeadSourceCreate",
    "LeadSourceUpdate",
    "LeadSourceResponse",
    # Pipeline statuses
    "PipelineStatusCreate",
    "PipelineStatusUpdate",
    "PipelineStatusResponse",
    # Workspace
    "WorkspaceResponse",
    "WorkspaceUpdate",
    "MemberCreate",
    "MemberUpdate",
    "MemberResponse",
    "TeamCreate",
    "TeamResponse",
    "DeductionCreate",
    "DeductionResponse",
    # Analytics
    "MonthBucketResponse",
    "ClosedYearResponse",
    "LeadSourceStatsResponse",
    "RangeSummaryResponse",
]
