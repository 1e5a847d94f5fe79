"""Pipeline status schemas."""

from typing import Optional

from pydantic import BaseModel, Field

from src.models.pipeline_status import LifecycleStage


class PipelineStatusCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    lifecycle_stage: LifecycleStage = LifecycleStage.IN_PROGRESS
    sort_order: Optional[int] = None
    color: Optional[str] = Field(None, max_length=20)


class PipelineStatusUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    lifecycle_stage: Optional[LifecycleStage] = None
    sort_order: Optional[int] = None
    color: Optional[str] = Field(None, max_length=20)


class PipelineStatusResponse(BaseModel):
    id: int
    name: str
    slug: str
    sort_order: int
    color: Optional[str]
    is_default: bool
    lifecycle_stage: LifecycleStage

    model_config = {"from_attributes": True}
