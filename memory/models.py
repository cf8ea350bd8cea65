"""Planning result data models."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class PlanMetadata(BaseModel):
    """The persisted record pointing at one run's artifacts."""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime
    date: str
    prompt_path: str = Field(alias="promptPath")
    full_result_path: str = Field(alias="fullResultPath")
    conversation_path: str = Field(alias="conversationPath")
    days_looked_back: int = Field(alias="daysLookedBack")
    window_start: Optional[datetime] = Field(default=None, alias="windowStart")
    window_end: Optional[datetime] = Field(default=None, alias="windowEnd")
    iterations: Optional[int] = None
    model: Optional[str] = None


class PlanningResult(BaseModel):
    """Outcome of one completed planning run."""
    narrative_text: str
    enhanced_prompt: str
    generated_at: datetime
    lookback_days: int
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    prompt_path: str
    full_result_path: str
    transcript_path: str
    metadata_path: str
    metadata: PlanMetadata


class LatestPlan(BaseModel):
    """What the downstream writer reads."""
    enhanced_prompt: str
    metadata: PlanMetadata
