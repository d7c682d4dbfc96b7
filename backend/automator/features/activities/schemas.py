"""
Activity processing schemas.

Pydantic models for the HTTP layer and batch filters.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ActivityFilter(BaseModel):
    """
    Optional filters for batch processing.

    Tri-state flags: None ignores the flag, True requires it, False excludes it.
    """

    private: Optional[bool] = None
    commute: Optional[bool] = None
    race: Optional[bool] = None
    sport_type: Optional[str] = None

    def matches(self, activity) -> bool:
        """Check if the activity passes all set filters."""
        if self.private is not None and activity.private != self.private:
            return False
        if self.commute is not None and activity.commute != self.commute:
            return False
        if self.race is not None and activity.is_race != self.race:
            return False
        if self.sport_type and activity.sport_type != self.sport_type:
            return False
        return True


class BatchProcessRequest(BaseModel):
    """Batch process request."""

    date_from: datetime
    date_to: Optional[datetime] = None
    filter: ActivityFilter = Field(default_factory=ActivityFilter)


class BatchProcessResponse(BaseModel):
    queued: int


class ProcessedActivityResponse(BaseModel):
    """Processed activity response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    date_queued: Optional[datetime] = None
    date_processed: Optional[datetime] = None
    retry_count: int = 0
    batch: bool = False
    recipes: Optional[dict[str, Any]] = None
    updated_fields: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    linkback: bool = False
    sport_type: Optional[str] = None
    name: Optional[str] = None
    date_start: Optional[datetime] = None
    utc_start_offset: Optional[int] = None
    new_records: Optional[list[str]] = None


class DeleteProcessedResponse(BaseModel):
    deleted: int
