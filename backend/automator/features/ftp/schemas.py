"""
FTP schemas.

Pydantic models for the HTTP layer.
"""

from typing import Optional

from pydantic import BaseModel, Field


class FtpEstimateResponse(BaseModel):
    """FTP estimation result."""

    ftp_watts: int
    ftp_current_watts: int
    best_watts: int
    best_activity_id: Optional[int] = None
    activity_count: int
    activity_watts_avg: int
    recently_updated: bool

    @classmethod
    def from_estimate(cls, estimate) -> "FtpEstimateResponse":
        return cls(
            ftp_watts=estimate.ftp_watts,
            ftp_current_watts=estimate.ftp_current_watts,
            best_watts=estimate.best_watts,
            best_activity_id=estimate.best_activity.id if estimate.best_activity else None,
            activity_count=estimate.activity_count,
            activity_watts_avg=estimate.activity_watts_avg,
            recently_updated=estimate.recently_updated,
        )


class FtpSaveRequest(BaseModel):
    """Save FTP request."""

    ftp: int = Field(..., description="New FTP in watts")
    force: bool = False


class FtpSaveResponse(BaseModel):
    saved: bool
