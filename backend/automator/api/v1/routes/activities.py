"""
Activity Routes

Endpoints:
- GET /activities/{user_id}/processed - Processed activities history
- POST /activities/{user_id}/batch - Queue past activities for processing
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from automator.features.activities import (
    BatchProcessRequest,
    BatchProcessResponse,
    InvalidDateRangeError,
    ProcessedActivityResponse,
)
from automator.features.strava import StravaAPIError, StravaNotFoundError
from automator.features.users import User
from automator.services import Services
from automator.api.deps import get_services, get_user, verify_api_key

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("/{user_id}/processed", response_model=list[ProcessedActivityResponse])
async def list_processed(
    date_from: Optional[datetime] = Query(default=None),
    date_to: Optional[datetime] = Query(default=None),
    limit: Optional[int] = Query(default=None, gt=0),
    user: User = Depends(get_user),
    services: Services = Depends(get_services),
):
    """Processed activities of the user, newest first."""
    activities = await services.processor.get_processed_activities(user, date_from, date_to, limit)
    return [ProcessedActivityResponse.model_validate(a) for a in activities]


@router.post("/{user_id}/batch", response_model=BatchProcessResponse)
async def batch_process(
    request: BatchProcessRequest,
    user: User = Depends(get_user),
    services: Services = Depends(get_services),
):
    """Queue the user's activities in a date range for processing."""
    try:
        count = await services.processor.batch_process(
            user, request.date_from, request.date_to, request.filter
        )
    except InvalidDateRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StravaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StravaAPIError as e:
        logger.error(f"{user}: batch processing failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch Strava data")

    return BatchProcessResponse(queued=count)
