"""
Internal API routes for the scheduler and maintenance jobs.

Protected by X-API-Key header.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from automator.features.activities import DeleteProcessedResponse, MissingFilterError
from automator.services import Services
from automator.api.deps import get_services, verify_api_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal", tags=["Internal"], dependencies=[Depends(verify_api_key)])


@router.post("/queue/check")
async def check_queue(services: Services = Depends(get_services)):
    """Drain the queue if the oldest queued activity is due."""
    drained = await services.queue.check_queued()
    return {"drained": drained}


@router.post("/queue/drain")
async def drain_queue(
    batch_size: Optional[int] = Query(default=None, gt=0),
    services: Services = Depends(get_services),
):
    """Process queued activities now."""
    processed = await services.queue.drain(batch_size)
    return {"processed": processed}


@router.delete("/activities/processed", response_model=DeleteProcessedResponse)
async def delete_processed(
    user_id: Optional[str] = Query(default=None),
    age_days: Optional[int] = Query(default=None, gt=0),
    services: Services = Depends(get_services),
):
    """Delete processed activities for a user and / or older than age_days."""
    user = None
    if user_id:
        user = await services.users.get_by_id(user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

    try:
        deleted = await services.processor.delete_processed_activities(user, age_days)
    except MissingFilterError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return DeleteProcessedResponse(deleted=deleted)
