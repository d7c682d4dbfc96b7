"""
Strava Webhook Routes

Endpoints:
- GET /strava/webhook - Subscription validation
- POST /strava/webhook - Activity events (real time processing)
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import BaseModel

from automator.config import settings
from automator.features.users import User
from automator.services import Services
from automator.api.deps import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


class StravaWebhookEvent(BaseModel):
    object_type: str
    object_id: int
    aspect_type: str
    owner_id: int
    subscription_id: Optional[int] = None
    event_time: Optional[int] = None
    updates: Optional[dict] = None


@router.get("/strava/webhook")
async def validate_subscription(
    hub_mode: str = Query(..., alias="hub.mode"),
    hub_verify_token: str = Query(..., alias="hub.verify_token"),
    hub_challenge: str = Query(..., alias="hub.challenge"),
):
    """Echo the challenge when Strava validates the webhook subscription."""
    if hub_mode != "subscribe" or not settings.strava_webhook_verify_token:
        raise HTTPException(status_code=400, detail="Invalid subscription request")
    if hub_verify_token != settings.strava_webhook_verify_token:
        raise HTTPException(status_code=403, detail="Invalid verify token")

    return {"hub.challenge": hub_challenge}


async def _process_realtime(services: Services, user: User, activity_id: int):
    """Process an activity outside the request; failures were already queued."""
    try:
        await services.processor.process(user, activity_id)
    except Exception as e:
        logger.error(f"{user} activity {activity_id}: realtime processing failed: {e}")


@router.post("/strava/webhook")
async def strava_event(
    event: StravaWebhookEvent,
    background_tasks: BackgroundTasks,
    services: Services = Depends(get_services),
):
    """
    Handle a Strava push event.

    Only new activities are processed; updates made by recipes would
    otherwise trigger processing again.
    """
    if event.object_type != "activity" or event.aspect_type != "create":
        return {"status": "ignored"}

    user = await services.users.get_by_strava_id(str(event.owner_id))
    if not user:
        logger.warning(f"Strava event for unknown athlete {event.owner_id}, activity {event.object_id}")
        return {"status": "ignored"}

    if user.suspended:
        logger.warning(f"{user} is suspended, ignoring activity {event.object_id}")
        return {"status": "ignored"}

    background_tasks.add_task(_process_realtime, services, user, event.object_id)
    return {"status": "accepted"}
