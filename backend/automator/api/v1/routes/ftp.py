"""
FTP Routes

Endpoints:
- GET /ftp/{user_id}/estimate - Estimate FTP from recent rides
- POST /ftp/{user_id} - Save a new FTP
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from automator.features.ftp import (
    FtpEstimateResponse,
    FtpSaveRequest,
    FtpSaveResponse,
    InvalidFtpError,
)
from automator.features.strava import StravaAPIError, StravaNotFoundError
from automator.features.users import User
from automator.services import Services
from automator.api.deps import get_services, get_user, verify_api_key

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("/{user_id}/estimate", response_model=FtpEstimateResponse)
async def estimate_ftp(
    user: User = Depends(get_user),
    services: Services = Depends(get_services),
):
    """Estimate the user's FTP."""
    try:
        estimate = await services.ftp.estimate(user)
    except StravaNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StravaAPIError as e:
        logger.error(f"{user}: FTP estimation failed: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch Strava data")

    if not estimate:
        raise HTTPException(status_code=404, detail="Not enough power data to estimate FTP")
    return FtpEstimateResponse.from_estimate(estimate)


@router.post("/{user_id}", response_model=FtpSaveResponse)
async def save_ftp(
    request: FtpSaveRequest,
    user: User = Depends(get_user),
    services: Services = Depends(get_services),
):
    """Update the user's FTP on Strava."""
    try:
        saved = await services.ftp.save(user, request.ftp, request.force)
    except InvalidFtpError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return FtpSaveResponse(saved=saved)
