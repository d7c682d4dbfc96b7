"""
Shared API dependencies.
"""

from fastapi import Depends, Header, HTTPException, Request

from automator.config import settings
from automator.features.users import User
from automator.services import Services


def get_services(request: Request) -> Services:
    """Components wired at application startup."""
    return request.app.state.services


async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> str:
    """Verify the shared API key."""
    if not settings.internal_api_key:
        raise HTTPException(status_code=503, detail="Internal API not configured")
    if x_api_key != settings.internal_api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")
    return x_api_key


async def get_user(user_id: str, services: Services = Depends(get_services)) -> User:
    """Resolve the user from the path, 404 if unknown."""
    user = await services.users.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
