"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from automator.api.v1.routes import webhook, internal, activities, ftp

api_router = APIRouter()

api_router.include_router(webhook.router, tags=["Strava"])
api_router.include_router(internal.router)
api_router.include_router(activities.router, prefix="/activities", tags=["Activities"])
api_router.include_router(ftp.router, prefix="/ftp", tags=["FTP"])
