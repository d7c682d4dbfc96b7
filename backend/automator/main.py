"""
Activity Automation API

FastAPI application receiving Strava events and running the
processing queue in the background.

Usage:
    services = build_services(strava, recipes, users, notifications, records)
    app = create_app(services)
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI

from automator import __version__
from automator.config import settings
from automator.db.session import init_db
from automator.api.v1.router import api_router
from automator.services import Services


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


logger = logging.getLogger(__name__)


def create_app(services: Services, run_queue: bool = True) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Wired processing components
        run_queue: Start the background queue runner with the app
    """
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info("Starting activity automation API...")
        await init_db()
        logger.info("Database initialized")

        if run_queue:
            await services.runner.start()

        yield

        if run_queue:
            await services.runner.stop()
        logger.info("Shutting down...")

    app = FastAPI(
        title="Activity Automation API",
        description="Strava activity processing and FTP estimation",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.services = services

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": __version__}

    return app
