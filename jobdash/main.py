"""Job Dashboard - application tracking and CAPTCHA solving for job bots."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from jobdash import __version__
from jobdash.core.config import Settings, settings
from jobdash.routers import dashboard_router, tools_router
from jobdash.services.tracking_store import ApplicationTrackingStore

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def create_app(
    app_settings: Settings | None = None,
    store: ApplicationTrackingStore | None = None,
) -> FastAPI:
    """Build the FastAPI application around one explicitly opened store."""
    app_settings = app_settings or settings
    store = store or ApplicationTrackingStore(app_settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Initializing application...")
        await store.initialize()
        app.state.store = store
        await store.add_log("info", "Job Dashboard activated")
        if not app_settings.twocaptcha_api_key:
            logger.warning("TWOCAPTCHA_API_KEY not set; CAPTCHA solving is disabled")
        logger.info("Application initialized")

        yield

        logger.info("Shutting down...")
        await store.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Job Dashboard",
        description="Application tracking and CAPTCHA solving for job bots",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.settings = app_settings

    app.include_router(tools_router)
    app.include_router(dashboard_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "jobdash",
            "store_initialized": store.is_initialized,
            "captcha_configured": bool(app_settings.twocaptcha_api_key),
        }

    return app


app = create_app()
