"""FastAPI dependencies for the store and the CAPTCHA resolver."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request

from jobdash.core.config import Settings, settings
from jobdash.services.captcha_resolver import CaptchaResolver
from jobdash.services.tracking_store import ApplicationTrackingStore


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return getattr(request.app.state, "settings", settings)


def get_store(request: Request) -> ApplicationTrackingStore:
    """The store handle opened by the application lifespan."""
    return request.app.state.store


async def get_captcha_resolver(
    app_settings: Settings = Depends(get_settings),
    store: ApplicationTrackingStore = Depends(get_store),
) -> AsyncGenerator[CaptchaResolver, None]:
    """Dependency for a resolver that logs to the store."""
    resolver = CaptchaResolver.from_settings(app_settings, store)
    try:
        yield resolver
    finally:
        await resolver.close()
