"""API routers."""

from jobdash.routers.dashboard import router as dashboard_router
from jobdash.routers.tools import router as tools_router

__all__ = ["dashboard_router", "tools_router"]
