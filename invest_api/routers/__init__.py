"""API routers."""

from invest_api.routers.admin import router as admin_router
from invest_api.routers.auth import router as auth_router
from invest_api.routers.trading import router as trading_router

__all__ = ["admin_router", "auth_router", "trading_router"]
