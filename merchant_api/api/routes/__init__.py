from __future__ import annotations

from merchant_api.api.routes.auth import router as auth_router
from merchant_api.api.routes.health import router as health_router

__all__ = ["auth_router", "health_router"]
