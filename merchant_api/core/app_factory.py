"""Application factory for the FastAPI app.

Centralizes app construction (metadata, lifespan, middleware, handlers,
routers) so tests can build isolated instances with their own state.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from merchant_api.adapters.rate_limit.base import AbstractWindowStore
from merchant_api.adapters.rate_limit.in_memory import InMemoryWindowStore
from merchant_api.adapters.user_directory.base import AbstractUserDirectory
from merchant_api.adapters.user_directory.factory import create_user_directory
from merchant_api.api.routes import auth_router, health_router
from merchant_api.core.config import settings
from merchant_api.core.exception_handlers import setup_exception_handlers
from merchant_api.core.logging import configure_logging
from merchant_api.core.middleware import request_id_middleware
from merchant_api.core.openapi import apply_openapi_customizations
from merchant_api.services.email_check_service import EmailCheckService
from merchant_api.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def create_app(
    *,
    window_store: AbstractWindowStore | None = None,
    user_directory_factory: Callable[[], AbstractUserDirectory | None] = create_user_directory,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    The window store and user directory are owned by the application: built
    when the lifespan starts, exposed on ``app.state`` and torn down on
    shutdown. Nothing lives in module-level globals.

    Args:
        window_store: Store to use instead of a fresh in-memory one.
        user_directory_factory: Builds the auth backend directory client.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        store = window_store
        if store is None:
            store = InMemoryWindowStore(
                sweep_interval_seconds=settings.app.rate_limit_sweep_interval_seconds,
            )
        directory = user_directory_factory()

        app.state.rate_limiter = RateLimiter(store)
        app.state.email_check_service = EmailCheckService(directory)

        if isinstance(store, InMemoryWindowStore):
            await store.start_sweeper()
            # Quotas reset whenever the process restarts
            logger.warning(
                "rate_limit.in_memory_store",
                extra={"rate_limit_enabled": settings.app.rate_limit_enabled},
            )

        logger.info("app.startup_complete", extra={"app_env": settings.app_env})
        try:
            yield
        finally:
            if isinstance(store, InMemoryWindowStore):
                await store.stop_sweeper()
            if directory is not None:
                await directory.aclose()
            logger.info("app.shutdown_complete")

    app = FastAPI(
        title="Merchant Dashboard API",
        description=(
            "Authentication endpoints of the merchant dashboard guarded by "
            "fixed-window admission control: OTP dispatch pre-check (per IP "
            "and per email) and email existence lookup (per IP)."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
