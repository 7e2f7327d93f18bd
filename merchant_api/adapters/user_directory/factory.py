"""Factory for the user directory used by the email existence check."""

import logging

from merchant_api.adapters.user_directory.base import AbstractUserDirectory
from merchant_api.adapters.user_directory.supabase_admin import SupabaseAdminDirectory
from merchant_api.core.config import AuthBackendSettings, settings

logger = logging.getLogger(__name__)


def create_user_directory(
    backend_settings: AuthBackendSettings | None = None,
) -> AbstractUserDirectory | None:
    """Build the directory client from configuration.

    Returns None when the backend URL or service role key is missing; the
    email check then answers "unknown" instead of failing.
    """
    cfg = backend_settings or settings.auth_backend

    if not cfg.url or not cfg.service_role_key:
        logger.warning(
            "user_directory.not_configured",
            extra={"has_url": bool(cfg.url), "has_service_role_key": bool(cfg.service_role_key)},
        )
        return None

    return SupabaseAdminDirectory(
        base_url=cfg.url,
        service_role_key=cfg.service_role_key,
        timeout_seconds=cfg.timeout_seconds,
        per_page=cfg.users_per_page,
    )
