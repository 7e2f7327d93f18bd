"""Email existence lookup behind the check-email endpoint."""

from __future__ import annotations

import logging

from merchant_api.adapters.user_directory.base import AbstractUserDirectory
from merchant_api.core.client_identity import normalize_email
from merchant_api.core.errors import DirectoryAppError
from merchant_api.schemas.auth import EmailCheckResponse

logger = logging.getLogger(__name__)

EXISTING_ACCOUNT_MESSAGE = "You already have an account. Please log in instead."
UNAVAILABLE_MESSAGE = "Email check unavailable"


class EmailCheckService:
    """Answer "is this email registered?" while failing open.

    A missing or failing directory yields ``exists=None`` so sign-up can
    proceed; a lookup failure never blocks the user.
    """

    def __init__(self, directory: AbstractUserDirectory | None) -> None:
        self._directory = directory

    async def check(self, email: str) -> EmailCheckResponse:
        """Look up ``email`` in the auth backend.

        Args:
            email: Caller-supplied address; normalized before lookup.

        Returns:
            EmailCheckResponse with ``exists`` True/False, or None when unknown.
        """
        if self._directory is None:
            logger.warning("email_check.unavailable", extra={"reason": "directory_not_configured"})
            return EmailCheckResponse(exists=None, message=UNAVAILABLE_MESSAGE)

        try:
            exists = await self._directory.email_exists(normalize_email(email))
        except DirectoryAppError as exc:
            logger.error(
                "email_check.failed",
                extra={"error_code": exc.code, "error_message": exc.message},
            )
            return EmailCheckResponse(exists=None, message=UNAVAILABLE_MESSAGE)

        logger.info("email_check.completed", extra={"exists": exists})
        if exists:
            return EmailCheckResponse(exists=True, message=EXISTING_ACCOUNT_MESSAGE)
        return EmailCheckResponse(exists=False)
