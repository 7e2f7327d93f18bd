"""Hosted auth backend (Supabase admin API) user directory adapter."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from merchant_api.adapters.user_directory.base import AbstractUserDirectory
from merchant_api.core.errors import DirectoryAppError

logger = logging.getLogger(__name__)


class SupabaseAdminDirectory(AbstractUserDirectory):
    """Look up users through the backend's ``/auth/v1/admin/users`` endpoint.

    Uses the service role key, so this client must only ever run server side.
    """

    def __init__(
        self,
        base_url: str,
        service_role_key: str,
        timeout_seconds: float = 10.0,
        per_page: int = 1000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the async HTTP client.

        Args:
            base_url: Backend base URL (e.g. ``https://xyz.supabase.co``).
            service_role_key: Service role key sent as bearer and ``apikey``.
            timeout_seconds: Timeout for requests in seconds.
            per_page: Page size requested from the admin users API.
            transport: Optional transport override (used by tests).
        """
        self._per_page = per_page
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {service_role_key}",
                "apikey": service_role_key,
                "Content-Type": "application/json",
            },
            timeout=timeout_seconds,
            transport=transport,
        )

    async def email_exists(self, email: str) -> bool:
        """Check whether any registered user has ``email`` (case-insensitive).

        Raises:
            DirectoryAppError: On transport errors, non-2xx responses or an
                unexpected payload.
        """
        try:
            response = await self.client.get(
                "/auth/v1/admin/users",
                params={"per_page": self._per_page},
            )
        except httpx.HTTPError as exc:
            raise DirectoryAppError(
                code="directory_unreachable",
                message="Auth backend could not be reached",
                details={"context": {"error_type": type(exc).__name__}},
            ) from exc

        if response.is_error:
            raise DirectoryAppError(
                code="directory_error",
                message="Auth backend returned an error",
                details={"http_status": response.status_code},
            )

        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise DirectoryAppError(
                code="directory_invalid_response",
                message="Auth backend returned a non-JSON response",
            ) from exc

        users = payload.get("users") if isinstance(payload, dict) else None
        if not isinstance(users, list):
            raise DirectoryAppError(
                code="directory_invalid_response",
                message="Auth backend response has no users list",
            )

        target = email.strip().lower()
        return any(
            isinstance(user, dict) and (user.get("email") or "").lower() == target
            for user in users
        )

    async def aclose(self) -> None:
        await self.client.aclose()
