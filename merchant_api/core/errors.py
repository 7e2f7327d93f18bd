"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

if TYPE_CHECKING:
    from merchant_api.adapters.rate_limit.base import RateLimitDecision
    from merchant_api.core.rate_limit_policies import ThrottleNotice


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    field: str
    http_status: int
    retry_after: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input or configuration is invalid."""


class DirectoryAppError(AppError):
    """Raised when the auth backend user directory cannot be queried."""


class RateLimitExceededError(AppError):
    """Raised at the HTTP boundary to short-circuit a throttled request.

    The limiter itself reports throttling as a plain decision value; only the
    route adapter converts a denial into this exception so FastAPI can stop
    the request before any downstream work runs.
    """

    def __init__(self, decision: "RateLimitDecision", notice: "ThrottleNotice") -> None:
        retry_after = decision.retry_after_seconds or 0
        self.decision = decision
        self.notice = notice
        super().__init__(
            code="rate_limit_exceeded",
            message=notice.render(retry_after),
            details={"retry_after": retry_after},
        )
