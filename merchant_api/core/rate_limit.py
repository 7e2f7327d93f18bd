"""Rate limiting boundary for FastAPI routes.

This module translates limiter decisions into HTTP semantics and nothing else:
- Approval: attach ``X-RateLimit-Remaining`` and let the route continue.
- Denial: raise ``RateLimitExceededError``; the registered exception handler
  renders a 429 with ``Retry-After`` and ``X-RateLimit-*`` headers.

The limiter is owned by ``app.state`` (built in the app lifespan) and reached
through ``get_rate_limiter`` so routes never touch module-level state.
"""

from __future__ import annotations

import hashlib
import logging
import math
from typing import Annotated, Iterable

from fastapi import Depends, Request, Response

from merchant_api.adapters.rate_limit.base import RateLimitDecision
from merchant_api.core.client_identity import ip_identifier
from merchant_api.core.config import settings
from merchant_api.core.errors import RateLimitExceededError
from merchant_api.core.rate_limit_policies import (
    EMAIL_CHECK_BY_IP,
    EMAIL_CHECK_NOTICE,
    RateLimitPolicy,
    ThrottleNotice,
)
from merchant_api.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the limiter owned by the running application.

    Raises:
        RuntimeError: If the application lifespan has not built one.
    """
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        raise RuntimeError("rate limiter is not initialised; is the app lifespan running?")
    return limiter


def _hash_identifier(identifier: str) -> str:
    """Hash an identifier for logging without exposing IPs or emails."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def build_rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    """Build ``X-RateLimit-*`` (and ``Retry-After`` when blocked) headers.

    Args:
        decision: Decision to describe.

    Returns:
        Header mapping; ``X-RateLimit-Reset`` is UNIX epoch seconds.
    """
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(int(math.ceil(decision.reset_at))),
    }
    if not decision.allowed:
        headers["Retry-After"] = str(decision.retry_after_seconds or 0)
    return headers


def enforce_rate_limit(
    limiter: RateLimiter,
    checks: Iterable[tuple[RateLimitPolicy, str]],
    *,
    notice: ThrottleNotice,
    response: Response | None = None,
) -> RateLimitDecision | None:
    """Apply one or more policies and short-circuit when any of them denies.

    Args:
        limiter: Limiter to consult.
        checks: ``(policy, identifier)`` pairs that must all pass.
        notice: Wording used if the request is throttled.
        response: Outgoing response to annotate on approval.

    Returns:
        The combined decision, or None when rate limiting is disabled.

    Raises:
        RateLimitExceededError: When the combined decision denies the request.
    """
    if not settings.app.rate_limit_enabled:
        return None

    checks = list(checks)
    decision = limiter.check_all(checks)
    log_extra = {
        "policies": [policy.name for policy, _ in checks],
        "key_hashes": [_hash_identifier(identifier) for _, identifier in checks],
        "limit": decision.limit,
        "remaining": decision.remaining,
    }

    if decision.allowed:
        logger.debug("rate_limit.allowed", extra=log_extra)
        if response is not None and settings.app.rate_limit_include_headers:
            response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return decision

    logger.warning(
        "rate_limit.exceeded",
        extra={**log_extra, "retry_after_s": decision.retry_after_seconds},
    )
    raise RateLimitExceededError(decision, notice)


async def enforce_email_check_rate_limit(
    request: Request,
    response: Response,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> RateLimitDecision | None:
    """FastAPI dependency guarding the email existence lookup by client IP."""
    return enforce_rate_limit(
        limiter,
        [(EMAIL_CHECK_BY_IP, ip_identifier(request))],
        notice=EMAIL_CHECK_NOTICE,
        response=response,
    )
