from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from merchant_api.adapters.rate_limit.base import RateLimitDecision
from merchant_api.core.client_identity import email_identifier, ip_identifier, normalize_email
from merchant_api.core.errors import ValidationAppError
from merchant_api.core.rate_limit import (
    enforce_email_check_rate_limit,
    enforce_rate_limit,
    get_rate_limiter,
)
from merchant_api.core.rate_limit_policies import (
    OTP_SEND_BY_EMAIL,
    OTP_SEND_BY_IP,
    OTP_SEND_NOTICE,
)
from merchant_api.schemas.auth import (
    EmailCheckResponse,
    EmailRequest,
    SendOtpRequest,
    SendOtpResponse,
    ThrottledResponse,
)
from merchant_api.services.email_check_service import EmailCheckService
from merchant_api.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

_THROTTLED = {429: {"model": ThrottledResponse, "description": "Rate limit exceeded"}}


def get_email_check_service(request: Request) -> EmailCheckService:
    """Return the email check service owned by the running application."""
    return request.app.state.email_check_service


def _require_email(email: str | None) -> str:
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationAppError(
            code="email_required",
            message="Email is required",
            details={"field": "email"},
        )
    return normalized


@router.post("/send-otp", response_model=SendOtpResponse, responses=_THROTTLED)
async def send_otp(
    body: SendOtpRequest,
    request: Request,
    response: Response,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> SendOtpResponse:
    """Admission check before the client asks the auth backend for an OTP.

    The request must pass both the per-IP and the per-email quota. On success
    the client proceeds to request the code from the auth backend itself;
    nothing is sent from here.

    Raises:
        ValidationAppError: 400 when the email is missing or blank.
        RateLimitExceededError: 429 when either quota is exhausted.
    """
    email = _require_email(body.email)

    decision: RateLimitDecision | None = enforce_rate_limit(
        limiter,
        [
            (OTP_SEND_BY_IP, ip_identifier(request)),
            (OTP_SEND_BY_EMAIL, email_identifier(email)),
        ],
        notice=OTP_SEND_NOTICE,
        response=response,
    )

    logger.info(
        "otp.precheck_passed",
        extra={"signup_mode": body.is_signup_mode, "rate_limited": decision is not None},
    )
    return SendOtpResponse(remaining=decision.remaining if decision else None)


@router.post(
    "/check-email",
    response_model=EmailCheckResponse,
    response_model_exclude_unset=True,
    responses=_THROTTLED,
    dependencies=[Depends(enforce_email_check_rate_limit)],
)
async def check_email(
    body: EmailRequest,
    service: Annotated[EmailCheckService, Depends(get_email_check_service)],
) -> EmailCheckResponse:
    """Report whether an account already exists for an email.

    Rate limited per client IP before any backend lookup runs. Lookup
    failures degrade to ``exists: null`` rather than an error status.

    Raises:
        ValidationAppError: 400 when the email is missing or blank.
        RateLimitExceededError: 429 when the per-IP quota is exhausted.
    """
    email = _require_email(body.email)
    return await service.check(email)
