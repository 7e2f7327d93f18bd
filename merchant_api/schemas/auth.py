"""Pydantic schemas for the admission-controlled auth endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EmailRequest(BaseModel):
    """Request body carrying a caller-supplied email address.

    ``email`` is optional at the schema level so a missing value is reported
    as a 400 by the route instead of FastAPI's generic 422.
    """

    email: str | None = Field(
        default=None,
        description="Email address; trimmed and lower-cased server side.",
    )


class SendOtpRequest(EmailRequest):
    """Body of the OTP dispatch pre-check."""

    is_signup_mode: bool = Field(
        default=False,
        alias="isSignupMode",
        description="Whether the client is in the sign-up flow (informational).",
    )

    model_config = ConfigDict(populate_by_name=True)


class SendOtpResponse(BaseModel):
    """Returned when the OTP request passed admission control.

    The code itself is sent by the auth backend, not by this service.
    """

    success: bool = Field(True, description="Always true on a 200 response.")
    message: str = Field(
        "Rate limit check passed. You can proceed with OTP request.",
        description="Human-readable status.",
    )
    remaining: int | None = Field(
        None,
        description="Tightest remaining quota across the IP and email checks.",
    )


class EmailCheckResponse(BaseModel):
    """Outcome of an email existence lookup."""

    exists: bool | None = Field(
        ...,
        description="True/False when known; null when the lookup is unavailable.",
    )
    message: str | None = Field(default=None, description="Optional human-readable hint.")


class ThrottledResponse(BaseModel):
    """Body of a 429 response from a rate-limited endpoint."""

    error: str
    message: str
    retry_after: int = Field(..., alias="retryAfter")
