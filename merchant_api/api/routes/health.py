from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check used by load balancers and monitoring.

    Also reports how many rate limit windows are currently tracked, which is
    the only in-process state this service holds.

    Returns:
        dict: ``{"status": "ok", "rate_limit_entries": <int | None>}``.
    """

    limiter = getattr(request.app.state, "rate_limiter", None)
    entries = limiter.store.entry_count() if limiter is not None else None
    return {"status": "ok", "rate_limit_entries": entries}
