"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory window store and later migrate to Redis or another shared store
without changing the limiter or the API layer.
"""

from merchant_api.adapters.rate_limit.base import (
    AbstractWindowStore,
    RateLimitDecision,
)
from merchant_api.adapters.rate_limit.in_memory import InMemoryWindowStore, RateLimitEntry

__all__ = [
    "AbstractWindowStore",
    "InMemoryWindowStore",
    "RateLimitDecision",
    "RateLimitEntry",
]
