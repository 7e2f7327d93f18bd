"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``merchant_api`` import so the
settings object never picks up a developer's local auth backend.
"""

import os

# Must run before settings are imported
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_SERVICE_ROLE_KEY", None)

from collections.abc import Iterator
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from merchant_api.adapters.rate_limit.in_memory import InMemoryWindowStore
from merchant_api.adapters.user_directory.base import AbstractUserDirectory
from merchant_api.core.app_factory import create_app


class FakeUserDirectory(AbstractUserDirectory):
    """In-memory directory recording the emails it was asked about."""

    def __init__(self, emails: set[str] | None = None, error: Exception | None = None) -> None:
        self.emails = emails or set()
        self.error = error
        self.lookups: list[str] = []
        self.closed = False

    async def email_exists(self, email: str) -> bool:
        self.lookups.append(email)
        if self.error is not None:
            raise self.error
        return email in self.emails

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> Mock:
    """Controllable time source (UNIX seconds)."""
    return Mock(return_value=1_000.0)


@pytest.fixture
def store(clock: Mock) -> InMemoryWindowStore:
    return InMemoryWindowStore(clock=clock)


@pytest.fixture
def user_directory() -> FakeUserDirectory:
    return FakeUserDirectory(emails={"owner@shop.example"})


@pytest.fixture
def app(store: InMemoryWindowStore, user_directory: FakeUserDirectory) -> FastAPI:
    return create_app(window_store=store, user_directory_factory=lambda: user_directory)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with the app lifespan running."""
    with TestClient(app) as test_client:
        yield test_client
