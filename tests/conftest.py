"""Shared test fixtures.

Provides environment defaults for ``Settings``, a chainable async Supabase
table mock, a FastAPI ``TestClient`` with the scheduler disabled, and
authenticated-user overrides for router tests.
"""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")

from app.models.enums import UserRole  # noqa: E402
from app.models.user import AuthenticatedUser  # noqa: E402

CHAIN_METHODS = (
    "select", "insert", "upsert", "update", "eq", "limit", "range",
    "in_", "gt", "gte", "lt", "lte", "is_", "ilike", "order",
)


def chainable_table_mock(
    data: list[dict[str, Any]] | None = None,
    count: int | None = None,
) -> MagicMock:
    """Return a mock that supports fluent chaining and an awaitable ``execute``."""
    m = MagicMock()
    for method in CHAIN_METHODS:
        getattr(m, method).return_value = m
    m.not_ = m
    m.execute = AsyncMock(return_value=MagicMock(data=data or [], count=count))
    return m


def mock_client_with_table(table: MagicMock) -> MagicMock:
    client = MagicMock()
    client.table.return_value = table
    return client


def async_factory(client: MagicMock) -> AsyncMock:
    """A ``client_factory`` returning *client*."""
    return AsyncMock(return_value=client)


@pytest.fixture()
def mock_supabase_module() -> Generator[MagicMock, None, None]:
    """Patch the Supabase client used by the health router."""
    mock_client = mock_client_with_table(chainable_table_mock(data=[{"id": 1}]))
    with patch("app.routers.health.get_supabase", new=AsyncMock(return_value=mock_client)):
        yield mock_client


@pytest.fixture()
def mock_supabase_disconnected() -> Generator[MagicMock, None, None]:
    """Patch ``get_supabase`` to simulate a disconnected database."""
    with patch(
        "app.routers.health.get_supabase",
        new=AsyncMock(side_effect=Exception("Connection refused")),
    ):
        yield MagicMock()


@pytest.fixture()
def test_client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient (scheduler not started)."""
    from app.main import app

    with patch("app.main.start_scheduler"), patch("app.main.shutdown_scheduler"):
        with TestClient(app) as client:
            yield client
    app.dependency_overrides.clear()


@pytest.fixture()
def regular_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="user-1", email="recruiter@example.com", role=UserRole.user)


@pytest.fixture()
def admin_user() -> AuthenticatedUser:
    return AuthenticatedUser(id="admin-1", email="admin@example.com", role=UserRole.admin)


@pytest.fixture()
def as_user(test_client: TestClient, regular_user: AuthenticatedUser) -> TestClient:
    """TestClient authenticated as a non-admin dashboard user."""
    from app.core.auth import get_current_user
    from app.main import app

    app.dependency_overrides[get_current_user] = lambda: regular_user
    return test_client


@pytest.fixture()
def as_admin(test_client: TestClient, admin_user: AuthenticatedUser) -> TestClient:
    """TestClient authenticated as an admin."""
    from app.core.auth import get_current_user
    from app.main import app

    app.dependency_overrides[get_current_user] = lambda: admin_user
    return test_client
