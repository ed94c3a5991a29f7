"""Shared test fixtures.

Provides a ``test_client`` for FastAPI, mock Supabase clients wired in via
``app.dependency_overrides``, and an authenticated-user override for use
across all test modules.
"""

import os

# Settings are read at import time; tests never talk to real services
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ["REDIS_URL"] = ""

from collections.abc import Generator  # noqa: E402
from unittest.mock import MagicMock, patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.models.user import User  # noqa: E402


@pytest.fixture()
def fake_user() -> User:
    return User(id="user-a", name="Alice Admin", email="alice@example.com")


@pytest.fixture()
def mock_supabase() -> Generator[MagicMock, None, None]:
    """Override the ``get_supabase`` dependency with a mock client."""
    from app.db.supabase import get_supabase
    from app.main import app

    mock_client = MagicMock()
    app.dependency_overrides[get_supabase] = lambda: mock_client
    yield mock_client
    app.dependency_overrides.pop(get_supabase, None)


@pytest.fixture()
def mock_auth_client() -> Generator[MagicMock, None, None]:
    """Override the ``get_auth_client`` dependency with a mock client."""
    from app.db.supabase import get_auth_client
    from app.main import app

    mock_client = MagicMock()
    app.dependency_overrides[get_auth_client] = lambda: mock_client
    yield mock_client
    app.dependency_overrides.pop(get_auth_client, None)


@pytest.fixture()
def authenticated(fake_user: User) -> Generator[User, None, None]:
    """Treat every request as coming from ``fake_user``."""
    from app.core.deps import get_current_user
    from app.main import app

    app.dependency_overrides[get_current_user] = lambda: fake_user
    yield fake_user
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture()
def mock_supabase_module() -> Generator[MagicMock, None, None]:
    """Patch the Supabase client at module level in the health router."""
    mock_client = MagicMock()
    # Mock the select -> limit -> execute chain
    mock_table = MagicMock()
    mock_select = MagicMock()
    mock_limit = MagicMock()

    mock_client.table.return_value = mock_table
    mock_table.select.return_value = mock_select
    mock_select.limit.return_value = mock_limit
    mock_limit.execute.return_value = MagicMock()  # non-None result

    with patch("app.routers.health.get_supabase", return_value=mock_client):
        yield mock_client


@pytest.fixture()
def mock_supabase_disconnected() -> Generator[MagicMock, None, None]:
    """Patch ``get_supabase`` to simulate a disconnected database."""
    with patch(
        "app.routers.health.get_supabase",
        side_effect=Exception("Connection refused"),
    ):
        yield MagicMock()


@pytest.fixture()
def test_client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient."""
    from app.main import app

    with TestClient(app) as client:
        yield client
