"""Tests for the recent activity feed."""

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.models.user import User


@pytest.fixture()
def mock_cache() -> Generator[MagicMock, None, None]:
    from app.core.deps import get_cache
    from app.main import app

    cache = MagicMock()
    app.dependency_overrides[get_cache] = lambda: cache
    yield cache
    app.dependency_overrides.pop(get_cache, None)


class TestActivityEndpoint:

    def test_returns_cached_entries(
        self, test_client: TestClient, authenticated: User, mock_cache: MagicMock
    ) -> None:
        mock_cache.get_activity.return_value = [
            {"type": "note_created", "candidate_id": "cand-1"},
        ]

        response = test_client.get("/api/v1/activity?limit=5")

        assert response.status_code == 200
        assert response.json()["activities"][0]["type"] == "note_created"
        mock_cache.get_activity.assert_called_once_with("user-a", limit=5)

    def test_disabled_cache_is_empty(
        self, test_client: TestClient, authenticated: User
    ) -> None:
        response = test_client.get("/api/v1/activity")

        assert response.status_code == 200
        assert response.json() == {"activities": []}

    def test_limit_capped(
        self, test_client: TestClient, authenticated: User, mock_cache: MagicMock
    ) -> None:
        response = test_client.get("/api/v1/activity?limit=51")
        assert response.status_code == 422
