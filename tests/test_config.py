"""Unit tests for configuration, Supabase/Redis clients, /health and logging."""

from unittest.mock import MagicMock, patch

import redis
from fastapi.testclient import TestClient


class TestSettings:
    """Settings loading via pydantic-settings."""

    def test_settings_loads_required_fields(self) -> None:
        """Given env vars are set, settings loads without error."""
        env_overrides = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key-123",
            "REDIS_URL": "redis://localhost:6379/0",
            "GEMINI_API_KEY": "gemini-test",
        }
        with patch.dict("os.environ", env_overrides, clear=False):
            from app.core.config import Settings

            s = Settings()  # type: ignore[call-arg]
            assert s.SUPABASE_URL == "https://test.supabase.co"
            assert s.SUPABASE_KEY == "test-key-123"
            assert s.REDIS_URL == "redis://localhost:6379/0"
            assert s.GEMINI_API_KEY == "gemini-test"

    def test_settings_defaults(self) -> None:
        """Given minimal env vars, defaults are applied correctly."""
        env_overrides = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key",
        }
        with patch.dict("os.environ", env_overrides, clear=False):
            from app.core.config import Settings

            s = Settings()  # type: ignore[call-arg]
            assert s.GEMINI_MODEL == "gemini-2.5-flash"
            assert s.ALLOWED_ORIGINS == "*"
            assert s.SUBSCRIPTION_FIRST_EVENT_TIMEOUT == 5.0
            assert s.NOTE_RATE_LIMIT == 30
            assert s.NOTE_RATE_WINDOW_SECONDS == 60
            assert s.LOG_LEVEL == "INFO"


class TestSupabaseClient:
    """Supabase singleton clients."""

    def test_get_supabase_returns_client(self) -> None:
        """Given valid settings, get_supabase returns a Client."""
        mock_client = MagicMock()
        with patch("app.db.supabase.create_client", return_value=mock_client):
            # Reset singleton
            import app.db.supabase as supa_mod

            supa_mod._client = None
            client = supa_mod.get_supabase()
            assert client is mock_client

    def test_get_supabase_is_singleton(self) -> None:
        """Given multiple calls, get_supabase returns the same instance."""
        mock_client = MagicMock()
        with patch("app.db.supabase.create_client", return_value=mock_client) as mock_create:
            import app.db.supabase as supa_mod

            supa_mod._client = None
            first = supa_mod.get_supabase()
            second = supa_mod.get_supabase()
            assert first is second
            mock_create.assert_called_once()

    def test_auth_client_is_separate_instance(self) -> None:
        """Identity calls never share the data client."""
        data_client, auth_client = MagicMock(), MagicMock()
        with patch(
            "app.db.supabase.create_client", side_effect=[data_client, auth_client]
        ):
            import app.db.supabase as supa_mod

            supa_mod._client = None
            supa_mod._auth_client = None
            assert supa_mod.get_supabase() is data_client
            assert supa_mod.get_auth_client() is auth_client

        supa_mod._client = None
        supa_mod._auth_client = None


class TestRedisClient:
    def test_empty_url_disables_cache(self) -> None:
        from app.db.redis import create_redis

        assert create_redis("") is None

    def test_url_builds_client(self) -> None:
        from app.db.redis import create_redis

        client = create_redis("redis://localhost:6379/0")
        assert isinstance(client, redis.Redis)

    def test_invalid_url_disables_cache(self) -> None:
        from app.db.redis import create_redis

        assert create_redis("not-a-redis-url") is None


class TestHealthEndpoint:
    """GET /health returns database and cache status."""

    def test_health_connected(
        self, test_client: TestClient, mock_supabase_module: MagicMock
    ) -> None:
        """Given Supabase is reachable, /health returns database=connected."""
        response = test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "connected"
        assert body["cache"] == "disabled"

    def test_health_disconnected(
        self, test_client: TestClient, mock_supabase_disconnected: MagicMock
    ) -> None:
        """Given Supabase is unreachable, /health returns 503 with database=disconnected."""
        response = test_client.get("/health")
        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "degraded"
        assert body["database"] == "disconnected"

    def test_health_cache_unavailable_is_not_fatal(
        self, test_client: TestClient, mock_supabase_module: MagicMock
    ) -> None:
        from app.services.cache import CacheService

        broken = MagicMock()
        broken.setex.side_effect = redis.ConnectionError("refused")
        test_client.app.state.cache = CacheService(broken)

        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["cache"] == "unavailable"


class TestLogging:
    """Structured logging configuration."""

    def test_setup_logging_configures_root_logger(self) -> None:
        """Given setup_logging is called, root logger has a handler."""
        import logging

        from app.core.logging import setup_logging

        setup_logging()
        root = logging.getLogger()
        assert len(root.handlers) > 0
        # Verify format includes structured elements
        handler = root.handlers[0]
        assert handler.formatter is not None
        fmt = handler.formatter._fmt
        assert "%(levelname)" in fmt
        assert "%(asctime)" in fmt
        assert "%(name)" in fmt
