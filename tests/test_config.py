"""Unit tests for configuration, Supabase client, /health and logging."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient


class TestSettings:
    """Settings loading via pydantic-settings."""

    def test_settings_loads_required_fields(self) -> None:
        """Given env vars are set, settings loads without error."""
        env_overrides = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key-123",
            "OPENAI_API_KEY": "sk-test",
            "AIRTABLE_BASE_ID": "appTEST",
        }
        with patch.dict("os.environ", env_overrides, clear=False):
            from app.core.config import Settings

            s = Settings()  # type: ignore[call-arg]
            assert s.SUPABASE_URL == "https://test.supabase.co"
            assert s.SUPABASE_KEY == "test-key-123"
            assert s.OPENAI_API_KEY == "sk-test"
            assert s.AIRTABLE_BASE_ID == "appTEST"

    def test_settings_defaults(self) -> None:
        """Given minimal env vars, defaults are applied correctly."""
        env_overrides = {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_KEY": "test-key",
        }
        with patch.dict("os.environ", env_overrides, clear=False):
            from app.core.config import Settings

            s = Settings(_env_file=None)  # type: ignore[call-arg]
            assert s.EMBEDDING_MODEL == "text-embedding-3-small"
            assert s.EMBEDDING_DIMENSIONS == 1536
            assert s.LLM_MODEL == "gpt-4o-mini"
            assert s.SEARCH_DEFAULT_PAGE_SIZE == 20
            assert s.SEARCH_MAX_PAGE_SIZE == 100
            assert s.INGEST_BATCH_SIZE == 25
            assert s.EMBEDDING_BACKFILL_INTERVAL_MINUTES == 0
            assert s.ALLOWED_ORIGINS == "*"

    def test_settings_requires_supabase(self) -> None:
        """Given no Supabase credentials, Settings refuses to load."""
        from pydantic import ValidationError

        from app.core.config import Settings

        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ValidationError):
                Settings(_env_file=None)  # type: ignore[call-arg]


class TestSupabaseClient:
    """Supabase singleton client."""

    @pytest.mark.asyncio
    async def test_get_supabase_returns_client(self) -> None:
        """Given valid settings, get_supabase returns the created client."""
        mock_client = MagicMock()
        with patch("app.db.supabase.acreate_client", new=AsyncMock(return_value=mock_client)):
            import app.db.supabase as supa_mod

            supa_mod._client = None
            client = await supa_mod.get_supabase()
            assert client is mock_client
            supa_mod._client = None

    @pytest.mark.asyncio
    async def test_get_supabase_is_singleton(self) -> None:
        """Given multiple calls, get_supabase returns the same instance."""
        mock_create = AsyncMock(return_value=MagicMock())
        with patch("app.db.supabase.acreate_client", new=mock_create):
            import app.db.supabase as supa_mod

            supa_mod._client = None
            first = await supa_mod.get_supabase()
            second = await supa_mod.get_supabase()
            assert first is second
            mock_create.assert_awaited_once()
            supa_mod._client = None


class TestHealthEndpoint:
    """GET /health reports database, scheduler and active run."""

    def test_health_connected(
        self, test_client: TestClient, mock_supabase_module: MagicMock
    ) -> None:
        """Given Supabase is reachable, /health returns database=connected."""
        response = test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "connected"
        assert body["active_run"] is None

    def test_health_disconnected(
        self, test_client: TestClient, mock_supabase_disconnected: MagicMock
    ) -> None:
        """Given Supabase is unreachable, /health returns 503 with database=disconnected."""
        response = test_client.get("/health")
        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "degraded"
        assert body["database"] == "disconnected"

    def test_health_reports_active_migration(
        self, test_client: TestClient, mock_supabase_module: MagicMock
    ) -> None:
        from app.scheduler.lock import acquire_run_lock, release_run_lock

        assert acquire_run_lock("transfer")
        try:
            body = test_client.get("/health").json()
        finally:
            release_run_lock()
        assert body["active_run"] == "transfer"
        assert body["scheduler"] in ("running", "stopped")


class TestLogging:
    """Structured logging configuration."""

    def test_setup_logging_configures_root_logger(self) -> None:
        """Given setup_logging is called, root logger has a handler."""
        import logging

        from app.core.logging import setup_logging

        setup_logging()
        root = logging.getLogger()
        assert len(root.handlers) > 0
        handler = root.handlers[0]
        assert handler.formatter is not None
        fmt = handler.formatter._fmt
        assert "%(levelname)" in fmt
        assert "%(asctime)" in fmt
        assert "%(name)" in fmt

    def test_setup_logging_quiets_http_clients(self) -> None:
        import logging

        from app.core.logging import setup_logging

        setup_logging()
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("apscheduler").level == logging.WARNING
