"""
Unit tests for application startup and settings environment flags.
"""

from unittest.mock import AsyncMock, patch

import pytest

from main import app, lifespan
from recurrence_engine.core.config import Settings


class TestEnvironmentFlags:
    """Tests for the ENVIRONMENT helpers on Settings."""

    def test_test_environment(self):
        """ENVIRONMENT=test sets is_test only."""
        settings = Settings(ENVIRONMENT="test")
        assert settings.is_test is True
        assert settings.is_local is False

    def test_local_environment(self):
        """ENVIRONMENT=local sets is_local only."""
        settings = Settings(ENVIRONMENT="local")
        assert settings.is_local is True
        assert settings.is_test is False


class TestLifespan:
    """Tests for the startup and shutdown hooks."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("environment", "creates_tables"),
        [("local", True), ("test", False)],
    )
    async def test_init_db_only_in_local(self, environment, creates_tables):
        """Tables are created on startup in the local environment only."""
        init_db = AsyncMock()
        start = AsyncMock()
        stop = AsyncMock()

        with patch("main.get_settings", return_value=Settings(ENVIRONMENT=environment)):
            with patch("recurrence_engine.infrastructure.local.database.init_db", init_db):
                with patch(
                    "recurrence_engine.services.background_scheduler.start_background_scheduler",
                    start,
                ), patch(
                    "recurrence_engine.services.background_scheduler.stop_background_scheduler",
                    stop,
                ):
                    async with lifespan(app):
                        start.assert_awaited_once()

        assert init_db.await_count == (1 if creates_tables else 0)
        stop.assert_awaited_once()
