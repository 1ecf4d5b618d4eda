"""Pytest configuration and shared fixtures."""

import logging
from collections.abc import AsyncGenerator

import pytest

from opsboard.core import db_client
from opsboard.core.config import Settings


logger = logging.getLogger(__name__)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway database file."""
    return Settings(
        sqlite_db_path=str(tmp_path / "opsboard-test.db"),
        logfire_token=None,
        environment="test",
    )


@pytest.fixture
async def sqlite_db(monkeypatch, test_settings: Settings) -> AsyncGenerator[str]:
    """Initialize a real SQLite database in a temp directory and point db_client at it."""
    monkeypatch.setattr(db_client.settings, "sqlite_db_path", test_settings.sqlite_db_path)
    await db_client.init_db()
    logger.info("Initialized test database at %s", test_settings.sqlite_db_path)

    yield test_settings.sqlite_db_path

    await db_client.close_connection()
