"""Pytest configuration and fixtures for unit tests."""

from datetime import datetime

import pytest

from opsboard.domain.completion import Completion
from opsboard.domain.location import Location
from opsboard.domain.task import Task
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches opsboard.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("opsboard.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("opsboard.core.db_client.upsert_record", in_memory_db.upsert_record)
    monkeypatch.setattr("opsboard.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("opsboard.core.db_client.get_first_record", in_memory_db.get_first_record)
    monkeypatch.setattr("opsboard.core.db_client.transaction", in_memory_db.transaction)

    return in_memory_db


@pytest.fixture
def task_factory():
    """Factory for building Task models with sensible defaults.

    Usage:
        task = task_factory(id="t1", is_recurring=True, recurring_type="daily")
    """
    counter = iter(range(1, 10_000))

    def _create_task(**kwargs) -> Task:
        data = {
            "id": f"task-{next(counter)}",
            "title": "Test Task",
            "due_time": "09:00",
            "points": 10,
            "created_at": datetime(2024, 1, 1, 8, 0),
        }
        data.update(kwargs)
        return Task.model_validate(data)

    return _create_task


@pytest.fixture
def completion_factory():
    """Factory for building Completion models.

    Usage:
        completion = completion_factory("t1", "loc-1", "2024-05-06", points_earned=10)
    """

    def _create_completion(task_id: str, location_id: str, completed_date: str, **kwargs) -> Completion:
        data = {
            "task_id": task_id,
            "location_id": location_id,
            "completed_date": completed_date,
            "completed_at": f"{completed_date}T10:00:00",
            "points_earned": 10,
        }
        data.update(kwargs)
        return Completion.model_validate(data)

    return _create_completion


@pytest.fixture
def locations():
    """Three active locations."""
    return [
        Location(id="loc-1", name="Downtown", store_number="101"),
        Location(id="loc-2", name="Uptown", store_number="102"),
        Location(id="loc-3", name="Airport", store_number="103"),
    ]
