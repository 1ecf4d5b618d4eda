"""Streak read and write paths against a real SQLite database."""

import asyncio
from datetime import date, timedelta

import pytest

from opsboard.core import db_client
from opsboard.services import badge_service, leaderboard_service, streak_service


D = date(2024, 5, 6)


@pytest.mark.integration
class TestStreakPersistence:
    """End-to-end streak behaviour through db_client and SQLite."""

    async def test_freeze_scenario(self, sqlite_db):
        """Test completions on D..D+2, nothing on D+3, and a freeze absorbing the gap on D+4."""
        await db_client.upsert_record(
            collection="streaks",
            data={"location_id": "loc-1", "current_streak": 0, "streak_freeze_available": 1},
            conflict_key="location_id",
        )
        for offset in range(3):
            await streak_service.record_completion("loc-1", D + timedelta(days=offset))

        first = await streak_service.get_streak("loc-1", D + timedelta(days=4))
        second = await streak_service.get_streak("loc-1", D + timedelta(days=4))

        assert first.current_streak == 3
        assert first.freeze_consumed == 1
        assert first.streak_freeze_available == 0
        assert second.freeze_consumed == 0
        assert second.current_streak == 3

        row = await db_client.get_first_record(collection="streaks", filter_query='location_id = "loc-1"')
        assert row["last_completion_date"] == (D + timedelta(days=3)).isoformat()

    async def test_concurrent_completions_increment_once(self, sqlite_db):
        await streak_service.record_completion("loc-1", D)

        results = await asyncio.gather(
            *(streak_service.record_completion("loc-1", D + timedelta(days=1)) for _ in range(4))
        )

        assert {r.current_streak for r in results} == {2}
        snapshot = await streak_service.get_streak("loc-1", D + timedelta(days=1))
        assert snapshot.current_streak == 2
        assert snapshot.longest_streak == 2

    async def test_location_id_with_backslash_keeps_its_row(self, sqlite_db):
        location_id = "store\\7"

        await streak_service.record_completion(location_id, D)
        update = await streak_service.record_completion(location_id, D + timedelta(days=1))

        assert update.current_streak == 2
        rows = await db_client.list_records(collection="streaks")
        assert [(row["location_id"], row["current_streak"]) for row in rows] == [(location_id, 2)]


@pytest.mark.integration
class TestDashboardReads:
    """Leaderboard and gamification reads from SQLite rows."""

    @pytest.fixture
    async def seeded(self, sqlite_db):
        await db_client.create_record(
            collection="locations", data={"id": "loc-1", "name": "Downtown", "store_number": "101"}
        )
        await db_client.create_record(
            collection="locations", data={"id": "loc-2", "name": "Uptown", "store_number": "102"}
        )
        await db_client.create_record(
            collection="tasks",
            data={
                "id": "t1",
                "title": "Count drawer",
                "is_recurring": True,
                "recurring_type": "daily",
                "created_at": "2024-01-01T08:00:00",
            },
        )
        for offset in range(3):
            day = (D + timedelta(days=offset)).isoformat()
            await db_client.create_record(
                collection="task_completions",
                data={
                    "task_id": "t1",
                    "location_id": "loc-1",
                    "completed_date": day,
                    "completed_at": f"{day}T08:15:00",
                    "points_earned": 10,
                    "bonus_points": 5,
                },
            )
        return sqlite_db

    async def test_leaderboard(self, seeded):
        leaderboard = await leaderboard_service.get_leaderboard(D + timedelta(days=3))

        assert [e.location_id for e in leaderboard.entries] == ["loc-1", "loc-2"]
        top = leaderboard.entries[0]
        assert top.total_tasks == 7
        assert top.completed_tasks == 3
        assert top.completion_pct == 43
        assert top.total_points == 45
        assert [e.rank for e in leaderboard.entries] == [1, 2]

    async def test_gamification_summary(self, seeded):
        summary = await badge_service.get_gamification_summary("loc-1", D + timedelta(days=3))

        assert summary.streak.current == 3
        assert summary.stats.total_xp == 45
        assert summary.stored_streak is not None
        earned = {b.id for b in summary.badges if b.earned}
        assert earned == {"early_bird", "speed_demon", "first_steps", "bonus_hunter"}
