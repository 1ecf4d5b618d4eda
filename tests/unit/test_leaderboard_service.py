"""Unit tests for leaderboard_service module."""

from datetime import date, timedelta

import pytest

from opsboard.domain.location import Location
from opsboard.models.service_models import LeaderboardEntry
from opsboard.services import leaderboard_service
from opsboard.services.leaderboard_service import assign_competition_ranks, count_weekly_tasks, rank_locations


MONDAY = date(2024, 5, 6)


def _week(completion_factory, task_id: str, location_id: str, days: int, **kwargs):
    return [
        completion_factory(task_id, location_id, (MONDAY + timedelta(days=i)).isoformat(), **kwargs) for i in range(days)
    ]


@pytest.fixture
def daily_task(task_factory):
    return task_factory(id="t1", is_recurring=True, recurring_type="daily")


def _entry(location_id: str, pct: int, points: int) -> LeaderboardEntry:
    return LeaderboardEntry(
        location_id=location_id,
        name=location_id,
        store_number="",
        total_tasks=10,
        completed_tasks=0,
        completion_pct=pct,
        base_points=points,
        bonus_points=0,
        total_points=points,
    )


@pytest.mark.unit
class TestRankLocations:
    """Tests for rank_locations function."""

    def test_competition_ranking(self, locations, daily_task, completion_factory):
        """Test that two tied locations share rank 1 and the next is rank 3."""
        completions = [
            *_week(completion_factory, "t1", "loc-1", 7),
            *_week(completion_factory, "t1", "loc-2", 7),
            *_week(completion_factory, "t1", "loc-3", 3),
        ]

        entries = rank_locations(locations, [daily_task], completions, MONDAY)

        assert [e.location_id for e in entries] == ["loc-1", "loc-2", "loc-3"]
        assert [e.rank for e in entries] == [1, 1, 3]
        assert entries[0].completion_pct == 100
        assert entries[0].total_points == 70
        assert entries[2].completed_tasks == 3
        assert entries[2].completion_pct == 43

    def test_points_break_percentage_ties(self, locations, daily_task, completion_factory):
        completions = [
            *_week(completion_factory, "t1", "loc-1", 7),
            *_week(completion_factory, "t1", "loc-2", 7, bonus_points=2),
        ]

        entries = rank_locations(locations[:2], [daily_task], completions, MONDAY)

        assert [e.location_id for e in entries] == ["loc-2", "loc-1"]
        assert [e.rank for e in entries] == [1, 2]
        assert entries[0].bonus_points == 14
        assert entries[0].total_points == 84

    def test_hidden_tasks_count_in_denominator(self, locations, daily_task, task_factory, completion_factory):
        hidden = task_factory(id="t2", is_recurring=True, recurring_type="daily", is_hidden=True, show_in_today=False)

        entries = rank_locations(locations[:1], [daily_task, hidden], _week(completion_factory, "t1", "loc-1", 7), MONDAY)

        assert entries[0].total_tasks == 14
        assert entries[0].completion_pct == 50

    def test_duplicate_completions_count_once(self, locations, daily_task, completion_factory):
        """Test that only the first completion for a task and day contributes."""
        completions = [
            completion_factory("t1", "loc-1", "2024-05-06", points_earned=10),
            completion_factory("t1", "loc-1", "2024-05-06", points_earned=99),
        ]

        entry = rank_locations(locations[:1], [daily_task], completions, MONDAY)[0]

        assert entry.completed_tasks == 1
        assert entry.base_points == 10

    def test_location_specific_tasks(self, locations, daily_task, task_factory):
        own = task_factory(id="t2", is_recurring=True, recurring_type="daily", location_id="loc-2")

        entries = {e.location_id: e for e in rank_locations(locations, [daily_task, own], [], MONDAY)}

        assert entries["loc-1"].total_tasks == 7
        assert entries["loc-2"].total_tasks == 14

    def test_any_day_of_week_selects_same_week(self, locations, daily_task, completion_factory):
        completions = _week(completion_factory, "t1", "loc-1", 7)

        from_monday = rank_locations(locations, [daily_task], completions, MONDAY)
        from_sunday = rank_locations(locations, [daily_task], completions, date(2024, 5, 12))

        assert from_monday == from_sunday

    def test_completions_outside_week_ignored(self, locations, daily_task, completion_factory):
        completions = [
            completion_factory("t1", "loc-1", "2024-05-05"),
            completion_factory("t1", "loc-1", "2024-05-13"),
        ]

        entry = rank_locations(locations[:1], [daily_task], completions, MONDAY)[0]

        assert entry.completed_tasks == 0
        assert entry.total_points == 0

    def test_completion_for_unscheduled_day_ignored(self, locations, task_factory, completion_factory):
        weekly = task_factory(id="t1", is_recurring=True, recurring_type="weekly", recurring_days='["mon"]')
        completions = [completion_factory("t1", "loc-1", "2024-05-07")]

        entry = rank_locations(locations[:1], [weekly], completions, MONDAY)[0]

        assert entry.total_tasks == 1
        assert entry.completed_tasks == 0

    def test_no_tasks_scores_zero(self, locations):
        entries = rank_locations(locations, [], [], MONDAY)

        assert all(e.completion_pct == 0 for e in entries)
        assert [e.rank for e in entries] == [1, 1, 1]

    def test_denominator_matches_day_by_day_count(self, locations, daily_task, task_factory):
        tasks = [
            daily_task,
            task_factory(id="t2", is_recurring=True, recurring_type="weekly", recurring_days='["tue", "sat"]'),
            task_factory(id="t3", is_recurring=False, due_date="2024-05-09"),
        ]

        entry = rank_locations(locations[:1], tasks, [], MONDAY)[0]

        assert entry.total_tasks == count_weekly_tasks(tasks, "loc-1", MONDAY) == 10


@pytest.mark.unit
class TestAssignCompetitionRanks:
    """Tests for assign_competition_ranks function."""

    def test_three_way_tie_then_next(self):
        entries = [_entry("a", 90, 50), _entry("b", 90, 50), _entry("c", 90, 50), _entry("d", 80, 70)]

        assert [e.rank for e in assign_competition_ranks(entries)] == [1, 1, 1, 4]

    def test_same_points_different_percentage(self):
        entries = [_entry("a", 90, 50), _entry("b", 80, 50), _entry("c", 80, 50)]

        assert [e.rank for e in assign_competition_ranks(entries)] == [1, 2, 2]

    def test_empty(self):
        assert assign_competition_ranks([]) == []


@pytest.mark.unit
class TestGetLeaderboard:
    """Tests for get_leaderboard with the store patched."""

    async def test_builds_week_from_store(self, patched_db):
        """Test that inactive locations are skipped and the week bounds are returned."""
        await patched_db.create_record(
            collection="locations", data={"id": "loc-1", "name": "Downtown", "store_number": "101", "is_active": True}
        )
        await patched_db.create_record(
            collection="locations", data={"id": "loc-2", "name": "Closed", "store_number": "102", "is_active": False}
        )
        await patched_db.create_record(
            collection="tasks",
            data={
                "id": "t1",
                "title": "Open registers",
                "is_recurring": True,
                "recurring_type": "weekly",
                "recurring_days": '["mon", "thu"]',
                "created_at": "2024-01-01T08:00:00",
            },
        )
        await patched_db.create_record(
            collection="task_completions",
            data={"task_id": "t1", "location_id": "loc-1", "completed_date": "2024-05-06", "points_earned": 10},
        )
        await patched_db.create_record(
            collection="task_completions",
            data={"task_id": "t1", "location_id": "loc-1", "completed_date": "2024-04-29", "points_earned": 10},
        )

        leaderboard = await leaderboard_service.get_leaderboard(date(2024, 5, 9))

        assert leaderboard.week_start == MONDAY
        assert leaderboard.week_end == date(2024, 5, 12)
        assert [e.location_id for e in leaderboard.entries] == ["loc-1"]
        entry = leaderboard.entries[0]
        assert entry.total_tasks == 2
        assert entry.completed_tasks == 1
        assert entry.completion_pct == 50
        assert entry.rank == 1

    async def test_tenant_scoping(self, patched_db):
        await patched_db.create_record(
            collection="locations", data={"id": "loc-1", "name": "A", "tenant_id": "acme", "is_active": True}
        )
        await patched_db.create_record(
            collection="locations", data={"id": "loc-2", "name": "B", "tenant_id": "other", "is_active": True}
        )

        leaderboard = await leaderboard_service.get_leaderboard(MONDAY, tenant_id="acme")

        assert [e.location_id for e in leaderboard.entries] == ["loc-1"]

    async def test_empty_store(self, patched_db):
        leaderboard = await leaderboard_service.get_leaderboard(MONDAY)

        assert leaderboard.entries == []


@pytest.mark.unit
def test_location_model_defaults():
    location = Location(id="loc-1", name="Downtown")

    assert location.is_active
    assert location.store_number == ""
