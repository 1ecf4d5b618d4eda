"""Weekly leaderboard across locations.

Key Concepts:
- Week: Monday through Sunday, containing the caller's local date.
- Denominator: every task scheduled for the location on each day of the week
  (calendar view, hidden tasks included).
- Completion: a scheduled task counts as done when the location has a
  completion for it dated that day. Duplicate completions count once and only
  the first one contributes points.
- Ranking: completion percentage, then total points, both descending. Tied
  locations share a rank and the next distinct location takes its position
  (1, 1, 3).
"""

import logging
from collections.abc import Iterable
from datetime import date, timedelta

from opsboard.core.config import Constants
from opsboard.core.logging import span
from opsboard.core.math_utils import calculate_percentage
from opsboard.core.recurrence import week_dates, week_start as monday_of
from opsboard.domain.completion import Completion
from opsboard.domain.location import Location
from opsboard.domain.task import Task
from opsboard.models.service_models import Leaderboard, LeaderboardEntry
from opsboard.services import ledger_service
from opsboard.services.applicability_service import tasks_due_on


logger = logging.getLogger(__name__)

CompletionKey = tuple[str, str, str]


def _index_completions(completions: Iterable[Completion]) -> dict[CompletionKey, Completion]:
    """Index completions by (task_id, location_id, completed_date), keeping the first of any duplicates."""
    index: dict[CompletionKey, Completion] = {}
    for completion in completions:
        index.setdefault((completion.task_id, completion.location_id, completion.completed_date), completion)
    return index


def count_weekly_tasks(tasks: Iterable[Task], location_id: str, week_start: date) -> int:
    """Count the task instances scheduled for a location over the week containing `week_start`."""
    tasks = list(tasks)
    return sum(len(tasks_due_on(tasks, location_id, day)) for day in week_dates(week_start))


def _score_location(
    location: Location,
    tasks: list[Task],
    completions: dict[CompletionKey, Completion],
    days: list[date],
) -> LeaderboardEntry:
    total = completed = base_points = bonus_points = 0
    for day in days:
        day_str = day.isoformat()
        for task in tasks_due_on(tasks, location.id, day):
            total += 1
            completion = completions.get((task.id, location.id, day_str))
            if completion is None:
                continue
            completed += 1
            base_points += completion.points_earned
            bonus_points += completion.bonus_points

    return LeaderboardEntry(
        location_id=location.id,
        name=location.name,
        store_number=location.store_number,
        total_tasks=total,
        completed_tasks=completed,
        completion_pct=calculate_percentage(completed, total),
        base_points=base_points,
        bonus_points=bonus_points,
        total_points=base_points + bonus_points,
    )


def assign_competition_ranks(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    """Set ranks on already-sorted entries; ties share a rank and the next rank skips ahead."""
    rank = 1
    for position, entry in enumerate(entries, start=1):
        if position > 1:
            previous = entries[position - 2]
            if (entry.completion_pct, entry.total_points) != (previous.completion_pct, previous.total_points):
                rank = position
        entry.rank = rank
    return entries


def rank_locations(
    locations: Iterable[Location],
    tasks: Iterable[Task],
    completions: Iterable[Completion],
    week_start: date,
) -> list[LeaderboardEntry]:
    """Score and rank locations for the week containing `week_start`.

    Args:
        locations: Locations to rank
        tasks: All tasks (location-specific and global)
        completions: Completions covering at least the week
        week_start: Any date in the target week

    Returns:
        Entries sorted best first, with competition ranks assigned
    """
    tasks = list(tasks)
    days = week_dates(week_start)
    index = _index_completions(completions)

    entries = [_score_location(location, tasks, index, days) for location in locations]
    # Stable sort, so equal entries keep their input order
    entries.sort(key=lambda e: (-e.completion_pct, -e.total_points))
    return assign_competition_ranks(entries)


async def get_leaderboard(local_date: date, *, tenant_id: str | None = None) -> Leaderboard:
    """Build the leaderboard for the week containing the caller's local date.

    Args:
        local_date: Caller-local date inside the target week
        tenant_id: Restrict locations and tasks to one tenant

    Returns:
        Leaderboard with ranked entries and the week's Monday and Sunday
    """
    with span("leaderboard_service.get_leaderboard"):
        start = monday_of(local_date)
        end = start + timedelta(days=Constants.DAYS_PER_WEEK - 1)

        locations = await ledger_service.list_locations(tenant_id=tenant_id)
        tasks = await ledger_service.list_tasks(tenant_id=tenant_id)
        completions = await ledger_service.list_completions(start=start, end=end)

        entries = rank_locations(locations, tasks, completions, start)
        logger.info(
            "Built leaderboard for week %s with %d locations",
            start.isoformat(),
            len(entries),
            extra={"tenant_id": tenant_id},
        )
        return Leaderboard(entries=entries, week_start=start, week_end=end)
