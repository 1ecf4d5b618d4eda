"""Daily applicability: which tasks are due for a location on a date.

Two views are served from the same rule evaluation:
- Today view: what a location sees on its board. Hidden tasks and tasks with
  show_in_today switched off are dropped.
- Calendar view: every scheduled instance, regardless of visibility. Streak and
  leaderboard denominators use this view so they count all scheduled work.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from opsboard.core.config import settings
from opsboard.core.parsing import parse_clock_minutes
from opsboard.core.recurrence import task_matches
from opsboard.domain.completion import Completion
from opsboard.domain.task import Task
from opsboard.models.service_models import TaskStatus, TodayBoard, UpcomingDay


logger = logging.getLogger(__name__)


def applies_to_location(task: Task, location_id: str | None) -> bool:
    """Return True if a task is in scope for the location (None means every location)."""
    return location_id is None or task.location_id is None or task.location_id == location_id


def is_visible_today(task: Task) -> bool:
    """Return True if a task may appear on the today board."""
    return not task.is_hidden and task.show_in_today


def _due_time_key(task: Task) -> tuple[bool, int]:
    minutes = parse_clock_minutes(task.due_time)
    # Unreadable due times sort after every real one
    return (minutes is None, minutes or 0)


def tasks_due_on(
    tasks: Iterable[Task],
    location_id: str | None,
    on: date,
    *,
    today_view: bool = False,
    day_of_week: str | None = None,
) -> list[Task]:
    """Get the tasks due on a date for a location, ordered by due time.

    Args:
        tasks: All candidate tasks
        location_id: Location to scope to, or None for the global view
        on: Caller-local calendar date
        today_view: Drop hidden tasks and tasks not shown in today
        day_of_week: Caller-local weekday token, derived from `on` when omitted

    Returns:
        Due tasks sorted ascending by due time (ties keep input order)
    """
    due = [
        task
        for task in tasks
        if applies_to_location(task, location_id)
        and (not today_view or is_visible_today(task))
        and task_matches(task, on, day_of_week=day_of_week)
    ]
    due.sort(key=_due_time_key)
    return due


def completed_task_ids(completions: Iterable[Completion], location_id: str | None, on: date) -> set[str]:
    """Return IDs of tasks the location completed on a date."""
    date_str = on.isoformat()
    return {c.task_id for c in completions if c.location_id == location_id and c.completed_date == date_str}


def build_today_board(
    tasks: Iterable[Task],
    completions: Iterable[Completion],
    location_id: str | None,
    now: datetime,
    *,
    due_soon_minutes: int | None = None,
) -> TodayBoard:
    """Build the today board for a location.

    A task is overdue once its due time has passed without a completion, and due
    soon when its due time falls within the next `due_soon_minutes`. Completions
    only count for the requested location, so the global view (None) shows no
    progress.

    Args:
        tasks: All candidate tasks
        completions: Completions covering at least today and yesterday
        location_id: Location whose board is built, or None for the global view
        now: Caller-local current date and time
        due_soon_minutes: Due-soon window; defaults to settings.due_soon_minutes

    Returns:
        TodayBoard with task statuses, totals and yesterday's missed tasks
    """
    window = settings.due_soon_minutes if due_soon_minutes is None else due_soon_minutes
    tasks = list(tasks)
    completions = list(completions)
    today = now.date()
    yesterday = today - timedelta(days=1)
    now_minutes = now.hour * 60 + now.minute

    today_str = today.isoformat()
    todays_completions = [c for c in completions if c.location_id == location_id and c.completed_date == today_str]
    done_ids = {c.task_id for c in todays_completions}

    statuses = []
    for task in tasks_due_on(tasks, location_id, today, today_view=True):
        is_completed = task.id in done_ids
        due_minutes = parse_clock_minutes(task.due_time)
        pending = not is_completed and due_minutes is not None
        statuses.append(
            TaskStatus(
                task=task,
                is_completed=is_completed,
                is_overdue=pending and due_minutes < now_minutes,
                is_due_soon=pending and now_minutes <= due_minutes <= now_minutes + window,
            )
        )

    yesterday_done = completed_task_ids(completions, location_id, yesterday)
    missed = [
        task
        for task in tasks_due_on(tasks, location_id, yesterday, today_view=True)
        if task.id not in yesterday_done
    ]

    board = TodayBoard(
        date=today,
        tasks=statuses,
        completed_today=sum(status.is_completed for status in statuses),
        total_today=len(statuses),
        points_today=sum(c.total_points for c in todays_completions),
        missed_yesterday=missed,
    )
    logger.debug(
        "Built today board",
        extra={
            "location_id": location_id,
            "date": today_str,
            "total_today": board.total_today,
            "completed_today": board.completed_today,
            "missed_yesterday": len(missed),
        },
    )
    return board


def upcoming_tasks(
    tasks: Iterable[Task],
    location_id: str | None,
    today: date,
    *,
    days: int = 7,
) -> list[UpcomingDay]:
    """Preview the non-hidden tasks due on each of the next `days` days (today excluded).

    Days with nothing due are omitted.
    """
    tasks = list(tasks)
    upcoming = []
    for offset in range(1, days + 1):
        on = today + timedelta(days=offset)
        due = [task for task in tasks_due_on(tasks, location_id, on) if not task.is_hidden]
        if due:
            upcoming.append(UpcomingDay(date=on, tasks=due))
    return upcoming
