"""Badges and the per-location gamification summary.

Badges are recomputed from the completion history on every request; nothing is
stored. The summary combines the perfect-day streak, the XP level, the badge
list and lifetime totals for one location.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from opsboard.core.config import Constants
from opsboard.core.errors import classify_error_with_response
from opsboard.core.logging import span
from opsboard.core.parsing import parse_date
from opsboard.domain.completion import Completion
from opsboard.domain.task import Task
from opsboard.models.service_models import (
    Badge,
    GamificationStats,
    GamificationSummary,
    PerfectDayStreak,
    StreakSnapshot,
)
from opsboard.services import ledger_service, streak_service
from opsboard.services.applicability_service import tasks_due_on
from opsboard.services.level_service import level_for


logger = logging.getLogger(__name__)


def _completed_before(completion: Completion, hour: int) -> bool:
    # Hour as recorded in the completion's own (location-local) timestamp
    return completion.completed_at is not None and completion.completed_at.hour < hour


def _speed_demon_date(tasks: list[Task], completions: list[Completion], location_id: str) -> str | None:
    """Return the first date on which every due task was completed before noon, if any."""
    by_date: dict[str, dict[str, Completion]] = defaultdict(dict)
    for completion in completions:
        by_date[completion.completed_date].setdefault(completion.task_id, completion)

    for date_str in sorted(by_date):
        on = parse_date(date_str)
        if on is None:
            continue
        due = tasks_due_on(tasks, location_id, on)
        if not due:
            continue
        day = by_date[date_str]
        if all(task.id in day and _completed_before(day[task.id], Constants.SPEED_DEMON_HOUR) for task in due):
            return date_str
    return None


def evaluate_badges(
    tasks: Iterable[Task],
    completions: Iterable[Completion],
    location_id: str,
    perfect_streak: int,
    total_xp: int,
) -> list[Badge]:
    """Evaluate every badge for a location.

    Args:
        tasks: All tasks
        completions: The location's completion history
        location_id: Location being evaluated
        perfect_streak: Current perfect-day streak
        total_xp: Lifetime XP (base plus bonus)

    Returns:
        All badges in display order, earned or not
    """
    tasks = list(tasks)
    history = sorted(
        (c for c in completions if c.location_id == location_id),
        key=lambda c: c.completed_date,
    )

    early = [c for c in history if _completed_before(c, Constants.EARLY_BIRD_HOUR)]
    speed_demon_date = _speed_demon_date(tasks, history, location_id)
    first_date = history[0].completed_date if history else None

    return [
        Badge(
            id="early_bird",
            name="Early Bird",
            description="Complete a task before 9:00 AM",
            icon="🌅",
            earned=bool(early),
            earned_date=early[0].completed_date if early else None,
        ),
        Badge(
            id="perfect_week",
            name="Perfect Week",
            description="Complete all tasks for 7 days straight",
            icon="⭐",
            earned=perfect_streak >= Constants.PERFECT_WEEK_DAYS,
        ),
        Badge(
            id="speed_demon",
            name="Speed Demon",
            description="Complete all tasks before noon",
            icon="⚡",
            earned=speed_demon_date is not None,
            earned_date=speed_demon_date,
        ),
        Badge(
            id="first_steps",
            name="First Steps",
            description="Complete your very first task",
            icon="👣",
            earned=first_date is not None,
            earned_date=first_date,
        ),
        Badge(
            id="point_collector",
            name="Point Collector",
            description="Earn 500 total points",
            icon="💎",
            earned=total_xp >= Constants.POINT_COLLECTOR_XP,
        ),
        Badge(
            id="bonus_hunter",
            name="Bonus Hunter",
            description="Earn early bird bonus points",
            icon="🎯",
            earned=any(c.bonus_points > 0 for c in history),
        ),
        Badge(
            id="streak_master",
            name="Streak Master",
            description="Maintain a 30-day streak",
            icon="🔥",
            earned=perfect_streak >= Constants.STREAK_MASTER_DAYS,
        ),
        Badge(
            id="century_club",
            name="Century Club",
            description="Complete 100 total tasks",
            icon="💯",
            earned=len(history) >= Constants.CENTURY_CLUB_COMPLETIONS,
        ),
    ]


def build_summary(
    tasks: Iterable[Task],
    completions: Iterable[Completion],
    location_id: str,
    today: date,
    *,
    lookback_days: int | None = None,
) -> GamificationSummary:
    """Combine perfect-day streak, level, badges and totals for a location."""
    tasks = list(tasks)
    history = [c for c in completions if c.location_id == location_id]

    streak: PerfectDayStreak = streak_service.perfect_day_streak(
        tasks, history, location_id, today, lookback_days=lookback_days
    )
    total_xp = sum(c.total_points for c in history)

    return GamificationSummary(
        location_id=location_id,
        streak=streak,
        level=level_for(total_xp),
        badges=evaluate_badges(tasks, history, location_id, streak.current, total_xp),
        stats=GamificationStats(
            total_tasks_completed=len(history),
            total_xp=total_xp,
            total_bonus_points=sum(c.bonus_points for c in history),
        ),
    )


async def get_gamification_summary(location_id: str, today: date) -> GamificationSummary:
    """Load a location's history and build its gamification summary.

    The stored completion streak is attached on a best-effort basis: if it
    cannot be read, the summary is still returned with `stored_streak_error`
    set instead.

    Args:
        location_id: Location to summarize
        today: Caller-local date

    Returns:
        GamificationSummary for the location
    """
    with span("badge_service.get_gamification_summary"):
        tasks = await ledger_service.list_tasks()
        completions = await ledger_service.list_completions(location_id=location_id)
        summary = build_summary(tasks, completions, location_id, today)

        # Stored streak - BEST EFFORT
        stored: StreakSnapshot | None = None
        stored_error: str | None = None
        try:
            stored = await streak_service.get_streak(location_id, today)
        except Exception as e:
            error = classify_error_with_response(e)
            logger.error("Error reading stored streak for location %s: %s", location_id, e)
            stored_error = f"{error.message} {error.suggestion}"

        earned = sum(badge.earned for badge in summary.badges)
        logger.info(
            "Location %s: perfect streak %d, level %d, %d badges earned",
            location_id,
            summary.streak.current,
            summary.level.level,
            earned,
        )
        return summary.model_copy(update={"stored_streak": stored, "stored_streak_error": stored_error})
