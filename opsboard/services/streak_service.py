"""Streak service for per-location completion streaks.

Key Concepts:
- Stored streak: one row per location, extended by the first completion of
  each calendar day (write path) and checked for missed days whenever it is
  read (read path).
- Streak freeze: a banked token that absorbs one missed day. Tokens are earned
  every `streak_freeze_interval_days` consecutive days and are only ever spent
  by the read path. The write path only extends or restarts a streak.
- Perfect-day streak: the gamification view, counting consecutive days (ending
  yesterday) on which every scheduled task was completed.

All date arguments are caller-local calendar dates; nothing here reads the clock.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date, timedelta

from opsboard.core import db_client
from opsboard.core.config import Constants, settings
from opsboard.core.logging import log_with_location_context, span
from opsboard.domain.completion import Completion
from opsboard.domain.streak import StreakRecord
from opsboard.domain.task import Task
from opsboard.models.service_models import PerfectDayStreak, StreakMilestone, StreakSnapshot, StreakUpdate
from opsboard.services import ledger_service
from opsboard.services.applicability_service import tasks_due_on


logger = logging.getLogger(__name__)


def normalize_on_read(record: StreakRecord, today: date) -> tuple[StreakRecord, int, bool]:
    """Apply missed-day rules to a stored streak.

    If the last completion is older than yesterday and a streak is running, one
    banked freeze token absorbs the whole gap and the last completion date moves
    to yesterday, so reading again the same day finds nothing left to absorb.
    With no token left the streak resets to zero.

    Args:
        record: Stored streak row
        today: Caller-local date of the read

    Returns:
        Tuple of (normalized_record, freeze_tokens_consumed, streak_broken)
    """
    yesterday = today - timedelta(days=1)
    last = record.last_completion_date

    if last is None or last >= yesterday or record.current_streak <= 0:
        return record, 0, False

    if record.streak_freeze_available > 0:
        preserved = record.model_copy(
            update={
                "streak_freeze_available": record.streak_freeze_available - 1,
                "last_completion_date": yesterday,
            }
        )
        return preserved, 1, False

    return record.model_copy(update={"current_streak": 0}), 0, True


def apply_completion(
    record: StreakRecord | None,
    location_id: str,
    today: date,
    *,
    freeze_interval_days: int | None = None,
) -> tuple[StreakRecord, StreakUpdate]:
    """Extend or restart a streak for a completion on `today`.

    Only the first completion of a day changes anything; later ones return the
    unchanged values with no milestone.

    Args:
        record: Stored streak row, or None if the location has none yet
        location_id: Location the completion belongs to
        today: Caller-local completion date
        freeze_interval_days: Award a freeze token every N days; defaults to settings

    Returns:
        Tuple of (new_record, update_result)
    """
    interval = freeze_interval_days or settings.streak_freeze_interval_days

    if record is None:
        created = StreakRecord(
            location_id=location_id,
            current_streak=1,
            longest_streak=1,
            last_completion_date=today,
        )
        return created, StreakUpdate(current_streak=1, longest_streak=1)

    if record.last_completion_date == today:
        return record, StreakUpdate(current_streak=record.current_streak, longest_streak=record.longest_streak)

    yesterday = today - timedelta(days=1)
    current = record.current_streak + 1 if record.last_completion_date == yesterday else 1
    longest = max(current, record.longest_streak)
    freeze_awarded = current % interval == 0

    updated = record.model_copy(
        update={
            "current_streak": current,
            "longest_streak": longest,
            "last_completion_date": today,
            "streak_freeze_available": record.streak_freeze_available + int(freeze_awarded),
        }
    )
    milestone = current if current in Constants.STREAK_MILESTONE_DAYS else None
    return updated, StreakUpdate(
        current_streak=current,
        longest_streak=longest,
        milestone=milestone,
        freeze_awarded=freeze_awarded,
    )


def _milestones() -> list[StreakMilestone]:
    return [StreakMilestone(days=days, name=name, icon=icon) for days, name, icon in Constants.PERFECT_DAY_MILESTONES]


def perfect_day_streak(
    tasks: Iterable[Task],
    completions: Iterable[Completion],
    location_id: str,
    today: date,
    *,
    lookback_days: int | None = None,
) -> PerfectDayStreak:
    """Count consecutive perfect days ending yesterday.

    Today is never counted since it may still be in progress. Days with nothing
    scheduled are skipped without breaking the streak; the first day with an
    uncompleted task ends the walk.
    """
    lookback = lookback_days or settings.streak_lookback_days
    tasks = list(tasks)

    done_by_date: dict[str, set[str]] = defaultdict(set)
    for completion in completions:
        if completion.location_id == location_id:
            done_by_date[completion.completed_date].add(completion.task_id)

    streak = 0
    for offset in range(1, lookback + 1):
        day = today - timedelta(days=offset)
        due = tasks_due_on(tasks, location_id, day)
        if not due:
            continue
        done = done_by_date.get(day.isoformat(), set())
        if not all(task.id in done for task in due):
            break
        streak += 1

    ladder = _milestones()
    reached = [m for m in ladder if streak >= m.days]
    upcoming = [m for m in ladder if streak < m.days]
    next_milestone = upcoming[0] if upcoming else None

    return PerfectDayStreak(
        current=streak,
        current_milestone=reached[-1] if reached else None,
        next_milestone=next_milestone,
        days_to_next=next_milestone.days - streak if next_milestone else 0,
    )


def _snapshot(record: StreakRecord, *, freeze_consumed: int = 0, streak_broken: bool = False) -> StreakSnapshot:
    return StreakSnapshot(
        location_id=record.location_id,
        current_streak=record.current_streak,
        longest_streak=record.longest_streak,
        last_completion_date=record.last_completion_date,
        streak_freeze_available=record.streak_freeze_available,
        freeze_consumed=freeze_consumed,
        streak_broken=streak_broken,
    )


async def get_streak(location_id: str, today: date) -> StreakSnapshot:
    """Read a location's streak, absorbing or breaking on missed days.

    Creates a zeroed row on first read. The row is only rewritten when the
    missed-day rules changed it.

    Args:
        location_id: Location to read
        today: Caller-local date of the read

    Returns:
        StreakSnapshot after missed-day rules were applied
    """
    with span("streak_service.get_streak"):
        async with db_client.transaction():
            stored = await ledger_service.get_streak_record(location_id)
            record = stored or StreakRecord(location_id=location_id)
            normalized, consumed, broken = normalize_on_read(record, today)
            if stored is None or normalized != record:
                await ledger_service.upsert_streak(normalized)

        if consumed:
            log_with_location_context(
                logger,
                "info",
                "Streak freeze used",
                location_id=location_id,
                tokens_used=consumed,
                freezes_left=normalized.streak_freeze_available,
            )
        elif broken:
            log_with_location_context(
                logger, "info", "Streak broken", location_id=location_id, previous_streak=record.current_streak
            )

        return _snapshot(normalized, freeze_consumed=consumed, streak_broken=broken)


async def record_completion(location_id: str, today: date) -> StreakUpdate:
    """Record that a location completed a task today.

    Safe to call for every completion: repeated calls on the same day return
    the same streak without incrementing it again.

    Args:
        location_id: Location that completed a task
        today: Caller-local completion date

    Returns:
        StreakUpdate with the new streak, any milestone reached and whether a freeze was awarded
    """
    with span("streak_service.record_completion"):
        async with db_client.transaction():
            stored = await ledger_service.get_streak_record(location_id)
            updated, result = apply_completion(stored, location_id, today)
            if updated != stored:
                await ledger_service.upsert_streak(updated)

        log_with_location_context(
            logger,
            "info",
            "Streak updated",
            location_id=location_id,
            current_streak=result.current_streak,
            milestone=result.milestone,
            freeze_awarded=result.freeze_awarded,
        )
        return result
