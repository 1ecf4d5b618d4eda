"""Recurrence resolution for task schedules.

Every view that asks "is this task due on this date?" (today board, upcoming
preview, weekly leaderboard denominator, streak walks) goes through
task_matches() so that they can never disagree.

The caller supplies the calendar date (and optionally the weekday token) in its
own local time. Nothing in this module reads the system clock.
"""

from datetime import date, datetime, timedelta

from dateutil.relativedelta import MO, relativedelta

from opsboard.core.config import Constants
from opsboard.core.parsing import parse_clock_minutes
from opsboard.domain.task import BiweeklyStart, RecurringType, Task


_WEEKDAY_LABELS = {
    "mon": "Mon",
    "tue": "Tue",
    "wed": "Wed",
    "thu": "Thu",
    "fri": "Fri",
    "sat": "Sat",
    "sun": "Sun",
}


def weekday_token(on: date) -> str:
    """Return the stored weekday token ("mon".."sun") for a date."""
    return Constants.WEEKDAY_TOKENS[on.weekday()]


def week_start(on: date) -> date:
    """Return the Monday of the week containing the given date."""
    if isinstance(on, datetime):
        on = on.date()
    return on + relativedelta(weekday=MO(-1))


def week_dates(on: date) -> list[date]:
    """Return the seven dates (Monday through Sunday) of the week containing a date."""
    monday = week_start(on)
    return [monday + timedelta(days=offset) for offset in range(Constants.DAYS_PER_WEEK)]


def weeks_between(anchor: date, target: date) -> int:
    """Count whole Monday-start weeks from the anchor's week to the target's week."""
    return (week_start(target) - week_start(anchor)).days // Constants.DAYS_PER_WEEK


def biweekly_anchor(task: Task) -> date:
    """Return the date whose week is parity zero for a biweekly task."""
    if task.created_at is not None:
        return task.created_at.date()
    return Constants.BIWEEKLY_FALLBACK_ANCHOR


def task_matches(task: Task, on: date, *, day_of_week: str | None = None) -> bool:
    """Decide whether a task's schedule fires on a calendar date.

    Args:
        task: Task whose rule is evaluated
        on: Caller-local calendar date
        day_of_week: Caller-local weekday token; derived from `on` when omitted

    Returns:
        True if the task is due on that date. Malformed rules never match.
    """
    if isinstance(on, datetime):
        on = on.date()

    if task.is_recurring and task.created_at is not None and on < task.created_at.date():
        return False

    if not task.is_recurring:
        return task.due_date == on.isoformat()

    dow = (day_of_week or weekday_token(on)).lower()
    rule = task.recurring_type or RecurringType.WEEKLY

    if rule == RecurringType.DAILY:
        return True

    if rule == RecurringType.WEEKLY:
        return dow in task.recurring_days

    if rule == RecurringType.BIWEEKLY:
        if dow not in task.recurring_days:
            return False
        even_week = weeks_between(biweekly_anchor(task), on) % 2 == 0
        return even_week != (task.biweekly_start == BiweeklyStart.NEXT)

    if rule == RecurringType.MONTHLY:
        return on.day in task.recurring_days

    return False


def _ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:  # noqa: PLR2004
        return f"{day}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def _time_suffix(due_time: str) -> str:
    minutes = parse_clock_minutes(due_time)
    if minutes is None:
        return ""
    h, m = divmod(minutes, 60)
    if h == 0 and m == 0:
        return " at midnight"
    if h == 12 and m == 0:  # noqa: PLR2004
        return " at noon"
    period = "AM" if h < 12 else "PM"  # noqa: PLR2004
    display_hour = h % 12 or 12
    return f" at {display_hour}:{m:02d} {period}"


def _weekday_list(days: frozenset[str | int]) -> str:
    labels = [_WEEKDAY_LABELS[token] for token in Constants.WEEKDAY_TOKENS if token in days]
    return ", ".join(labels)


def describe_recurrence(task: Task) -> str:
    """Convert a task's schedule to human-readable text.

    Examples:
        daily at 9:00 AM
        every Mon, Wed at 2:30 PM
        every other Fri (starting next week) at noon
        monthly on the 1st, 15th at midnight
        once on 2024-05-01 at 6:00 PM
    """
    time_str = _time_suffix(task.due_time)

    if not task.is_recurring:
        if task.due_date:
            return f"once on {task.due_date}{time_str}"
        return "unscheduled"

    rule = task.recurring_type or RecurringType.WEEKLY

    if rule == RecurringType.DAILY:
        return f"daily{time_str}"

    if rule in (RecurringType.WEEKLY, RecurringType.BIWEEKLY):
        days = _weekday_list(task.recurring_days)
        if not days:
            return f"{rule} (no days set)"
        if rule == RecurringType.WEEKLY:
            return f"every {days}{time_str}"
        start = " (starting next week)" if task.biweekly_start == BiweeklyStart.NEXT else ""
        return f"every other {days}{start}{time_str}"

    if rule == RecurringType.MONTHLY:
        month_days = sorted(d for d in task.recurring_days if isinstance(d, int))
        if not month_days:
            return "monthly (no days set)"
        return f"monthly on the {', '.join(_ordinal(d) for d in month_days)}{time_str}"

    return f"unsupported schedule ({rule})"
