"""Pydantic models for service layer return types.

These models provide type safety at service boundaries; everything the scoring
services hand back to the calling layer is one of these plain-data objects.
"""

from datetime import date

from pydantic import BaseModel

from opsboard.domain.task import Task


class LeaderboardEntry(BaseModel):
    """Weekly aggregate for one location."""

    location_id: str
    name: str
    store_number: str
    total_tasks: int
    completed_tasks: int
    completion_pct: int
    base_points: int
    bonus_points: int
    total_points: int
    rank: int = 0


class Leaderboard(BaseModel):
    """Ranked weekly leaderboard."""

    entries: list[LeaderboardEntry]
    week_start: date
    week_end: date


class StreakSnapshot(BaseModel):
    """Streak state returned by the read path."""

    location_id: str
    current_streak: int
    longest_streak: int
    last_completion_date: date | None
    streak_freeze_available: int
    freeze_consumed: int = 0
    streak_broken: bool = False


class StreakUpdate(BaseModel):
    """Result of recording a completion day."""

    current_streak: int
    longest_streak: int
    milestone: int | None = None
    freeze_awarded: bool = False


class LevelInfo(BaseModel):
    """One tier of the XP level table."""

    level: int
    xp_required: int
    title: str


class LevelSnapshot(BaseModel):
    """Level progress for a cumulative XP total."""

    level: int
    title: str
    total_xp: int
    xp_to_next: int
    progress_pct: int
    next_level: LevelInfo | None = None


class TaskStatus(BaseModel):
    """A task on the today board with its live status."""

    task: Task
    is_completed: bool
    is_overdue: bool
    is_due_soon: bool


class TodayBoard(BaseModel):
    """Everything a location's today view needs."""

    date: date
    tasks: list[TaskStatus]
    completed_today: int
    total_today: int
    points_today: int
    missed_yesterday: list[Task]


class UpcomingDay(BaseModel):
    """Tasks due on one upcoming date."""

    date: date
    tasks: list[Task]


class StreakMilestone(BaseModel):
    """Named step on the perfect-day streak ladder."""

    days: int
    name: str
    icon: str


class PerfectDayStreak(BaseModel):
    """Consecutive fully-completed days ending yesterday."""

    current: int
    current_milestone: StreakMilestone | None = None
    next_milestone: StreakMilestone | None = None
    days_to_next: int = 0


class Badge(BaseModel):
    """Badge with earned state."""

    id: str
    name: str
    description: str
    icon: str
    earned: bool
    earned_date: str | None = None


class GamificationStats(BaseModel):
    """Lifetime completion totals for a location."""

    total_tasks_completed: int
    total_xp: int
    total_bonus_points: int


class GamificationSummary(BaseModel):
    """Streak, level, badges and totals for one location."""

    location_id: str
    streak: PerfectDayStreak
    level: LevelSnapshot
    badges: list[Badge]
    stats: GamificationStats
    stored_streak: StreakSnapshot | None = None
    stored_streak_error: str | None = None
