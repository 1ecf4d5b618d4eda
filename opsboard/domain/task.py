"""Task domain models and enums."""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from opsboard.core.config import Constants
from opsboard.core.parsing import decode_days, parse_timestamp


class RecurringType(StrEnum):
    """How often a recurring task repeats."""

    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class BiweeklyStart(StrEnum):
    """Which of the two alternating weeks a biweekly task fires on, relative to its creation week."""

    THIS = "this"
    NEXT = "next"


class TaskPriority(StrEnum):
    """Display priority of a task."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class Task(BaseModel):
    """Task data transfer object.

    Stored values are decoded leniently: a malformed recurring-days encoding
    becomes the empty set and an unreadable creation timestamp becomes None, so
    a bad row can only fail to match, never fail to load.
    """

    id: str = Field(..., description="Unique task ID")
    title: str = Field(default="", description="Task title")
    description: str | None = Field(default=None, description="Instructions shown with the task")
    type: str = Field(default="task", description="Task kind ('task', 'reminder', 'cleaning')")
    priority: str = Field(default=TaskPriority.NORMAL, description="Display priority")
    tenant_id: str | None = Field(default=None, description="Owning tenant")
    location_id: str | None = Field(default=None, description="Owning location; None applies to every location")
    due_time: str = Field(default=Constants.DEFAULT_DUE_TIME, description="Local due time (HH:MM)")
    due_date: str | None = Field(default=None, description="Exact due date (YYYY-MM-DD) for one-off tasks")
    is_recurring: bool = Field(default=False, description="Whether the task repeats")
    recurring_type: str | None = Field(default=None, description="daily, weekly, biweekly or monthly")
    recurring_days: frozenset[str | int] = Field(
        default_factory=frozenset,
        description="Weekday tokens (weekly/biweekly) or days of month (monthly)",
    )
    biweekly_start: str | None = Field(default=None, description="'this' or 'next' week for biweekly tasks")
    is_hidden: bool = Field(default=False, description="Hidden from dashboard views")
    show_in_today: bool = Field(default=True, description="Shown on the today board")
    points: int = Field(default=Constants.DEFAULT_TASK_POINTS, description="Base points awarded on completion")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")

    @field_validator("recurring_days", mode="before")
    @classmethod
    def decode_recurring_days(cls, v: object) -> frozenset[str | int]:
        """Decode the stored JSON array once, at the model boundary."""
        return decode_days(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def parse_created_at(cls, v: object) -> datetime | None:
        """Treat an unreadable creation timestamp as absent."""
        return parse_timestamp(v)

    @field_validator("recurring_type", "biweekly_start", mode="before")
    @classmethod
    def normalize_token(cls, v: object) -> str | None:
        """Lower-case rule tokens and map blanks to None."""
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip().lower()

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, v: object) -> str | None:
        """Keep due dates as YYYY-MM-DD strings; they are compared verbatim."""
        if isinstance(v, datetime):
            return v.date().isoformat()
        if isinstance(v, date):
            return v.isoformat()
        if isinstance(v, str) and v.strip():
            return v.strip()
        return None

    @field_validator("due_time", mode="before")
    @classmethod
    def default_due_time(cls, v: object) -> object:
        return Constants.DEFAULT_DUE_TIME if v in (None, "") else v

    @field_validator("points", mode="before")
    @classmethod
    def default_points(cls, v: object) -> object:
        return Constants.DEFAULT_TASK_POINTS if v is None else v

    @field_validator("is_hidden", "is_recurring", mode="before")
    @classmethod
    def null_as_false(cls, v: object) -> object:
        return False if v is None else v

    @field_validator("show_in_today", mode="before")
    @classmethod
    def null_as_true(cls, v: object) -> object:
        return True if v is None else v
