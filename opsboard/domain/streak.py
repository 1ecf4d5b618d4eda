"""Streak domain model."""

from datetime import date

from pydantic import BaseModel, Field, field_validator

from opsboard.core.parsing import parse_date


class StreakRecord(BaseModel):
    """Per-location completion streak, one row per location."""

    location_id: str = Field(..., description="Location the streak belongs to")
    current_streak: int = Field(default=0, description="Consecutive completion days up to last_completion_date")
    longest_streak: int = Field(default=0, description="Best streak ever reached")
    last_completion_date: date | None = Field(default=None, description="Last calendar day with a completion")
    streak_freeze_available: int = Field(default=0, description="Banked tokens that each absorb one missed day")

    @field_validator("last_completion_date", mode="before")
    @classmethod
    def parse_last_completion_date(cls, v: object) -> date | None:
        """Treat an unreadable stored date as 'no completion'."""
        return parse_date(v)

    @field_validator("current_streak", "longest_streak", "streak_freeze_available", mode="before")
    @classmethod
    def non_negative(cls, v: object) -> object:
        if v is None:
            return 0
        if isinstance(v, int) and v < 0:
            return 0
        return v
