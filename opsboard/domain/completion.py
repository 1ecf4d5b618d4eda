"""Completion ledger domain model."""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from opsboard.core.parsing import parse_timestamp


class Completion(BaseModel):
    """A location's completion of a task on a calendar date."""

    id: str | None = Field(default=None, description="Unique completion ID")
    task_id: str = Field(..., description="ID of the completed task")
    location_id: str = Field(..., description="ID of the location that completed it")
    completed_date: str = Field(..., description="Caller-local calendar date (YYYY-MM-DD)")
    completed_at: datetime | None = Field(default=None, description="Completion timestamp in location-local time")
    points_earned: int = Field(default=0, description="Base points earned")
    bonus_points: int = Field(default=0, description="Bonus points earned (e.g. early completion)")
    notes: str | None = Field(default=None, description="Optional note from the location")

    @field_validator("completed_date", mode="before")
    @classmethod
    def normalize_completed_date(cls, v: object) -> object:
        """Keep the date as a string; malformed values simply never match a real date."""
        if isinstance(v, datetime):
            return v.date().isoformat()
        if isinstance(v, date):
            return v.isoformat()
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("completed_at", mode="before")
    @classmethod
    def parse_completed_at(cls, v: object) -> datetime | None:
        return parse_timestamp(v)

    @field_validator("points_earned", "bonus_points", mode="before")
    @classmethod
    def null_as_zero(cls, v: object) -> object:
        return 0 if v is None else v

    @property
    def total_points(self) -> int:
        """Base plus bonus points."""
        return self.points_earned + self.bonus_points
