"""Configuration management for opsboard."""

from datetime import date
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="opsboard.db", description="Path to the SQLite database file")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="production", description="Deployment environment reported to Logfire")

    # Today board
    due_soon_minutes: int = Field(
        default=30, ge=0, description="Minutes before a task's due time when it is flagged as due soon"
    )

    # Streaks
    streak_lookback_days: int = Field(
        default=365, ge=1, description="How many days the perfect-day streak walk looks back"
    )
    streak_freeze_interval_days: int = Field(
        default=30, ge=1, description="A streak freeze token is awarded every N consecutive days"
    )

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # Weekday tokens as stored in recurring_days, indexed by date.weekday() (0=Monday)
    WEEKDAY_TOKENS: tuple[str, ...] = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

    # Biweekly parity anchor for tasks without a creation timestamp
    BIWEEKLY_FALLBACK_ANCHOR: date = date(1970, 1, 1)

    # Task defaults
    DEFAULT_DUE_TIME: str = "00:00"
    DEFAULT_TASK_POINTS: int = 10

    # Streak milestones celebrated on the completion path
    STREAK_MILESTONE_DAYS: frozenset[int] = frozenset({7, 14, 30, 60, 100, 365})

    # Perfect-day streak ladder: (days, name, icon)
    PERFECT_DAY_MILESTONES: tuple[tuple[int, str, str], ...] = (
        (3, "3-Day Streak", "🔥"),
        (7, "Week Warrior", "⚡"),
        (14, "Two-Week Titan", "💪"),
        (30, "Monthly Monster", "🏆"),
    )

    # Badges
    EARLY_BIRD_HOUR: int = 9  # completions before 09:00
    SPEED_DEMON_HOUR: int = 12  # all of a day's tasks before noon
    POINT_COLLECTOR_XP: int = 500
    CENTURY_CLUB_COMPLETIONS: int = 100
    PERFECT_WEEK_DAYS: int = 7
    STREAK_MASTER_DAYS: int = 30

    # Leaderboard
    DAYS_PER_WEEK: int = 7

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 500  # Page size when reading whole collections



def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
