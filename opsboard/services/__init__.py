from opsboard.services import (
    applicability_service,
    ledger_service,
    level_service,
    streak_service,
    leaderboard_service,
    badge_service,
)


__all__ = [
    "applicability_service",
    "badge_service",
    "leaderboard_service",
    "ledger_service",
    "level_service",
    "streak_service",
]
