"""Level progression from cumulative XP."""

from collections.abc import Sequence

from opsboard.core.math_utils import clamp, round_half_up
from opsboard.models.service_models import LevelInfo, LevelSnapshot


LEVELS: tuple[LevelInfo, ...] = (
    LevelInfo(level=1, xp_required=0, title="Rookie"),
    LevelInfo(level=2, xp_required=100, title="Team Player"),
    LevelInfo(level=3, xp_required=300, title="Go-Getter"),
    LevelInfo(level=4, xp_required=600, title="All-Star"),
    LevelInfo(level=5, xp_required=1000, title="Champion"),
    LevelInfo(level=6, xp_required=1500, title="Legend"),
    LevelInfo(level=7, xp_required=2500, title="Superstar"),
    LevelInfo(level=8, xp_required=4000, title="Icon"),
    LevelInfo(level=9, xp_required=6000, title="Master"),
    LevelInfo(level=10, xp_required=10000, title="Hall of Fame"),
)


def level_for(total_xp: int, table: Sequence[LevelInfo] = LEVELS) -> LevelSnapshot:
    """Resolve the level tier and progress for a cumulative XP total.

    The current tier is the highest one whose threshold does not exceed
    `total_xp`; XP below every threshold (including negative XP) sits in the
    lowest tier. Progress is the share of the way to the next tier, rounded
    half up, and is 100 at the top tier.

    Args:
        total_xp: Cumulative XP (base plus bonus points)
        table: Level tiers in any order; must not be empty

    Returns:
        LevelSnapshot with the tier, XP still needed and progress percentage

    Examples:
        level_for(999) → level 4 "All-Star", xp_to_next 1, progress_pct 100
        level_for(10500) → level 10 "Hall of Fame", xp_to_next 0, progress_pct 100
    """
    tiers = sorted(table, key=lambda tier: tier.xp_required)
    if not tiers:
        msg = "Level table must contain at least one tier"
        raise ValueError(msg)

    index = 0
    for position, tier in enumerate(tiers):
        if tier.xp_required <= total_xp:
            index = position

    current = tiers[index]
    upcoming = tiers[index + 1] if index + 1 < len(tiers) else None

    if upcoming is None:
        return LevelSnapshot(
            level=current.level,
            title=current.title,
            total_xp=total_xp,
            xp_to_next=0,
            progress_pct=100,
        )

    span = upcoming.xp_required - current.xp_required
    progress = 100 if span <= 0 else clamp(round_half_up((total_xp - current.xp_required) / span * 100), 0, 100)

    return LevelSnapshot(
        level=current.level,
        title=current.title,
        total_xp=total_xp,
        xp_to_next=upcoming.xp_required - total_xp,
        progress_pct=progress,
        next_level=upcoming,
    )
