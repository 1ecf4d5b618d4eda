"""Domain models and DTOs."""

from opsboard.domain.completion import Completion
from opsboard.domain.location import Location
from opsboard.domain.streak import StreakRecord
from opsboard.domain.task import BiweeklyStart, RecurringType, Task, TaskPriority


__all__ = [
    "BiweeklyStart",
    "Completion",
    "Location",
    "RecurringType",
    "StreakRecord",
    "Task",
    "TaskPriority",
]
