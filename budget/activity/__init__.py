"""Activity logging."""

from budget.activity.logger import ActivityEventType, ActivityLogger

__all__ = [
    "ActivityEventType",
    "ActivityLogger",
]
