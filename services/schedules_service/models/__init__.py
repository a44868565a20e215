"""Schedules Service models package."""

from services.schedules_service.models.core import Schedule
from services.schedules_service.models.enums import (
    WEEKDAY_FLAG_FIELDS,
    RecurrenceType,
)

__all__ = [
    "RecurrenceType",
    "Schedule",
    "WEEKDAY_FLAG_FIELDS",
]
