"""Schedules Service schemas package."""

from services.schedules_service.schemas.main import (
    AvailableDatesResponse,
    ScheduleBase,
    ScheduleCreate,
    ScheduleResponse,
    ScheduleUpdate,
)

__all__ = [
    "AvailableDatesResponse",
    "ScheduleBase",
    "ScheduleCreate",
    "ScheduleResponse",
    "ScheduleUpdate",
]
