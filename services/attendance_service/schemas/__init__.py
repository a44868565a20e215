"""Attendance Service schemas package."""

from services.attendance_service.schemas.enums import RosterStatus
from services.attendance_service.schemas.main import (
    AttendanceBase,
    AttendanceMark,
    AttendanceResponse,
    AttendanceRosterEntry,
    AttendanceStatistics,
    BulkAttendanceCreate,
    BulkAttendanceFailure,
    BulkAttendanceResult,
)

__all__ = [
    "AttendanceBase",
    "AttendanceMark",
    "AttendanceResponse",
    "AttendanceRosterEntry",
    "AttendanceStatistics",
    "BulkAttendanceCreate",
    "BulkAttendanceFailure",
    "BulkAttendanceResult",
    "RosterStatus",
]
