"""Attendance status transitions -> session counter deltas."""

from typing import Optional

from services.attendance_service.models import AttendanceStatus


def session_delta(
    old_status: Optional[AttendanceStatus], new_status: AttendanceStatus
) -> int:
    """Change to sessions_completed when a record moves from old to new.

    Only ``present`` counts as a completed session; late and excused do not.
    ``old_status`` is None for a record that did not exist yet.
    """
    was_present = old_status == AttendanceStatus.PRESENT
    is_present = new_status == AttendanceStatus.PRESENT
    if is_present and not was_present:
        return 1
    if was_present and not is_present:
        return -1
    return 0
