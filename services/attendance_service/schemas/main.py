import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from services.attendance_service.models.enums import AttendanceStatus
from services.attendance_service.schemas.enums import RosterStatus


class AttendanceBase(BaseModel):
    status: AttendanceStatus = AttendanceStatus.PRESENT
    notes: Optional[str] = None


class AttendanceMark(AttendanceBase):
    customer_id: uuid.UUID
    schedule_id: uuid.UUID
    subscription_id: uuid.UUID
    attendance_date: date


class BulkAttendanceCreate(BaseModel):
    entries: List[AttendanceMark] = Field(min_length=1)


class AttendanceResponse(AttendanceBase):
    id: uuid.UUID
    customer_id: uuid.UUID
    schedule_id: uuid.UUID
    subscription_id: uuid.UUID
    attendance_date: date
    marked_by: Optional[uuid.UUID] = None
    check_in_time: Optional[datetime] = None
    marked_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BulkAttendanceFailure(BaseModel):
    index: int
    customer_id: uuid.UUID
    status_code: int
    detail: str


class BulkAttendanceResult(BaseModel):
    marked: List[AttendanceResponse] = Field(default_factory=list)
    failed: List[BulkAttendanceFailure] = Field(default_factory=list)


class AttendanceRosterEntry(BaseModel):
    """A customer expected at a class on a given date."""

    customer_id: uuid.UUID
    customer_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    class_booking_id: uuid.UUID
    subscription_id: uuid.UUID
    sessions_completed: int
    sessions_remaining: Optional[int] = None
    attendance_status: Union[AttendanceStatus, RosterStatus] = RosterStatus.NOT_MARKED
    attendance_id: Optional[uuid.UUID] = None


class AttendanceStatistics(BaseModel):
    customer_id: uuid.UUID
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    excused_days: int
    attendance_percentage: Decimal
