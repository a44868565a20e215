import uuid
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from services.schedules_service.models.enums import RecurrenceType


class ScheduleBase(BaseModel):
    service_id: uuid.UUID
    trainer_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=255)
    recurrence_type: RecurrenceType
    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    custom_dates: Optional[List[date]] = None
    start_time: time
    end_time: time
    effective_from: date
    effective_until: Optional[date] = None
    max_participants: int = Field(..., gt=0)
    location: Optional[str] = None
    meeting_link: Optional[str] = None


class ScheduleCreate(ScheduleBase):
    is_active: bool = True

    @model_validator(mode="after")
    def check_ranges(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        if self.effective_until and self.effective_until < self.effective_from:
            raise ValueError("effective_until must be on or after effective_from")
        return self


class ScheduleUpdate(BaseModel):
    service_id: Optional[uuid.UUID] = None
    trainer_id: Optional[uuid.UUID] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    recurrence_type: Optional[RecurrenceType] = None
    monday: Optional[bool] = None
    tuesday: Optional[bool] = None
    wednesday: Optional[bool] = None
    thursday: Optional[bool] = None
    friday: Optional[bool] = None
    saturday: Optional[bool] = None
    sunday: Optional[bool] = None
    day_of_month: Optional[int] = Field(None, ge=1, le=31)
    custom_dates: Optional[List[date]] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    effective_from: Optional[date] = None
    effective_until: Optional[date] = None
    max_participants: Optional[int] = Field(None, gt=0)
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    is_active: Optional[bool] = None

    # current_participants is maintained by subscriptions, never set here
    model_config = ConfigDict(extra="forbid")


class ScheduleResponse(ScheduleBase):
    id: uuid.UUID
    custom_dates: Optional[List[str]] = None
    current_participants: int
    is_active: bool
    available_dates: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AvailableDatesResponse(BaseModel):
    schedule_id: uuid.UUID
    window_start: date
    window_end: date
    available_dates: List[str]
