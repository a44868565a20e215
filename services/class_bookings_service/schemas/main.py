import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from services.class_bookings_service.models.enums import ClassBookingStatus


class ClassBookingBase(BaseModel):
    customer_id: uuid.UUID
    schedule_id: uuid.UUID
    service_id: uuid.UUID
    starts_on: date
    ends_on: Optional[date] = None


class ClassBookingCreate(ClassBookingBase):
    pass


class ClassBookingUpdate(BaseModel):
    starts_on: Optional[date] = None
    ends_on: Optional[date] = None  # explicit null re-opens the window
    status: Optional[ClassBookingStatus] = None

    # booking_dates is derived and cannot be sent
    model_config = ConfigDict(extra="forbid")


class ClassBookingResponse(ClassBookingBase):
    id: uuid.UUID
    booking_dates: List[str]
    status: ClassBookingStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
