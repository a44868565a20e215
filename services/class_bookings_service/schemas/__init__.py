"""Class Bookings Service schemas package."""

from services.class_bookings_service.schemas.main import (
    ClassBookingBase,
    ClassBookingCreate,
    ClassBookingResponse,
    ClassBookingUpdate,
)

__all__ = [
    "ClassBookingBase",
    "ClassBookingCreate",
    "ClassBookingResponse",
    "ClassBookingUpdate",
]
