"""Class Bookings Service models package."""

from services.class_bookings_service.models.core import ClassBooking
from services.class_bookings_service.models.enums import ClassBookingStatus

__all__ = [
    "ClassBooking",
    "ClassBookingStatus",
]
