"""Enum definitions for class bookings service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class ClassBookingStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
