"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    customer = CustomerFactory.create(email="custom@test.com")
    db_session.add(customer)
    await db_session.commit()
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:8]}@test.com"


# ---------------------------------------------------------------------------
# Customers Service
# ---------------------------------------------------------------------------


class CustomerFactory:
    @staticmethod
    def create(**overrides):
        from services.customers_service.models import (
            Customer,
            CustomerStatus,
            MembershipStatus,
        )

        defaults = {
            "id": _uuid(),
            "first_name": "Test",
            "last_name": "Customer",
            "email": _unique_email(),
            "phone": "+919800000000",
            "status": CustomerStatus.ONBOARDING,
            "membership_status": MembershipStatus.INACTIVE,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Customer(**defaults)


# ---------------------------------------------------------------------------
# Schedules Service
# ---------------------------------------------------------------------------


class ScheduleFactory:
    """Defaults to a Monday/Wednesday morning class through January 2025."""

    @staticmethod
    def create(**overrides):
        from services.schedules_service.models import RecurrenceType, Schedule

        defaults = {
            "id": _uuid(),
            "service_id": _uuid(),
            "trainer_id": _uuid(),
            "name": "Morning Hatha",
            "recurrence_type": RecurrenceType.WEEKLY,
            "monday": True,
            "tuesday": False,
            "wednesday": True,
            "thursday": False,
            "friday": False,
            "saturday": False,
            "sunday": False,
            "day_of_month": None,
            "custom_dates": None,
            "start_time": time(7, 0),
            "end_time": time(8, 0),
            "effective_from": date(2025, 1, 1),
            "effective_until": date(2025, 1, 31),
            "max_participants": 10,
            "current_participants": 0,
            "location": "Studio A",
            "meeting_link": None,
            "is_active": True,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Schedule(**defaults)


# ---------------------------------------------------------------------------
# Class Bookings Service
# ---------------------------------------------------------------------------


class ClassBookingFactory:
    @staticmethod
    def create(customer_id=None, schedule_id=None, **overrides):
        from services.class_bookings_service.models import (
            ClassBooking,
            ClassBookingStatus,
        )

        defaults = {
            "id": _uuid(),
            "customer_id": customer_id or _uuid(),
            "schedule_id": schedule_id or _uuid(),
            "service_id": _uuid(),
            "starts_on": date(2025, 1, 1),
            "ends_on": date(2025, 1, 31),
            "booking_dates": [],
            "status": ClassBookingStatus.ACTIVE,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return ClassBooking(**defaults)


# ---------------------------------------------------------------------------
# Subscriptions Service
# ---------------------------------------------------------------------------


class SubscriptionFactory:
    @staticmethod
    def create(class_booking_id=None, **overrides):
        from services.subscriptions_service.models import (
            CustomerSubscription,
            SubscriptionPaymentStatus,
            SubscriptionPaymentType,
            SubscriptionStatus,
        )

        defaults = {
            "id": _uuid(),
            "class_booking_id": class_booking_id or _uuid(),
            "total_fees": Decimal("6000.00"),
            "payment_type": SubscriptionPaymentType.ONE_TIME,
            "number_of_installments": None,
            "total_sessions": 12,
            "amount_paid": Decimal("0.00"),
            "payment_status": SubscriptionPaymentStatus.PENDING,
            "sessions_completed": 0,
            "sessions_remaining": 12,
            "status": SubscriptionStatus.ACTIVE,
            "enrolled_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return CustomerSubscription(**defaults)


# ---------------------------------------------------------------------------
# Payments Service
# ---------------------------------------------------------------------------


class PaymentFactory:
    @staticmethod
    def create(customer_id=None, subscription_id=None, **overrides):
        from services.payments_service.models import (
            Payment,
            PaymentMethod,
            PaymentStatus,
        )

        defaults = {
            "id": _uuid(),
            "reference": f"PAY-{uuid.uuid4().hex[:8].upper()}",
            "customer_id": customer_id or _uuid(),
            "subscription_id": subscription_id,
            "amount": Decimal("2000.00"),
            "currency": "INR",
            "payment_method": PaymentMethod.UPI,
            "payment_status": PaymentStatus.COMPLETED,
            "payment_date": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Payment(**defaults)


# ---------------------------------------------------------------------------
# Attendance Service
# ---------------------------------------------------------------------------


class AttendanceRecordFactory:
    @staticmethod
    def create(customer_id=None, schedule_id=None, subscription_id=None, **overrides):
        from services.attendance_service.models import (
            AttendanceRecord,
            AttendanceStatus,
        )

        defaults = {
            "id": _uuid(),
            "customer_id": customer_id or _uuid(),
            "schedule_id": schedule_id or _uuid(),
            "subscription_id": subscription_id or _uuid(),
            "attendance_date": date(2025, 1, 6),
            "status": AttendanceStatus.PRESENT,
            "marked_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return AttendanceRecord(**defaults)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


@dataclass
class Enrollment:
    customer: object
    schedule: object
    booking: object
    subscription: object


async def enroll(
    db,
    *,
    customer=None,
    schedule=None,
    starts_on=date(2025, 1, 1),
    ends_on=date(2025, 1, 31),
    total_fees=Decimal("6000.00"),
    total_sessions=9,
    **subscription_kwargs,
) -> Enrollment:
    """Customer -> class booking -> subscription through the real operations."""
    from services.class_bookings_service.schemas import ClassBookingCreate
    from services.class_bookings_service.services.booking_ops import (
        create_class_booking,
    )
    from services.subscriptions_service.schemas import SubscriptionCreate
    from services.subscriptions_service.services.subscription_ops import (
        create_subscription,
    )

    customer = customer or CustomerFactory.create()
    schedule = schedule or ScheduleFactory.create()
    db.add_all([customer, schedule])
    await db.commit()

    booking = await create_class_booking(
        db,
        ClassBookingCreate(
            customer_id=customer.id,
            schedule_id=schedule.id,
            service_id=schedule.service_id,
            starts_on=starts_on,
            ends_on=ends_on,
        ),
    )
    subscription = await create_subscription(
        db,
        SubscriptionCreate(
            class_booking_id=booking.id,
            total_fees=total_fees,
            total_sessions=total_sessions,
            **subscription_kwargs,
        ),
    )
    return Enrollment(
        customer=customer,
        schedule=schedule,
        booking=booking,
        subscription=subscription,
    )
