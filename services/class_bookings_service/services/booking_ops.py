"""Class booking lifecycle: enrollment of one customer in one schedule.

``booking_dates`` is recomputed from the schedule on every write. Schedule
edits are not pushed to existing bookings; each booking picks them up the next
time it is updated.
"""

import uuid
from datetime import date, timedelta
from typing import Optional

from fastapi import HTTPException, status
from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.class_bookings_service.booking_dates import compute_booking_dates
from services.class_bookings_service.models import ClassBooking, ClassBookingStatus
from services.class_bookings_service.schemas import (
    ClassBookingCreate,
    ClassBookingUpdate,
)
from services.customers_service.services.membership import get_customer
from services.schedules_service.models import Schedule
from services.schedules_service.recurrence import resolve_available_dates
from services.schedules_service.services.schedule_ops import get_schedule
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def _check_window(starts_on: date, ends_on: Optional[date]) -> None:
    if ends_on is not None and starts_on > ends_on:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="starts_on must be on or before ends_on",
        )


def booking_dates_for(
    schedule: Schedule, starts_on: date, ends_on: Optional[date]
) -> list[str]:
    """Schedule dates for an enrollment window.

    Open-ended enrollments on open-ended schedules run for the default
    horizon counted from whichever is later, the schedule start or the
    enrollment start.
    """
    horizon = ends_on
    if horizon is None and schedule.effective_until is None:
        anchor = max(schedule.effective_from, starts_on)
        horizon = anchor + timedelta(
            days=get_settings().SCHEDULE_DEFAULT_HORIZON_DAYS
        )
    try:
        available = resolve_available_dates(schedule, horizon=horizon)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Schedule {schedule.id} has an invalid recurrence: {exc}",
        ) from exc
    return compute_booking_dates(starts_on, ends_on, available)


async def get_class_booking(db: AsyncSession, booking_id: uuid.UUID) -> ClassBooking:
    result = await db.execute(select(ClassBooking).where(ClassBooking.id == booking_id))
    booking = result.scalar_one_or_none()
    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class booking not found",
        )
    return booking


async def find_class_booking(
    db: AsyncSession, *, customer_id: uuid.UUID, schedule_id: uuid.UUID
) -> Optional[ClassBooking]:
    result = await db.execute(
        select(ClassBooking).where(
            ClassBooking.customer_id == customer_id,
            ClassBooking.schedule_id == schedule_id,
        )
    )
    return result.scalar_one_or_none()


async def list_class_bookings(
    db: AsyncSession,
    *,
    customer_id: Optional[uuid.UUID] = None,
    schedule_id: Optional[uuid.UUID] = None,
    status_filter: Optional[ClassBookingStatus] = None,
) -> list[ClassBooking]:
    query = select(ClassBooking)
    if customer_id is not None:
        query = query.where(ClassBooking.customer_id == customer_id)
    if schedule_id is not None:
        query = query.where(ClassBooking.schedule_id == schedule_id)
    if status_filter is not None:
        query = query.where(ClassBooking.status == status_filter)
    query = query.order_by(ClassBooking.created_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_class_booking(
    db: AsyncSession, booking_in: ClassBookingCreate
) -> ClassBooking:
    """Enroll a customer in a schedule.

    1. Customer must exist (404)
    2. No existing booking for (customer, schedule) (409)
    3. Schedule must exist (404) and be active (400)
    4. Window, service and recurrence must be consistent with the schedule (400)
    5. Store booking_dates computed from the schedule
    """
    await get_customer(db, booking_in.customer_id)

    existing = await find_class_booking(
        db, customer_id=booking_in.customer_id, schedule_id=booking_in.schedule_id
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Customer already has a class booking for this schedule",
        )

    schedule = await get_schedule(db, booking_in.schedule_id)
    if not schedule.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Schedule is not active",
        )
    _check_window(booking_in.starts_on, booking_in.ends_on)
    if booking_in.service_id != schedule.service_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="service_id must match the schedule's service",
        )
    booking_dates = booking_dates_for(
        schedule, booking_in.starts_on, booking_in.ends_on
    )

    booking = ClassBooking(
        customer_id=booking_in.customer_id,
        schedule_id=booking_in.schedule_id,
        service_id=booking_in.service_id,
        starts_on=booking_in.starts_on,
        ends_on=booking_in.ends_on,
        booking_dates=booking_dates,
        status=ClassBookingStatus.ACTIVE,
    )
    db.add(booking)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Customer already has a class booking for this schedule",
        ) from exc
    await db.refresh(booking)

    logger.info(
        "Created class booking %s customer=%s schedule=%s dates=%d",
        booking.id,
        booking.customer_id,
        booking.schedule_id,
        len(booking.booking_dates),
    )
    return booking


async def update_class_booking(
    db: AsyncSession,
    booking_id: uuid.UUID,
    booking_in: ClassBookingUpdate,
) -> ClassBooking:
    """Change the window and/or status; booking_dates always follows the
    schedule as it is now."""
    booking = await get_class_booking(db, booking_id)
    update_data = booking_in.model_dump(exclude_unset=True)

    # starts_on is mandatory, so an explicit null leaves it unchanged
    starts_on = update_data.get("starts_on") or booking.starts_on
    ends_on = update_data.get("ends_on", booking.ends_on)
    _check_window(starts_on, ends_on)

    schedule = await get_schedule(db, booking.schedule_id)
    booking_dates = booking_dates_for(schedule, starts_on, ends_on)

    booking.starts_on = starts_on
    booking.ends_on = ends_on
    if update_data.get("status") is not None:
        booking.status = update_data["status"]
    booking.booking_dates = booking_dates

    await db.commit()
    await db.refresh(booking)
    logger.info(
        "Updated class booking %s window=%s..%s dates=%d",
        booking.id,
        booking.starts_on,
        booking.ends_on,
        len(booking.booking_dates),
    )
    return booking


async def cancel_class_booking(db: AsyncSession, booking_id: uuid.UUID) -> ClassBooking:
    """Soft-cancel; the row stays for the attendance and payment history."""
    booking = await get_class_booking(db, booking_id)
    if booking.status == ClassBookingStatus.CANCELLED:
        return booking

    booking.status = ClassBookingStatus.CANCELLED
    await db.commit()
    await db.refresh(booking)
    logger.info("Cancelled class booking %s", booking.id)
    return booking
