"""Attendance marking with session-counter reconciliation.

Each mark is an upsert keyed on (customer, schedule, date). The subscription
row is locked before the record is read, and the record write plus the
sessions_completed delta go out in a single commit.
"""

import uuid
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.common.datetime_utils import to_iso_date, utc_now
from libs.common.logging import get_logger
from services.attendance_service.models import AttendanceRecord, AttendanceStatus
from services.attendance_service.reconciler import session_delta
from services.attendance_service.schemas import (
    AttendanceResponse,
    AttendanceRosterEntry,
    AttendanceStatistics,
    BulkAttendanceCreate,
    BulkAttendanceFailure,
    BulkAttendanceResult,
    RosterStatus,
)
from services.class_bookings_service.models import ClassBooking, ClassBookingStatus
from services.class_bookings_service.services.booking_ops import get_class_booking
from services.customers_service.models import Customer
from services.customers_service.services.membership import get_customer
from services.schedules_service.services.schedule_ops import get_schedule
from services.subscriptions_service.ledger import apply_session_delta
from services.subscriptions_service.models import (
    CustomerSubscription,
    SubscriptionStatus,
)
from services.subscriptions_service.services.subscription_ops import get_subscription
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

CHECKED_IN_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


async def _find_record(
    db: AsyncSession,
    *,
    customer_id: uuid.UUID,
    schedule_id: uuid.UUID,
    attendance_date: date,
) -> Optional[AttendanceRecord]:
    result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.customer_id == customer_id,
            AttendanceRecord.schedule_id == schedule_id,
            AttendanceRecord.attendance_date == attendance_date,
        )
    )
    return result.scalar_one_or_none()


async def mark_attendance(
    db: AsyncSession,
    *,
    customer_id: uuid.UUID,
    schedule_id: uuid.UUID,
    subscription_id: uuid.UUID,
    attendance_date: date,
    status_value: AttendanceStatus,
    notes: Optional[str] = None,
    marked_by: Optional[uuid.UUID] = None,
) -> AttendanceRecord:
    """Create or update one attendance record.

    1. Lock the subscription (404 if missing)
    2. Subscription must be active and belong to this customer and
       schedule (400)
    3. Upsert the record
    4. Apply the present/not-present delta to sessions_completed
    5. Commit once

    Re-marking with the same status leaves the counters unchanged.
    """
    # 1. Lock subscription
    subscription = await get_subscription(db, subscription_id, for_update=True)

    # 2. Validate status and ownership
    if subscription.status != SubscriptionStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Cannot mark attendance on a {subscription.status.value} "
                "subscription"
            ),
        )
    booking = await get_class_booking(db, subscription.class_booking_id)
    if booking.customer_id != customer_id or booking.schedule_id != schedule_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Subscription does not belong to this customer and schedule",
        )
    if to_iso_date(attendance_date) not in (booking.booking_dates or []):
        logger.warning(
            "Attendance for %s on %s is outside booking %s dates",
            customer_id,
            attendance_date,
            booking.id,
        )

    # 3. Upsert
    record = await _find_record(
        db,
        customer_id=customer_id,
        schedule_id=schedule_id,
        attendance_date=attendance_date,
    )
    old_status = record.status if record else None
    if record is None:
        record = AttendanceRecord(
            customer_id=customer_id,
            schedule_id=schedule_id,
            subscription_id=subscription.id,
            attendance_date=attendance_date,
        )
        db.add(record)
    record.status = status_value
    record.marked_by = marked_by
    if notes is not None:
        record.notes = notes
    if status_value in CHECKED_IN_STATUSES and record.check_in_time is None:
        record.check_in_time = utc_now()

    # 4. Reconcile counters
    delta = session_delta(old_status, status_value)
    if delta:
        apply_session_delta(subscription, delta)

    # 5. Commit
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Attendance for this customer, schedule and date was marked concurrently",
        ) from exc
    await db.refresh(record)

    logger.info(
        "Marked %s %s for schedule %s on %s (%s -> %s, sessions_completed=%d)",
        customer_id,
        status_value.value,
        schedule_id,
        attendance_date,
        old_status.value if old_status else None,
        status_value.value,
        subscription.sessions_completed,
    )
    return record


async def bulk_mark_attendance(
    db: AsyncSession,
    bulk_in: BulkAttendanceCreate,
    *,
    marked_by: Optional[uuid.UUID] = None,
) -> BulkAttendanceResult:
    """Mark entries in order, one transaction each.

    A failing entry is rolled back and reported; the others still apply.
    """
    result = BulkAttendanceResult()
    for index, entry in enumerate(bulk_in.entries):
        try:
            record = await mark_attendance(
                db,
                customer_id=entry.customer_id,
                schedule_id=entry.schedule_id,
                subscription_id=entry.subscription_id,
                attendance_date=entry.attendance_date,
                status_value=entry.status,
                notes=entry.notes,
                marked_by=marked_by,
            )
        except HTTPException as exc:
            await db.rollback()
            logger.warning(
                "Bulk attendance entry %d for %s failed: %s",
                index,
                entry.customer_id,
                exc.detail,
            )
            result.failed.append(
                BulkAttendanceFailure(
                    index=index,
                    customer_id=entry.customer_id,
                    status_code=exc.status_code,
                    detail=str(exc.detail),
                )
            )
            continue
        result.marked.append(AttendanceResponse.model_validate(record))

    logger.info(
        "Bulk attendance: %d marked, %d failed",
        len(result.marked),
        len(result.failed),
    )
    return result


async def get_customers_for_attendance(
    db: AsyncSession, schedule_id: uuid.UUID, attendance_date: date
) -> list[AttendanceRosterEntry]:
    """Customers expected at a schedule on a date, with their mark so far.

    Expected means an active class booking whose window covers the date and
    an active subscription on that booking.
    """
    await get_schedule(db, schedule_id)

    result = await db.execute(
        select(Customer, ClassBooking, CustomerSubscription)
        .join(ClassBooking, ClassBooking.customer_id == Customer.id)
        .join(
            CustomerSubscription,
            CustomerSubscription.class_booking_id == ClassBooking.id,
        )
        .where(
            ClassBooking.schedule_id == schedule_id,
            ClassBooking.status == ClassBookingStatus.ACTIVE,
            CustomerSubscription.status == SubscriptionStatus.ACTIVE,
            ClassBooking.starts_on <= attendance_date,
            or_(
                ClassBooking.ends_on.is_(None),
                ClassBooking.ends_on >= attendance_date,
            ),
        )
        .order_by(Customer.first_name, Customer.last_name)
    )
    rows = result.all()

    records_result = await db.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.schedule_id == schedule_id,
            AttendanceRecord.attendance_date == attendance_date,
        )
    )
    records = {r.customer_id: r for r in records_result.scalars().all()}

    roster = []
    for customer, booking, subscription in rows:
        record = records.get(customer.id)
        roster.append(
            AttendanceRosterEntry(
                customer_id=customer.id,
                customer_name=customer.full_name,
                email=customer.email,
                phone=customer.phone,
                class_booking_id=booking.id,
                subscription_id=subscription.id,
                sessions_completed=subscription.sessions_completed,
                sessions_remaining=subscription.sessions_remaining,
                attendance_status=record.status if record else RosterStatus.NOT_MARKED,
                attendance_id=record.id if record else None,
            )
        )
    return roster


async def list_attendance(
    db: AsyncSession,
    *,
    customer_id: Optional[uuid.UUID] = None,
    schedule_id: Optional[uuid.UUID] = None,
    subscription_id: Optional[uuid.UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status_filter: Optional[AttendanceStatus] = None,
) -> list[AttendanceRecord]:
    query = select(AttendanceRecord)
    if customer_id is not None:
        query = query.where(AttendanceRecord.customer_id == customer_id)
    if schedule_id is not None:
        query = query.where(AttendanceRecord.schedule_id == schedule_id)
    if subscription_id is not None:
        query = query.where(AttendanceRecord.subscription_id == subscription_id)
    if start_date is not None:
        query = query.where(AttendanceRecord.attendance_date >= start_date)
    if end_date is not None:
        query = query.where(AttendanceRecord.attendance_date <= end_date)
    if status_filter is not None:
        query = query.where(AttendanceRecord.status == status_filter)
    query = query.order_by(AttendanceRecord.attendance_date.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_attendance_statistics(
    db: AsyncSession,
    customer_id: uuid.UUID,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> AttendanceStatistics:
    await get_customer(db, customer_id)

    query = (
        select(AttendanceRecord.status, func.count(AttendanceRecord.id))
        .where(AttendanceRecord.customer_id == customer_id)
        .group_by(AttendanceRecord.status)
    )
    if start_date is not None:
        query = query.where(AttendanceRecord.attendance_date >= start_date)
    if end_date is not None:
        query = query.where(AttendanceRecord.attendance_date <= end_date)
    result = await db.execute(query)
    counts = {row_status: int(count) for row_status, count in result.all()}

    total = sum(counts.values())
    present = counts.get(AttendanceStatus.PRESENT, 0)
    percentage = Decimal("0.00")
    if total:
        percentage = (Decimal(present) * 100 / Decimal(total)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    return AttendanceStatistics(
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
        total_days=total,
        present_days=present,
        absent_days=counts.get(AttendanceStatus.ABSENT, 0),
        late_days=counts.get(AttendanceStatus.LATE, 0),
        excused_days=counts.get(AttendanceStatus.EXCUSED, 0),
        attendance_percentage=percentage,
    )
