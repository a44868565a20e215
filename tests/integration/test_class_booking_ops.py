"""Integration tests for class booking operations."""

import uuid
from datetime import date

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from services.class_bookings_service.models import ClassBookingStatus
from services.class_bookings_service.schemas import (
    ClassBookingCreate,
    ClassBookingResponse,
    ClassBookingUpdate,
)
from services.class_bookings_service.services.booking_ops import (
    cancel_class_booking,
    create_class_booking,
    list_class_bookings,
    update_class_booking,
)
from services.schedules_service.schemas import ScheduleUpdate
from services.schedules_service.services.schedule_ops import update_schedule
from tests.factories import CustomerFactory, ScheduleFactory

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _seed(db, **schedule_overrides):
    customer = CustomerFactory.create()
    schedule = ScheduleFactory.create(**schedule_overrides)
    db.add_all([customer, schedule])
    await db.commit()
    return customer, schedule


def _booking_in(customer, schedule, **overrides) -> ClassBookingCreate:
    data = {
        "customer_id": customer.id,
        "schedule_id": schedule.id,
        "service_id": schedule.service_id,
        "starts_on": date(2025, 1, 8),
        "ends_on": date(2025, 1, 20),
    }
    data.update(overrides)
    return ClassBookingCreate(**data)


async def _expect_status(coro, status_code):
    with pytest.raises(HTTPException) as exc_info:
        await coro
    assert exc_info.value.status_code == status_code


# ---------------------------------------------------------------------------
# create_class_booking
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_booking_dates_are_schedule_dates_inside_window(db_session):
    customer, schedule = await _seed(db_session)

    booking = await create_class_booking(db_session, _booking_in(customer, schedule))

    assert booking.status == ClassBookingStatus.ACTIVE
    assert booking.booking_dates == [
        "2025-01-08",
        "2025-01-13",
        "2025-01-15",
        "2025-01-20",
    ]

    response = ClassBookingResponse.model_validate(booking)
    assert response.id == booking.id
    assert response.booking_dates[0] == "2025-01-08"
    assert response.ends_on == date(2025, 1, 20)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_open_ended_booking_runs_to_schedule_end(db_session):
    customer, schedule = await _seed(db_session)

    booking = await create_class_booking(
        db_session, _booking_in(customer, schedule, starts_on=date(2025, 1, 21), ends_on=None)
    )

    assert booking.booking_dates == ["2025-01-22", "2025-01-27", "2025-01-29"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_late_open_ended_booking_gets_a_full_horizon(db_session):
    customer, schedule = await _seed(db_session, effective_until=None)

    booking = await create_class_booking(
        db_session,
        _booking_in(customer, schedule, starts_on=date(2027, 6, 1), ends_on=None),
    )

    # Two years counted from the enrollment start, not the schedule start
    assert booking.booking_dates[0] == "2027-06-02"
    assert booking.booking_dates[-1] == "2029-05-30"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_booking_on_inconsistent_schedule_is_400(db_session):
    customer, schedule = await _seed(db_session, monday=False, wednesday=False)

    await _expect_status(
        create_class_booking(db_session, _booking_in(customer, schedule)), 400
    )

    assert await list_class_bookings(db_session, customer_id=customer.id) == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_second_booking_for_same_schedule_conflicts(db_session):
    customer, schedule = await _seed(db_session)
    await create_class_booking(db_session, _booking_in(customer, schedule))

    await _expect_status(
        create_class_booking(db_session, _booking_in(customer, schedule)), 409
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_missing_customer_or_schedule_is_404(db_session):
    customer, schedule = await _seed(db_session)

    await _expect_status(
        create_class_booking(
            db_session, _booking_in(customer, schedule, customer_id=uuid.uuid4())
        ),
        404,
    )
    await _expect_status(
        create_class_booking(
            db_session, _booking_in(customer, schedule, schedule_id=uuid.uuid4())
        ),
        404,
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_invalid_window_or_service_is_400(db_session):
    customer, schedule = await _seed(db_session)

    await _expect_status(
        create_class_booking(
            db_session,
            _booking_in(
                customer, schedule, starts_on=date(2025, 1, 20), ends_on=date(2025, 1, 8)
            ),
        ),
        400,
    )
    await _expect_status(
        create_class_booking(
            db_session, _booking_in(customer, schedule, service_id=uuid.uuid4())
        ),
        400,
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_inactive_schedule_is_400(db_session):
    customer, schedule = await _seed(db_session, is_active=False)

    await _expect_status(
        create_class_booking(db_session, _booking_in(customer, schedule)), 400
    )


# ---------------------------------------------------------------------------
# update / cancel / list
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_picks_up_schedule_changes(db_session):
    customer, schedule = await _seed(db_session)
    booking = await create_class_booking(db_session, _booking_in(customer, schedule))

    await update_schedule(db_session, schedule.id, ScheduleUpdate(friday=True))
    assert "2025-01-10" not in booking.booking_dates

    updated = await update_class_booking(
        db_session, booking.id, ClassBookingUpdate(ends_on=date(2025, 1, 13))
    )

    assert updated.starts_on == date(2025, 1, 8)
    assert updated.booking_dates == ["2025-01-08", "2025-01-10", "2025-01-13"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_rejects_inverted_window(db_session):
    customer, schedule = await _seed(db_session)
    booking = await create_class_booking(db_session, _booking_in(customer, schedule))

    await _expect_status(
        update_class_booking(
            db_session, booking.id, ClassBookingUpdate(ends_on=date(2025, 1, 1))
        ),
        400,
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_against_inconsistent_schedule_is_400(db_session):
    customer, schedule = await _seed(db_session)
    booking = await create_class_booking(db_session, _booking_in(customer, schedule))
    schedule.monday = False
    schedule.wednesday = False
    await db_session.commit()

    await _expect_status(
        update_class_booking(
            db_session, booking.id, ClassBookingUpdate(ends_on=date(2025, 1, 15))
        ),
        400,
    )

    assert booking.ends_on == date(2025, 1, 20)
    assert booking.booking_dates[-1] == "2025-01-20"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_cannot_write_booking_dates():
    with pytest.raises(ValidationError):
        ClassBookingUpdate(booking_dates=["2025-01-01"])


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cancel_is_idempotent_and_keeps_row(db_session):
    customer, schedule = await _seed(db_session)
    booking = await create_class_booking(db_session, _booking_in(customer, schedule))

    first = await cancel_class_booking(db_session, booking.id)
    second = await cancel_class_booking(db_session, booking.id)

    assert first.status == ClassBookingStatus.CANCELLED
    assert second.status == ClassBookingStatus.CANCELLED
    remaining = await list_class_bookings(db_session, customer_id=customer.id)
    assert [b.id for b in remaining] == [booking.id]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_filters_by_status(db_session):
    customer, schedule = await _seed(db_session)
    other_schedule = ScheduleFactory.create()
    db_session.add(other_schedule)
    await db_session.commit()

    kept = await create_class_booking(db_session, _booking_in(customer, schedule))
    dropped = await create_class_booking(
        db_session,
        _booking_in(
            customer,
            other_schedule,
            schedule_id=other_schedule.id,
            service_id=other_schedule.service_id,
        ),
    )
    await cancel_class_booking(db_session, dropped.id)

    active = await list_class_bookings(
        db_session, customer_id=customer.id, status_filter=ClassBookingStatus.ACTIVE
    )
    assert [b.id for b in active] == [kept.id]
