"""Schedule access for the engine and recurrence validation for admin writes.

Schedules are authored by the admin CRUD layer. The engine reads them as
inputs; the writes here exist so that every stored schedule satisfies the
one-recurrence-mechanism invariant before anything downstream expands it.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import HTTPException, status
from libs.common.logging import get_logger
from services.schedules_service.models import WEEKDAY_FLAG_FIELDS, Schedule
from services.schedules_service.recurrence import (
    expand_rule,
    resolve_window,
    rule_for_schedule,
)
from services.schedules_service.schemas import (
    AvailableDatesResponse,
    ScheduleCreate,
    ScheduleResponse,
    ScheduleUpdate,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def _schedule_rule(schedule: Schedule):
    try:
        return rule_for_schedule(schedule)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


def _validate_schedule(schedule: Schedule) -> None:
    """Raise 400 unless the row holds a consistent recurrence and ranges."""
    _schedule_rule(schedule)

    if schedule.end_time <= schedule.start_time:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_time must be after start_time",
        )
    if (
        schedule.effective_until is not None
        and schedule.effective_until < schedule.effective_from
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="effective_until must be on or after effective_from",
        )


def _iso_dates(values):
    if values is None:
        return None
    return sorted({d.isoformat() for d in values})


async def get_schedule(db: AsyncSession, schedule_id: uuid.UUID) -> Schedule:
    result = await db.execute(select(Schedule).where(Schedule.id == schedule_id))
    schedule = result.scalar_one_or_none()
    if not schedule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Schedule not found",
        )
    return schedule


async def list_schedules(
    db: AsyncSession,
    *,
    active_only: bool = False,
    trainer_id: Optional[uuid.UUID] = None,
) -> list[Schedule]:
    query = select(Schedule)
    if active_only:
        query = query.where(Schedule.is_active.is_(True))
    if trainer_id is not None:
        query = query.where(Schedule.trainer_id == trainer_id)
    query = query.order_by(Schedule.start_time, Schedule.name)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_schedule(db: AsyncSession, schedule_in: ScheduleCreate) -> Schedule:
    data = schedule_in.model_dump()
    data["custom_dates"] = _iso_dates(schedule_in.custom_dates)
    schedule = Schedule(**data, current_participants=0)
    _validate_schedule(schedule)

    db.add(schedule)
    await db.commit()
    await db.refresh(schedule)
    logger.info(
        "Created schedule %s (%s, %s)",
        schedule.id,
        schedule.name,
        schedule.recurrence_type.value,
    )
    return schedule


async def update_schedule(
    db: AsyncSession,
    schedule_id: uuid.UUID,
    schedule_in: ScheduleUpdate,
) -> Schedule:
    """Apply a partial update.

    Switching recurrence type requires clearing the old mechanism in the same
    update (e.g. weekday flags back to false), otherwise validation fails.
    Class bookings pick the new dates up on their next update.
    """
    schedule = await get_schedule(db, schedule_id)

    update_data = schedule_in.model_dump(exclude_unset=True)
    if "custom_dates" in update_data:
        update_data["custom_dates"] = _iso_dates(schedule_in.custom_dates)
    for field in WEEKDAY_FLAG_FIELDS:
        if field in update_data and update_data[field] is None:
            update_data[field] = False

    columns = Schedule.__table__.c
    cleared = sorted(
        field
        for field, value in update_data.items()
        if value is None and not columns[field].nullable
    )
    if cleared:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Fields cannot be null: {', '.join(cleared)}",
        )

    for field, value in update_data.items():
        setattr(schedule, field, value)

    if schedule.max_participants < schedule.current_participants:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="max_participants cannot drop below current participants",
        )
    try:
        _validate_schedule(schedule)
    except HTTPException:
        await db.rollback()
        raise

    await db.commit()
    await db.refresh(schedule)
    logger.info("Updated schedule %s fields=%s", schedule.id, sorted(update_data))
    return schedule


async def deactivate_schedule(db: AsyncSession, schedule_id: uuid.UUID) -> Schedule:
    schedule = await get_schedule(db, schedule_id)
    schedule.is_active = False
    await db.commit()
    await db.refresh(schedule)
    logger.info("Deactivated schedule %s", schedule.id)
    return schedule


def schedule_available_dates(
    schedule: Schedule, *, horizon: Optional[date] = None
) -> AvailableDatesResponse:
    rule = _schedule_rule(schedule)
    start, end = resolve_window(
        schedule.effective_from, schedule.effective_until, horizon=horizon
    )
    return AvailableDatesResponse(
        schedule_id=schedule.id,
        window_start=start,
        window_end=end,
        available_dates=[d.isoformat() for d in expand_rule(rule, start, end)],
    )


async def get_available_dates(
    db: AsyncSession,
    schedule_id: uuid.UUID,
    *,
    horizon: Optional[date] = None,
) -> AvailableDatesResponse:
    schedule = await get_schedule(db, schedule_id)
    return schedule_available_dates(schedule, horizon=horizon)


def schedule_to_response(
    schedule: Schedule, *, horizon: Optional[date] = None
) -> ScheduleResponse:
    """Serialize a schedule with its freshly computed available dates."""
    response = ScheduleResponse.model_validate(schedule)
    response.available_dates = schedule_available_dates(
        schedule, horizon=horizon
    ).available_dates
    return response
