"""Subscription lifecycle and ledger recompute.

All subscription state changes go through these functions. Derived fields
are written only through ``services.subscriptions_service.ledger``:

- money (amount_paid, payment_status) is rebuilt from the full payment history
- sessions_completed moves by attendance deltas, or is recounted on reconcile
"""

import uuid
from typing import Optional

from fastapi import HTTPException, status
from libs.common.datetime_utils import studio_today
from libs.common.logging import get_logger
from services.attendance_service.models import AttendanceRecord, AttendanceStatus
from services.class_bookings_service.models import ClassBooking, ClassBookingStatus
from services.class_bookings_service.services.booking_ops import get_class_booking
from services.customers_service.services.membership import (
    activate_membership,
    deactivate_membership_if_idle,
    get_customer,
)
from services.payments_service.models import Payment
from services.schedules_service.models import Schedule
from services.subscriptions_service.ledger import (
    PaymentState,
    apply_payment_state,
    build_installment_plan,
    compute_payment_state,
    remaining_amount,
    set_sessions_completed,
    validate_installment_settings,
)
from services.subscriptions_service.models import (
    CustomerSubscription,
    SubscriptionPaymentType,
    SubscriptionStatus,
)
from services.subscriptions_service.schemas import (
    InstallmentLineResponse,
    InstallmentPlanResponse,
    SubscriptionCreate,
    SubscriptionPause,
    SubscriptionResponse,
    SubscriptionUpdate,
)
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


async def _lock_schedule(db: AsyncSession, schedule_id: uuid.UUID) -> Schedule:
    result = await db.execute(
        select(Schedule).where(Schedule.id == schedule_id).with_for_update()
    )
    schedule = result.scalar_one_or_none()
    if not schedule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Schedule not found",
        )
    return schedule


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_subscription(
    db: AsyncSession, subscription_id: uuid.UUID, *, for_update: bool = False
) -> CustomerSubscription:
    query = select(CustomerSubscription).where(
        CustomerSubscription.id == subscription_id
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    subscription = result.scalar_one_or_none()
    if not subscription:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Subscription not found",
        )
    return subscription


async def find_subscription_for_booking(
    db: AsyncSession, class_booking_id: uuid.UUID
) -> Optional[CustomerSubscription]:
    result = await db.execute(
        select(CustomerSubscription).where(
            CustomerSubscription.class_booking_id == class_booking_id
        )
    )
    return result.scalar_one_or_none()


async def list_subscriptions(
    db: AsyncSession,
    *,
    customer_id: Optional[uuid.UUID] = None,
    status_filter: Optional[SubscriptionStatus] = None,
) -> list[CustomerSubscription]:
    query = select(CustomerSubscription)
    if customer_id is not None:
        query = query.join(
            ClassBooking, ClassBooking.id == CustomerSubscription.class_booking_id
        ).where(ClassBooking.customer_id == customer_id)
    if status_filter is not None:
        query = query.where(CustomerSubscription.status == status_filter)
    query = query.order_by(CustomerSubscription.enrolled_at.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


def subscription_to_response(subscription: CustomerSubscription) -> SubscriptionResponse:
    response = SubscriptionResponse.model_validate(subscription)
    response.remaining_amount = remaining_amount(subscription)
    return response


# ---------------------------------------------------------------------------
# Ledger recompute
# ---------------------------------------------------------------------------


async def recompute_subscription_ledger(
    db: AsyncSession, subscription: CustomerSubscription
) -> PaymentState:
    """Rebuild amount_paid / payment_status from every payment on record.

    Does not commit. Pending payment rows must already be flushed.
    """
    result = await db.execute(
        select(Payment.amount, Payment.payment_status).where(
            Payment.subscription_id == subscription.id
        )
    )
    state = compute_payment_state(subscription.total_fees, result.all())
    if apply_payment_state(subscription, state):
        logger.info(
            "Subscription %s ledger: amount_paid=%s status=%s",
            subscription.id,
            state.amount_paid,
            state.payment_status.value,
        )
    return state


async def count_present_sessions(
    db: AsyncSession, subscription_id: uuid.UUID
) -> int:
    result = await db.execute(
        select(func.count(AttendanceRecord.id)).where(
            AttendanceRecord.subscription_id == subscription_id,
            AttendanceRecord.status == AttendanceStatus.PRESENT,
        )
    )
    return int(result.scalar_one())


async def reconcile_subscription(
    db: AsyncSession, subscription_id: uuid.UUID
) -> CustomerSubscription:
    """Repair path: recompute every derived field from its source rows."""
    subscription = await get_subscription(db, subscription_id, for_update=True)

    await recompute_subscription_ledger(db, subscription)
    present = await count_present_sessions(db, subscription.id)
    if present != subscription.sessions_completed:
        logger.warning(
            "Subscription %s sessions_completed drifted: stored=%d attendance=%d",
            subscription.id,
            subscription.sessions_completed,
            present,
        )
    set_sessions_completed(subscription, present)

    await db.commit()
    await db.refresh(subscription)
    return subscription


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


async def create_subscription(
    db: AsyncSession, subscription_in: SubscriptionCreate
) -> CustomerSubscription:
    """Create the single subscription for a class booking.

    1. Class booking must exist (404) and not be cancelled (400)
    2. Installment settings must be consistent (400)
    3. No subscription for the booking yet (409)
    4. Schedule must have a free seat (409)
    5. Customer membership -> active, schedule current_participants += 1
    """
    booking = await get_class_booking(db, subscription_in.class_booking_id)
    if booking.status == ClassBookingStatus.CANCELLED:
        raise _bad_request("Class booking is cancelled")

    try:
        validate_installment_settings(
            subscription_in.payment_type, subscription_in.number_of_installments
        )
    except ValueError as exc:
        raise _bad_request(str(exc)) from exc

    if await find_subscription_for_booking(db, booking.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Class booking already has a subscription",
        )

    schedule = await _lock_schedule(db, booking.schedule_id)
    if schedule.is_full:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Schedule is full",
        )

    customer = await get_customer(db, booking.customer_id)

    subscription = CustomerSubscription(
        class_booking_id=booking.id,
        total_fees=subscription_in.total_fees,
        payment_type=subscription_in.payment_type,
        number_of_installments=subscription_in.number_of_installments,
        total_sessions=subscription_in.total_sessions,
        status=SubscriptionStatus.ACTIVE,
    )
    apply_payment_state(subscription, compute_payment_state(subscription.total_fees, []))
    set_sessions_completed(subscription, 0)

    activate_membership(customer)
    schedule.current_participants = (schedule.current_participants or 0) + 1

    db.add(subscription)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Class booking already has a subscription",
        ) from exc
    await db.refresh(subscription)

    logger.info(
        "Created subscription %s booking=%s fees=%s schedule=%s (%d/%d)",
        subscription.id,
        booking.id,
        subscription.total_fees,
        schedule.id,
        schedule.current_participants,
        schedule.max_participants,
    )
    return subscription


async def update_subscription(
    db: AsyncSession,
    subscription_id: uuid.UUID,
    subscription_in: SubscriptionUpdate,
) -> CustomerSubscription:
    """Change contract fields, then recompute everything derived from them."""
    subscription = await get_subscription(db, subscription_id, for_update=True)
    update_data = subscription_in.model_dump(exclude_unset=True)

    payment_type = update_data.get("payment_type") or subscription.payment_type
    if "number_of_installments" in update_data:
        installments = update_data["number_of_installments"]
    elif payment_type == SubscriptionPaymentType.ONE_TIME:
        installments = None
    else:
        installments = subscription.number_of_installments
    try:
        validate_installment_settings(payment_type, installments)
    except ValueError as exc:
        raise _bad_request(str(exc)) from exc

    if update_data.get("total_fees") is not None:
        subscription.total_fees = update_data["total_fees"]
    if "total_sessions" in update_data:
        subscription.total_sessions = update_data["total_sessions"]
    subscription.payment_type = payment_type
    subscription.number_of_installments = installments

    await recompute_subscription_ledger(db, subscription)
    set_sessions_completed(subscription, subscription.sessions_completed or 0)

    await db.commit()
    await db.refresh(subscription)
    logger.info(
        "Updated subscription %s fields=%s", subscription.id, sorted(update_data)
    )
    return subscription


async def pause_subscription(
    db: AsyncSession, subscription_id: uuid.UUID, pause_in: SubscriptionPause
) -> CustomerSubscription:
    subscription = await get_subscription(db, subscription_id)
    if subscription.status != SubscriptionStatus.ACTIVE:
        raise _bad_request(
            f"Only active subscriptions can be paused (status={subscription.status.value})"
        )

    subscription.status = SubscriptionStatus.PAUSED
    subscription.pause_start_date = pause_in.pause_start_date
    subscription.pause_end_date = pause_in.pause_end_date

    await db.commit()
    await db.refresh(subscription)
    logger.info(
        "Paused subscription %s from %s until %s",
        subscription.id,
        subscription.pause_start_date,
        subscription.pause_end_date or "further notice",
    )
    return subscription


async def resume_subscription(
    db: AsyncSession, subscription_id: uuid.UUID
) -> CustomerSubscription:
    subscription = await get_subscription(db, subscription_id)
    if subscription.status != SubscriptionStatus.PAUSED:
        raise _bad_request("Subscription is not paused")

    subscription.status = SubscriptionStatus.ACTIVE
    if subscription.pause_end_date is None:
        today = studio_today()
        start = subscription.pause_start_date
        subscription.pause_end_date = today if start is None else max(today, start)

    await db.commit()
    await db.refresh(subscription)
    logger.info("Resumed subscription %s", subscription.id)
    return subscription


async def cancel_subscription(
    db: AsyncSession,
    subscription_id: uuid.UUID,
    *,
    reason: Optional[str] = None,
) -> CustomerSubscription:
    """Cancel and release the seat.

    Membership drops to inactive only when the customer has no other active
    subscription. Cancelling twice is a no-op.
    """
    subscription = await get_subscription(db, subscription_id, for_update=True)
    if subscription.status == SubscriptionStatus.CANCELLED:
        return subscription

    booking = await get_class_booking(db, subscription.class_booking_id)
    schedule = await _lock_schedule(db, booking.schedule_id)
    customer = await get_customer(db, booking.customer_id)

    subscription.status = SubscriptionStatus.CANCELLED
    subscription.cancellation_reason = reason
    schedule.current_participants = max(0, (schedule.current_participants or 0) - 1)
    await deactivate_membership_if_idle(
        db, customer, cancelled_subscription_id=subscription.id
    )

    await db.commit()
    await db.refresh(subscription)
    logger.info(
        "Cancelled subscription %s (reason=%s); schedule %s now %d/%d",
        subscription.id,
        reason,
        schedule.id,
        schedule.current_participants,
        schedule.max_participants,
    )
    return subscription


async def get_installment_plan(
    db: AsyncSession, subscription_id: uuid.UUID
) -> InstallmentPlanResponse:
    subscription = await get_subscription(db, subscription_id)
    count = (
        subscription.number_of_installments
        if subscription.payment_type == SubscriptionPaymentType.INSTALLMENT
        else 1
    ) or 1
    plan = build_installment_plan(subscription.total_fees, count, subscription.amount_paid)
    return InstallmentPlanResponse(
        subscription_id=subscription.id,
        total_fees=subscription.total_fees,
        amount_paid=subscription.amount_paid,
        remaining_amount=remaining_amount(subscription),
        installments=[
            InstallmentLineResponse(
                installment_number=line.installment_number,
                amount=line.amount,
                paid_toward=line.paid_toward,
                covered=line.covered,
            )
            for line in plan
        ],
    )
