"""Payment recording and refunds with same-transaction ledger recompute.

A payment write and the subscription ledger it affects always share one
commit. The ledger is rebuilt from the full payment history after each write,
so concurrent or replayed payments converge on the same amount_paid.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.common.config import get_settings
from libs.common.currency import MoneyLike, to_money
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.class_bookings_service.services.booking_ops import get_class_booking
from services.customers_service.services.membership import get_customer
from services.payments_service.models import Payment, PaymentMethod, PaymentStatus
from services.payments_service.schemas import SubscriptionBalance
from services.subscriptions_service.ledger import remaining_amount
from services.subscriptions_service.services.subscription_ops import (
    get_subscription,
    recompute_subscription_ledger,
)
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_payment(db: AsyncSession, payment_id: uuid.UUID) -> Payment:
    result = await db.execute(select(Payment).where(Payment.id == payment_id))
    payment = result.scalar_one_or_none()
    if not payment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payment not found",
        )
    return payment


async def list_payments(
    db: AsyncSession,
    *,
    customer_id: Optional[uuid.UUID] = None,
    subscription_id: Optional[uuid.UUID] = None,
    status_filter: Optional[PaymentStatus] = None,
    paid_from: Optional[datetime] = None,
    paid_before: Optional[datetime] = None,
) -> list[Payment]:
    query = select(Payment)
    if customer_id is not None:
        query = query.where(Payment.customer_id == customer_id)
    if subscription_id is not None:
        query = query.where(Payment.subscription_id == subscription_id)
    if status_filter is not None:
        query = query.where(Payment.payment_status == status_filter)
    if paid_from is not None:
        query = query.where(Payment.payment_date >= paid_from)
    if paid_before is not None:
        query = query.where(Payment.payment_date < paid_before)
    query = query.order_by(Payment.payment_date.desc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def record_payment_and_reconcile(
    db: AsyncSession,
    *,
    amount: MoneyLike,
    payment_method: PaymentMethod,
    subscription_id: Optional[uuid.UUID] = None,
    customer_id: Optional[uuid.UUID] = None,
    transaction_id: Optional[str] = None,
    notes: Optional[str] = None,
    processed_by: Optional[uuid.UUID] = None,
) -> Payment:
    """Record a completed payment and rebuild the subscription ledger.

    1. Validate amount (400)
    2. Resolve the payer: from the subscription's booking (404 if missing),
       or the explicit customer for ad-hoc payments (400 on mismatch)
    3. Reject a reused transaction_id (409)
    4. Insert the payment, flush, recompute from all completed payments
    5. Commit once
    """
    # 1. Validate
    amount = to_money(amount)
    if amount <= Decimal("0"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Payment amount must be greater than 0",
        )

    # 2. Resolve payer
    subscription = None
    if subscription_id is not None:
        subscription = await get_subscription(db, subscription_id, for_update=True)
        booking = await get_class_booking(db, subscription.class_booking_id)
        if customer_id is not None and customer_id != booking.customer_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="customer_id does not match the subscription's customer",
            )
        customer_id = booking.customer_id
    elif customer_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either subscription_id or customer_id is required",
        )
    else:
        await get_customer(db, customer_id)

    # 3. Idempotency on the external reference
    if transaction_id:
        existing = await db.execute(
            select(Payment.id).where(Payment.transaction_id == transaction_id)
        )
        if existing.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A payment with this transaction_id already exists",
            )

    # 4. Insert and recompute
    payment = Payment(
        reference=Payment.generate_reference(),
        customer_id=customer_id,
        subscription_id=subscription_id,
        amount=amount,
        currency=get_settings().CURRENCY,
        payment_method=payment_method,
        payment_status=PaymentStatus.COMPLETED,
        transaction_id=transaction_id or None,
        notes=notes,
        processed_by=processed_by,
        payment_date=utc_now(),
    )
    db.add(payment)
    try:
        await db.flush()
        if subscription is not None:
            await recompute_subscription_ledger(db, subscription)
        # 5. Commit
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A payment with this transaction_id already exists",
        ) from exc
    await db.refresh(payment)

    logger.info(
        "Recorded payment %s amount=%s method=%s customer=%s subscription=%s",
        payment.reference,
        payment.amount,
        payment.payment_method.value,
        payment.customer_id,
        payment.subscription_id,
    )
    return payment


async def refund_payment(
    db: AsyncSession, payment_id: uuid.UUID, *, reason: Optional[str] = None
) -> Payment:
    """Mark a completed payment refunded and rebuild the ledger."""
    result = await db.execute(
        select(Payment).where(Payment.id == payment_id).with_for_update()
    )
    payment = result.scalar_one_or_none()
    if not payment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payment not found",
        )
    if payment.payment_status != PaymentStatus.COMPLETED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Only completed payments can be refunded (status={payment.payment_status.value})",
        )

    payment.payment_status = PaymentStatus.REFUNDED
    payment.refund_reason = reason
    payment.refunded_at = utc_now()
    await db.flush()

    if payment.subscription_id is not None:
        subscription = await get_subscription(
            db, payment.subscription_id, for_update=True
        )
        await recompute_subscription_ledger(db, subscription)

    await db.commit()
    await db.refresh(payment)
    logger.info(
        "Refunded payment %s amount=%s subscription=%s",
        payment.reference,
        payment.amount,
        payment.subscription_id,
    )
    return payment


async def get_subscription_balance(
    db: AsyncSession, subscription_id: uuid.UUID
) -> SubscriptionBalance:
    subscription = await get_subscription(db, subscription_id)
    return SubscriptionBalance(
        subscription_id=subscription.id,
        total_fees=to_money(subscription.total_fees),
        amount_paid=to_money(subscription.amount_paid),
        remaining_amount=remaining_amount(subscription),
        payment_status=subscription.payment_status,
    )
