"""Customer lookups and membership-status side effects of subscriptions.

Membership is derived from subscriptions: a customer is an active member while
at least one of their subscriptions is active. Functions here mutate the
customer in the caller's session and never commit; the subscription operation
that triggered them owns the transaction.
"""

import uuid
from typing import Optional

from fastapi import HTTPException, status
from libs.common.datetime_utils import studio_today
from libs.common.logging import get_logger
from services.class_bookings_service.models import ClassBooking
from services.customers_service.models import (
    Customer,
    CustomerStatus,
    MembershipStatus,
)
from services.subscriptions_service.models import (
    CustomerSubscription,
    SubscriptionStatus,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def get_customer(db: AsyncSession, customer_id: uuid.UUID) -> Customer:
    result = await db.execute(select(Customer).where(Customer.id == customer_id))
    customer = result.scalar_one_or_none()
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found",
        )
    return customer


async def count_active_subscriptions(
    db: AsyncSession,
    customer_id: uuid.UUID,
    *,
    exclude_subscription_id: Optional[uuid.UUID] = None,
) -> int:
    """Count the customer's active subscriptions across every class booking."""
    query = (
        select(func.count(CustomerSubscription.id))
        .join(ClassBooking, ClassBooking.id == CustomerSubscription.class_booking_id)
        .where(
            ClassBooking.customer_id == customer_id,
            CustomerSubscription.status == SubscriptionStatus.ACTIVE,
        )
    )
    if exclude_subscription_id is not None:
        query = query.where(CustomerSubscription.id != exclude_subscription_id)
    result = await db.execute(query)
    return int(result.scalar_one())


def activate_membership(customer: Customer) -> None:
    """Mark the customer as an active member (new subscription)."""
    if customer.membership_status != MembershipStatus.ACTIVE:
        logger.info(
            "Membership for customer %s: %s -> active",
            customer.id,
            customer.membership_status.value,
        )
    customer.membership_status = MembershipStatus.ACTIVE
    customer.status = CustomerStatus.ACTIVE
    if customer.membership_start_date is None:
        customer.membership_start_date = studio_today()
    customer.membership_end_date = None


async def deactivate_membership_if_idle(
    db: AsyncSession,
    customer: Customer,
    *,
    cancelled_subscription_id: uuid.UUID,
) -> bool:
    """Drop membership to inactive when no *other* subscription is still active.

    Returns True when the membership was deactivated.
    """
    remaining = await count_active_subscriptions(
        db, customer.id, exclude_subscription_id=cancelled_subscription_id
    )
    if remaining > 0:
        logger.info(
            "Customer %s keeps active membership (%d other active subscriptions)",
            customer.id,
            remaining,
        )
        return False

    customer.membership_status = MembershipStatus.INACTIVE
    customer.membership_end_date = studio_today()
    logger.info("Membership for customer %s: -> inactive", customer.id)
    return True
