"""Admin dashboard counters."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.currency import ZERO, sum_money, to_money
from libs.common.datetime_utils import start_of_month_utc
from libs.common.logging import get_logger
from pydantic import BaseModel
from services.class_bookings_service.models import ClassBooking, ClassBookingStatus
from services.customers_service.models import Customer, MembershipStatus
from services.payments_service.models import Payment, PaymentStatus
from services.schedules_service.models import Schedule
from services.subscriptions_service.models import (
    CustomerSubscription,
    SubscriptionStatus,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class DashboardStats(BaseModel):
    active_customers: int
    active_schedules: int
    active_class_bookings: int
    active_subscriptions: int
    monthly_revenue: Decimal
    outstanding_fees: Decimal
    month_start: datetime


async def _count(db: AsyncSession, column, *conditions) -> int:
    result = await db.execute(select(func.count(column)).where(*conditions))
    return int(result.scalar_one())


async def get_dashboard_stats(
    db: AsyncSession, *, now: Optional[datetime] = None
) -> DashboardStats:
    """Headline numbers for the admin dashboard.

    Revenue counts completed payments since the first of the studio-local
    month; refunded payments drop out of it. Outstanding fees sum what is
    still owed on active subscriptions.
    """
    month_start = start_of_month_utc(now)

    revenue_result = await db.execute(
        select(Payment.amount).where(
            Payment.payment_status == PaymentStatus.COMPLETED,
            Payment.payment_date >= month_start,
        )
    )
    monthly_revenue = sum_money(revenue_result.scalars().all())

    owed_result = await db.execute(
        select(CustomerSubscription.total_fees, CustomerSubscription.amount_paid).where(
            CustomerSubscription.status == SubscriptionStatus.ACTIVE
        )
    )
    outstanding = sum_money(
        max(ZERO, to_money(fees) - to_money(paid)) for fees, paid in owed_result.all()
    )

    stats = DashboardStats(
        active_customers=await _count(
            db, Customer.id, Customer.membership_status == MembershipStatus.ACTIVE
        ),
        active_schedules=await _count(db, Schedule.id, Schedule.is_active.is_(True)),
        active_class_bookings=await _count(
            db, ClassBooking.id, ClassBooking.status == ClassBookingStatus.ACTIVE
        ),
        active_subscriptions=await _count(
            db,
            CustomerSubscription.id,
            CustomerSubscription.status == SubscriptionStatus.ACTIVE,
        ),
        monthly_revenue=monthly_revenue,
        outstanding_fees=outstanding,
        month_start=month_start,
    )
    logger.debug("Dashboard stats: %s", stats.model_dump())
    return stats
