import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.subscriptions_service.models.enums import (
    SubscriptionPaymentStatus,
    SubscriptionPaymentType,
    SubscriptionStatus,
    enum_values,
)
from sqlalchemy import Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Integer, Numeric, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class CustomerSubscription(Base):
    """Fees, payments and session counters for exactly one class booking.

    Customer, schedule and service come from the linked class booking.
    Derived columns (amount_paid, payment_status, sessions_completed,
    sessions_remaining) are written only by
    ``services.subscriptions_service.ledger``.
    """

    __tablename__ = "customer_subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    class_booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), nullable=False, index=True
    )

    # === Contract ===
    total_fees: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    payment_type: Mapped[SubscriptionPaymentType] = mapped_column(
        SAEnum(
            SubscriptionPaymentType,
            name="subscription_payment_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=SubscriptionPaymentType.ONE_TIME,
    )
    number_of_installments: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    total_sessions: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # === Derived: money ===
    amount_paid: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    payment_status: Mapped[SubscriptionPaymentStatus] = mapped_column(
        SAEnum(
            SubscriptionPaymentStatus,
            name="subscription_payment_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=SubscriptionPaymentStatus.PENDING,
    )

    # === Derived: sessions ===
    sessions_completed: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    sessions_remaining: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # === Lifecycle ===
    status: Mapped[SubscriptionStatus] = mapped_column(
        SAEnum(
            SubscriptionStatus,
            name="subscription_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
        index=True,
    )
    pause_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    pause_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("class_booking_id", name="uq_class_booking_subscription"),
    )

    def __repr__(self):
        return (
            f"<CustomerSubscription Booking={self.class_booking_id} "
            f"{self.payment_status.value}>"
        )
