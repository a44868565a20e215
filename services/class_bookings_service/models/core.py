import uuid
from datetime import date, datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.class_bookings_service.models.enums import (
    ClassBookingStatus,
    enum_values,
)
from sqlalchemy import JSON, Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class ClassBooking(Base):
    """One customer enrolled in one schedule for a date period.

    ``booking_dates`` is a cache of schedule.available_dates ∩ [starts_on, ends_on],
    rewritten by the booking operations on every create/update.
    """

    __tablename__ = "class_bookings"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), nullable=False, index=True
    )
    schedule_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), nullable=False, index=True
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), nullable=False, index=True
    )

    starts_on: Mapped[date] = mapped_column(Date, nullable=False)
    ends_on: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    booking_dates: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    status: Mapped[ClassBookingStatus] = mapped_column(
        SAEnum(
            ClassBookingStatus,
            name="class_booking_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=ClassBookingStatus.ACTIVE,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint(
            "customer_id", "schedule_id", name="uq_customer_schedule_class_booking"
        ),
        Index("idx_class_booking_dates", "starts_on", "ends_on"),
    )

    def __repr__(self):
        return f"<ClassBooking Customer={self.customer_id} Schedule={self.schedule_id}>"
