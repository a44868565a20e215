import uuid
from datetime import date, datetime, time
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.schedules_service.models.enums import (
    WEEKDAY_FLAG_FIELDS,
    RecurrenceType,
    enum_values,
)
from sqlalchemy import JSON, Boolean, Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, Integer, String, Time, Uuid
from sqlalchemy.orm import Mapped, mapped_column

# ============================================================================
# SCHEDULE MODEL
# ============================================================================


class Schedule(Base):
    """Recurring class template.

    The recurrence is stored as sibling columns (weekday flags, day_of_month,
    custom_dates) but is only ever interpreted through
    ``services.schedules_service.recurrence.rule_for_schedule``, which turns
    them into exactly one rule variant.
    """

    __tablename__ = "schedules"
    __table_args__ = (
        Index("idx_schedule_effective_dates", "effective_from", "effective_until"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )

    # === Context Links ===
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), nullable=False, index=True
    )
    trainer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # === Recurrence ===
    recurrence_type: Mapped[RecurrenceType] = mapped_column(
        SAEnum(
            RecurrenceType,
            name="recurrence_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        index=True,
    )
    monday: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tuesday: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    wednesday: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    thursday: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    friday: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    saturday: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sunday: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    day_of_month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    custom_dates: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    # === Timing ===
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # === Capacity ===
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    current_participants: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    # === Location ===
    location: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    meeting_link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False, index=True
    )

    # === Timestamps ===
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    @property
    def is_full(self) -> bool:
        return self.current_participants >= self.max_participants

    def __repr__(self):
        return f"<Schedule {self.name} ({self.recurrence_type.value})>"
