"""Customer model.

Customers arrive from the lead workflow already onboarded; the engine only
reads them and flips ``membership_status`` as subscriptions come and go.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.customers_service.models.enums import (
    CustomerStatus,
    MembershipStatus,
    enum_values,
)
from sqlalchemy import Date, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), nullable=True, index=True
    )  # Login account, owned by the auth service

    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    email: Mapped[Optional[str]] = mapped_column(String, index=True, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), index=True, nullable=True)

    status: Mapped[CustomerStatus] = mapped_column(
        SAEnum(
            CustomerStatus,
            name="customer_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=CustomerStatus.ONBOARDING,
    )
    membership_status: Mapped[MembershipStatus] = mapped_column(
        SAEnum(
            MembershipStatus,
            name="membership_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=MembershipStatus.INACTIVE,
        index=True,
    )
    membership_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    membership_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Customer {self.full_name} ({self.membership_status.value})>"
