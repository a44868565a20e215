import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from services.subscriptions_service.models.enums import (
    SubscriptionPaymentStatus,
    SubscriptionPaymentType,
    SubscriptionStatus,
)


class SubscriptionCreate(BaseModel):
    class_booking_id: uuid.UUID
    total_fees: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    payment_type: SubscriptionPaymentType = SubscriptionPaymentType.ONE_TIME
    number_of_installments: Optional[int] = None
    total_sessions: Optional[int] = Field(default=None, ge=1)  # None = open-ended


class SubscriptionUpdate(BaseModel):
    """Contract fields only.

    amount_paid, payment_status and the session counters are recomputed from
    payments and attendance; sending them is rejected.
    """

    total_fees: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=10, decimal_places=2
    )
    payment_type: Optional[SubscriptionPaymentType] = None
    number_of_installments: Optional[int] = None
    total_sessions: Optional[int] = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class SubscriptionPause(BaseModel):
    pause_start_date: date
    pause_end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_pause_window(self):
        if self.pause_end_date is not None and self.pause_end_date < self.pause_start_date:
            raise ValueError("pause_end_date must be on or after pause_start_date")
        return self


class SubscriptionResponse(BaseModel):
    id: uuid.UUID
    class_booking_id: uuid.UUID
    total_fees: Decimal
    payment_type: SubscriptionPaymentType
    number_of_installments: Optional[int] = None
    amount_paid: Decimal
    payment_status: SubscriptionPaymentStatus
    remaining_amount: Decimal = Decimal("0.00")
    total_sessions: Optional[int] = None
    sessions_completed: int
    sessions_remaining: Optional[int] = None
    status: SubscriptionStatus
    pause_start_date: Optional[date] = None
    pause_end_date: Optional[date] = None
    cancellation_reason: Optional[str] = None
    enrolled_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InstallmentLineResponse(BaseModel):
    installment_number: int
    amount: Decimal
    paid_toward: Decimal
    covered: bool


class InstallmentPlanResponse(BaseModel):
    subscription_id: uuid.UUID
    total_fees: Decimal
    amount_paid: Decimal
    remaining_amount: Decimal
    installments: List[InstallmentLineResponse]
