import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from services.payments_service.models import PaymentMethod, PaymentStatus
from services.subscriptions_service.models import SubscriptionPaymentStatus


class PaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_method: PaymentMethod
    subscription_id: Optional[uuid.UUID] = None
    # Required for ad-hoc payments; must match the subscription's customer otherwise
    customer_id: Optional[uuid.UUID] = None
    transaction_id: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: uuid.UUID
    reference: str
    customer_id: uuid.UUID
    subscription_id: Optional[uuid.UUID] = None
    amount: Decimal
    currency: str
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    processed_by: Optional[uuid.UUID] = None
    refund_reason: Optional[str] = None
    refunded_at: Optional[datetime] = None
    payment_date: datetime

    model_config = ConfigDict(from_attributes=True)


class SubscriptionBalance(BaseModel):
    subscription_id: uuid.UUID
    total_fees: Decimal
    amount_paid: Decimal
    remaining_amount: Decimal
    payment_status: SubscriptionPaymentStatus
