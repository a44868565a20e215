"""Payments Service schemas package."""

from services.payments_service.schemas.main import (
    PaymentCreate,
    PaymentResponse,
    SubscriptionBalance,
)

__all__ = [
    "PaymentCreate",
    "PaymentResponse",
    "SubscriptionBalance",
]
