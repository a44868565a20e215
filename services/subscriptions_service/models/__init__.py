"""Subscriptions Service models package."""

from services.subscriptions_service.models.core import CustomerSubscription
from services.subscriptions_service.models.enums import (
    SubscriptionPaymentStatus,
    SubscriptionPaymentType,
    SubscriptionStatus,
)

__all__ = [
    "CustomerSubscription",
    "SubscriptionPaymentStatus",
    "SubscriptionPaymentType",
    "SubscriptionStatus",
]
