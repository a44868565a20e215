"""Subscriptions Service schemas package."""

from services.subscriptions_service.schemas.main import (
    InstallmentLineResponse,
    InstallmentPlanResponse,
    SubscriptionCreate,
    SubscriptionPause,
    SubscriptionResponse,
    SubscriptionUpdate,
)

__all__ = [
    "InstallmentLineResponse",
    "InstallmentPlanResponse",
    "SubscriptionCreate",
    "SubscriptionPause",
    "SubscriptionResponse",
    "SubscriptionUpdate",
]
