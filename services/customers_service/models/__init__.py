"""Customers Service models package."""

from services.customers_service.models.core import Customer
from services.customers_service.models.enums import CustomerStatus, MembershipStatus

__all__ = [
    "Customer",
    "CustomerStatus",
    "MembershipStatus",
]
