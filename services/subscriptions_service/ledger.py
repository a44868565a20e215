"""Subscription ledger rules: payment state, session counters and installment plans.

Every derived field on ``CustomerSubscription`` is produced here and nowhere
else. Money state is always rebuilt from the full payment history (never
incremented), so edits and refunds can't leave amount_paid drifting away from
the payments table. Session counters move only through ``apply_session_delta``
or are recounted from attendance by ``set_sessions_completed``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from libs.common.currency import ZERO, MoneyLike, paise_to_rupees, rupees_to_paise, to_money
from services.payments_service.models.enums import PaymentStatus
from services.subscriptions_service.models import (
    CustomerSubscription,
    SubscriptionPaymentStatus,
    SubscriptionPaymentType,
)

# (amount, payment status) pairs, in any order
LedgerEntry = Tuple[MoneyLike, str]

MIN_INSTALLMENTS = 2
MAX_INSTALLMENTS = 24


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaymentState:
    amount_paid: Decimal
    payment_status: SubscriptionPaymentStatus


def compute_payment_state(
    total_fees: Optional[MoneyLike], payments: Iterable[LedgerEntry]
) -> PaymentState:
    """Derive amount_paid and payment_status from a payment history.

    - amount_paid = sum of completed payments
    - PAID     when amount_paid >= total_fees and total_fees > 0
    - PARTIAL  when 0 < amount_paid < total_fees
    - REFUNDED when nothing is paid any more and at least one payment was refunded
    - PENDING  otherwise

    The result depends only on the multiset of entries, not their order.
    """
    fees = to_money(total_fees)
    paid = ZERO
    refunded_any = False
    for amount, payment_status in payments:
        if payment_status == PaymentStatus.COMPLETED:
            paid += to_money(amount)
        elif payment_status == PaymentStatus.REFUNDED:
            refunded_any = True

    if fees > ZERO and paid >= fees:
        derived = SubscriptionPaymentStatus.PAID
    elif ZERO < paid < fees:
        derived = SubscriptionPaymentStatus.PARTIAL
    elif refunded_any and paid <= ZERO:
        derived = SubscriptionPaymentStatus.REFUNDED
    else:
        derived = SubscriptionPaymentStatus.PENDING

    return PaymentState(amount_paid=paid, payment_status=derived)


def apply_payment_state(subscription: CustomerSubscription, state: PaymentState) -> bool:
    """Write a computed state onto the subscription. Returns True if it changed."""
    changed = (
        to_money(subscription.amount_paid) != state.amount_paid
        or subscription.payment_status != state.payment_status
    )
    subscription.amount_paid = state.amount_paid
    subscription.payment_status = state.payment_status
    return changed


def remaining_amount(subscription: CustomerSubscription) -> Decimal:
    """What the customer still owes; never negative."""
    return max(ZERO, to_money(subscription.total_fees) - to_money(subscription.amount_paid))


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def compute_sessions_remaining(
    total_sessions: Optional[int], sessions_completed: int
) -> Optional[int]:
    """None for open-ended subscriptions, otherwise total - completed."""
    if total_sessions is None:
        return None
    return total_sessions - sessions_completed


def set_sessions_completed(subscription: CustomerSubscription, completed: int) -> None:
    subscription.sessions_completed = max(0, completed)
    subscription.sessions_remaining = compute_sessions_remaining(
        subscription.total_sessions, subscription.sessions_completed
    )


def apply_session_delta(subscription: CustomerSubscription, delta: int) -> int:
    """Move sessions_completed by ``delta`` and refresh sessions_remaining.

    Returns the new sessions_completed.
    """
    set_sessions_completed(subscription, (subscription.sessions_completed or 0) + delta)
    return subscription.sessions_completed


# ---------------------------------------------------------------------------
# Installments
# ---------------------------------------------------------------------------


def validate_installment_settings(
    payment_type: SubscriptionPaymentType, number_of_installments: Optional[int]
) -> None:
    if payment_type == SubscriptionPaymentType.INSTALLMENT:
        if number_of_installments is None:
            raise ValueError("Installment subscriptions need number_of_installments")
        if not MIN_INSTALLMENTS <= number_of_installments <= MAX_INSTALLMENTS:
            raise ValueError(
                f"number_of_installments must be between {MIN_INSTALLMENTS} "
                f"and {MAX_INSTALLMENTS}"
            )
    elif number_of_installments not in (None, 1):
        raise ValueError("One-time subscriptions cannot be split into installments")


def split_amounts(total_fees: MoneyLike, count: int) -> list[Decimal]:
    """Split evenly in paise; the remainder goes to the first installment."""
    if count <= 0:
        raise ValueError("Installment count must be greater than 0")
    total_paise = rupees_to_paise(total_fees)
    if total_paise < 0:
        raise ValueError("Total fee cannot be negative")

    base = total_paise // count
    remainder = total_paise - (base * count)
    amounts = [base for _ in range(count)]
    amounts[0] = base + remainder
    return [paise_to_rupees(a) for a in amounts]


@dataclass(frozen=True)
class InstallmentLine:
    installment_number: int
    amount: Decimal
    paid_toward: Decimal
    covered: bool


def build_installment_plan(
    total_fees: MoneyLike, count: int, amount_paid: MoneyLike
) -> list[InstallmentLine]:
    """Lay payments so far over the installment amounts, oldest first."""
    available = to_money(amount_paid)
    plan = []
    for idx, amount in enumerate(split_amounts(total_fees, count), start=1):
        applied = min(amount, max(ZERO, available))
        available -= applied
        plan.append(
            InstallmentLine(
                installment_number=idx,
                amount=amount,
                paid_toward=applied,
                covered=applied >= amount,
            )
        )
    return plan
