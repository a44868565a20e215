"""Money helpers for the studio.

Storage unit: rupees as ``Decimal`` with two places (``Numeric(10, 2)`` columns).
Arithmetic on fees and payments always goes through ``to_money`` so sums of
many payments never pick up float drift.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union

# ─── constants ───────────────────────────────────────────────────────────────

PAISE_PER_RUPEE: int = 100
ZERO = Decimal("0.00")
_CENT = Decimal("0.01")

MoneyLike = Union[Decimal, int, float, str]


# ─── conversion helpers ───────────────────────────────────────────────────────


def to_money(value: Optional[MoneyLike]) -> Decimal:
    """Coerce a number to a 2-place Decimal (round half-up). None → 0.00."""
    if value is None:
        return ZERO
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[MoneyLike]) -> Decimal:
    total = ZERO
    for value in values:
        total += to_money(value)
    return total


def rupees_to_paise(rupees: MoneyLike) -> int:
    """Convert rupees to paise. ₹1 = 100 paise."""
    return int(to_money(rupees) * PAISE_PER_RUPEE)


def paise_to_rupees(paise: int) -> Decimal:
    """Convert paise to rupees. 100 paise = ₹1."""
    return to_money(Decimal(paise) / PAISE_PER_RUPEE)
