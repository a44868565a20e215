"""Per-customer class dates: a schedule's available dates clipped to an enrollment window."""

from datetime import date
from typing import Iterable, Optional


def compute_booking_dates(
    starts_on: date,
    ends_on: Optional[date],
    available_dates: Optional[Iterable[str]],
) -> list[str]:
    """Return the ISO dates in ``available_dates`` within ``[starts_on, ends_on]``.

    ``ends_on=None`` leaves the window open. Callers validate
    ``starts_on <= ends_on`` first; an inverted window simply yields nothing.
    ISO strings compare in calendar order, so no parsing is needed.
    """
    if not available_dates:
        return []
    start = starts_on.isoformat()
    end = ends_on.isoformat() if ends_on is not None else None
    return [d for d in available_dates if d >= start and (end is None or d <= end)]
