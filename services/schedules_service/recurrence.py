"""Recurrence rules for class schedules and their expansion into class dates.

A schedule recurs in exactly one way. The ``Schedule`` row keeps that as
sibling columns; everything in the engine goes through the rule variants
below instead, so "weekly with a day_of_month" simply cannot be built.

Expansion is pure: the same schedule fields (and horizon) always give the same
sorted, de-duplicated list of ISO dates. Nothing here touches the database.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence, Union

from libs.common.config import get_settings
from libs.common.datetime_utils import parse_iso_date, to_iso_date
from services.schedules_service.models import (
    WEEKDAY_FLAG_FIELDS,
    RecurrenceType,
    Schedule,
)

# ---------------------------------------------------------------------------
# Rule variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DailyRule:
    pass


@dataclass(frozen=True)
class WeeklyRule:
    weekdays: frozenset[int]  # date.weekday() numbers, 0=Monday


@dataclass(frozen=True)
class MonthlyRule:
    day_of_month: int


@dataclass(frozen=True)
class CustomRule:
    dates: tuple[date, ...]


RecurrenceRule = Union[DailyRule, WeeklyRule, MonthlyRule, CustomRule]


def _coerce_date(value) -> Optional[date]:
    if isinstance(value, date):
        return value
    return parse_iso_date(value)


def build_rule(
    *,
    recurrence_type: RecurrenceType,
    weekday_flags: Sequence[bool] = (),
    day_of_month: Optional[int] = None,
    custom_dates: Optional[Iterable] = None,
) -> RecurrenceRule:
    """Build the rule variant for ``recurrence_type``.

    Raises ``ValueError`` when the populated mechanism does not match the
    recurrence type, or when a sibling mechanism is populated as well.
    Malformed custom dates are dropped; a custom rule needs at least one valid
    date left over.
    """
    recurrence_type = RecurrenceType(recurrence_type)
    weekdays = frozenset(idx for idx, flag in enumerate(weekday_flags) if flag)
    custom_list = list(custom_dates or [])
    has_weekdays = bool(weekdays)
    has_day = day_of_month is not None
    has_custom = bool(custom_list)

    if recurrence_type == RecurrenceType.DAILY:
        if has_weekdays or has_day or has_custom:
            raise ValueError(
                "Daily schedules cannot set weekday flags, day_of_month or custom_dates"
            )
        return DailyRule()

    if recurrence_type == RecurrenceType.WEEKLY:
        if has_day or has_custom:
            raise ValueError(
                "Weekly schedules cannot set day_of_month or custom_dates"
            )
        if not has_weekdays:
            raise ValueError("Weekly schedules need at least one weekday")
        return WeeklyRule(weekdays=weekdays)

    if recurrence_type == RecurrenceType.MONTHLY:
        if has_weekdays or has_custom:
            raise ValueError(
                "Monthly schedules cannot set weekday flags or custom_dates"
            )
        if not has_day:
            raise ValueError("Monthly schedules need a day_of_month")
        if not 1 <= day_of_month <= 31:
            raise ValueError("day_of_month must be between 1 and 31")
        return MonthlyRule(day_of_month=day_of_month)

    # CUSTOM
    if has_weekdays or has_day:
        raise ValueError("Custom schedules cannot set weekday flags or day_of_month")
    parsed = {d for d in (_coerce_date(v) for v in custom_list) if d is not None}
    if not parsed:
        raise ValueError("Custom schedules need at least one YYYY-MM-DD date")
    return CustomRule(dates=tuple(sorted(parsed)))


def rule_for_schedule(schedule: Schedule) -> RecurrenceRule:
    return build_rule(
        recurrence_type=schedule.recurrence_type,
        weekday_flags=[bool(getattr(schedule, f)) for f in WEEKDAY_FLAG_FIELDS],
        day_of_month=schedule.day_of_month,
        custom_dates=schedule.custom_dates,
    )


# ---------------------------------------------------------------------------
# Expansion
# ---------------------------------------------------------------------------


def resolve_window(
    effective_from: date,
    effective_until: Optional[date],
    *,
    horizon: Optional[date] = None,
    default_horizon_days: Optional[int] = None,
) -> tuple[date, date]:
    """Return the inclusive ``(start, end)`` window to expand over.

    ``effective_until`` bounds the window; a caller horizon can only shorten
    it. Open-ended schedules without a horizon stop after the configured
    default number of days, whatever their recurrence type.
    """
    if effective_until is not None:
        end = effective_until if horizon is None else min(effective_until, horizon)
    elif horizon is not None:
        end = horizon
    else:
        days = default_horizon_days or get_settings().SCHEDULE_DEFAULT_HORIZON_DAYS
        end = effective_from + timedelta(days=days)
    return effective_from, end


def _days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def expand_rule(rule: RecurrenceRule, start: date, end: date) -> list[date]:
    """All dates in ``[start, end]`` matching ``rule``, ascending."""
    if end < start:
        return []

    if isinstance(rule, DailyRule):
        return list(_days(start, end))

    if isinstance(rule, WeeklyRule):
        return [d for d in _days(start, end) if d.weekday() in rule.weekdays]

    if isinstance(rule, MonthlyRule):
        dates = []
        year, month = start.year, start.month
        while (year, month) <= (end.year, end.month):
            # Months without this day are skipped, never clamped to month end
            if rule.day_of_month <= calendar.monthrange(year, month)[1]:
                candidate = date(year, month, rule.day_of_month)
                if start <= candidate <= end:
                    dates.append(candidate)
            month += 1
            if month > 12:
                year, month = year + 1, 1
        return dates

    if isinstance(rule, CustomRule):
        return [d for d in rule.dates if start <= d <= end]

    raise TypeError(f"Unknown recurrence rule: {rule!r}")


def resolve_available_dates(
    schedule: Schedule,
    *,
    horizon: Optional[date] = None,
    default_horizon_days: Optional[int] = None,
) -> list[str]:
    """Expand a schedule into its ISO ``available_dates``."""
    rule = rule_for_schedule(schedule)
    start, end = resolve_window(
        schedule.effective_from,
        schedule.effective_until,
        horizon=horizon,
        default_horizon_days=default_horizon_days,
    )
    return [to_iso_date(d) for d in expand_rule(rule, start, end)]
