"""Unit tests for schedule recurrence expansion.

Schedules are built with ScheduleFactory and never persisted; the resolver
only reads their fields.
"""

from datetime import date, timedelta

import pytest
from services.schedules_service.models import WEEKDAY_FLAG_FIELDS, RecurrenceType
from services.schedules_service.recurrence import (
    CustomRule,
    DailyRule,
    MonthlyRule,
    WeeklyRule,
    build_rule,
    expand_rule,
    resolve_available_dates,
    resolve_window,
)
from tests.factories import ScheduleFactory

JANUARY_MON_WED = [
    "2025-01-01",
    "2025-01-06",
    "2025-01-08",
    "2025-01-13",
    "2025-01-15",
    "2025-01-20",
    "2025-01-22",
    "2025-01-27",
    "2025-01-29",
]


def _no_weekdays():
    return {field: False for field in WEEKDAY_FLAG_FIELDS}


# ---------------------------------------------------------------------------
# Weekly
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_weekly_monday_wednesday_january():
    schedule = ScheduleFactory.create()

    assert resolve_available_dates(schedule) == JANUARY_MON_WED


@pytest.mark.unit
def test_weekly_returns_every_flagged_day_and_nothing_else():
    schedule = ScheduleFactory.create(
        monday=False,
        wednesday=False,
        tuesday=True,
        saturday=True,
        effective_from=date(2025, 2, 3),
        effective_until=date(2025, 4, 30),
    )

    dates = [date.fromisoformat(d) for d in resolve_available_dates(schedule)]

    assert all(d.weekday() in (1, 5) for d in dates)
    current = date(2025, 2, 3)
    expected = []
    while current <= date(2025, 4, 30):
        if current.weekday() in (1, 5):
            expected.append(current)
        current += timedelta(days=1)
    assert dates == expected


@pytest.mark.unit
def test_caller_horizon_shortens_window():
    schedule = ScheduleFactory.create()

    dates = resolve_available_dates(schedule, horizon=date(2025, 1, 10))

    assert dates == ["2025-01-01", "2025-01-06", "2025-01-08"]


@pytest.mark.unit
def test_horizon_after_effective_until_is_ignored():
    schedule = ScheduleFactory.create()

    dates = resolve_available_dates(schedule, horizon=date(2025, 6, 30))

    assert dates == JANUARY_MON_WED


@pytest.mark.unit
def test_open_ended_schedule_uses_default_horizon():
    schedule = ScheduleFactory.create(effective_until=None)

    dates = resolve_available_dates(schedule, default_horizon_days=14)

    assert dates == ["2025-01-01", "2025-01-06", "2025-01-08", "2025-01-13", "2025-01-15"]


# ---------------------------------------------------------------------------
# Daily / Monthly / Custom
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_daily_includes_every_date():
    schedule = ScheduleFactory.create(
        recurrence_type=RecurrenceType.DAILY,
        effective_from=date(2025, 2, 27),
        effective_until=date(2025, 3, 2),
        **_no_weekdays(),
    )

    assert resolve_available_dates(schedule) == [
        "2025-02-27",
        "2025-02-28",
        "2025-03-01",
        "2025-03-02",
    ]


@pytest.mark.unit
def test_monthly_skips_months_without_the_day():
    schedule = ScheduleFactory.create(
        recurrence_type=RecurrenceType.MONTHLY,
        day_of_month=31,
        effective_from=date(2025, 1, 1),
        effective_until=date(2025, 6, 30),
        **_no_weekdays(),
    )

    assert resolve_available_dates(schedule) == [
        "2025-01-31",
        "2025-03-31",
        "2025-05-31",
    ]


@pytest.mark.unit
def test_monthly_respects_window_edges():
    schedule = ScheduleFactory.create(
        recurrence_type=RecurrenceType.MONTHLY,
        day_of_month=10,
        effective_from=date(2025, 1, 11),
        effective_until=date(2025, 3, 9),
        **_no_weekdays(),
    )

    assert resolve_available_dates(schedule) == ["2025-02-10"]


@pytest.mark.unit
def test_custom_keeps_valid_dates_inside_window():
    schedule = ScheduleFactory.create(
        recurrence_type=RecurrenceType.CUSTOM,
        custom_dates=["2025-01-20", "2025-01-05", "2025-01-05", "05/01/2025", "2025-03-01"],
        **_no_weekdays(),
    )

    assert resolve_available_dates(schedule) == ["2025-01-05", "2025-01-20"]


# ---------------------------------------------------------------------------
# build_rule
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_build_rule_variants():
    assert build_rule(recurrence_type=RecurrenceType.DAILY) == DailyRule()
    assert build_rule(
        recurrence_type=RecurrenceType.WEEKLY,
        weekday_flags=[True, False, True, False, False, False, False],
    ) == WeeklyRule(weekdays=frozenset({0, 2}))
    assert build_rule(
        recurrence_type=RecurrenceType.MONTHLY, day_of_month=15
    ) == MonthlyRule(day_of_month=15)
    assert build_rule(
        recurrence_type=RecurrenceType.CUSTOM,
        custom_dates=["2025-01-02", date(2025, 1, 1)],
    ) == CustomRule(dates=(date(2025, 1, 1), date(2025, 1, 2)))


@pytest.mark.unit
@pytest.mark.parametrize(
    "kwargs",
    [
        {"recurrence_type": RecurrenceType.WEEKLY},
        {
            "recurrence_type": RecurrenceType.WEEKLY,
            "weekday_flags": [True],
            "day_of_month": 3,
        },
        {"recurrence_type": RecurrenceType.MONTHLY},
        {"recurrence_type": RecurrenceType.MONTHLY, "day_of_month": 32},
        {"recurrence_type": RecurrenceType.CUSTOM, "custom_dates": ["not-a-date"]},
        {"recurrence_type": RecurrenceType.CUSTOM, "custom_dates": []},
        {"recurrence_type": RecurrenceType.DAILY, "weekday_flags": [False, True]},
    ],
)
def test_build_rule_rejects_inconsistent_mechanisms(kwargs):
    with pytest.raises(ValueError):
        build_rule(**kwargs)


@pytest.mark.unit
def test_expand_rule_empty_when_window_inverted():
    assert expand_rule(DailyRule(), date(2025, 2, 1), date(2025, 1, 1)) == []


@pytest.mark.unit
def test_expand_rule_rejects_unknown_rule():
    with pytest.raises(TypeError):
        expand_rule(object(), date(2025, 1, 1), date(2025, 1, 2))


@pytest.mark.unit
def test_resolve_window_bounds():
    start = date(2025, 1, 1)

    assert resolve_window(start, date(2025, 1, 31)) == (start, date(2025, 1, 31))
    assert resolve_window(start, date(2025, 1, 31), horizon=date(2025, 1, 5)) == (
        start,
        date(2025, 1, 5),
    )
    assert resolve_window(start, None, horizon=date(2025, 2, 1)) == (
        start,
        date(2025, 2, 1),
    )
    assert resolve_window(start, None, default_horizon_days=10) == (
        start,
        date(2025, 1, 11),
    )
