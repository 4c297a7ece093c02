from datetime import datetime, timezone

import pytest

from app.core.cron import parse_cron


def _at(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def test_parses_lists_ranges_and_steps():
    schedule = parse_cron("*/15 8-18/2 1,15 * 1-5")

    assert schedule.minutes == frozenset({0, 15, 30, 45})
    assert schedule.hours == frozenset({8, 10, 12, 14, 16, 18})
    assert schedule.days_of_month == frozenset({1, 15})
    assert schedule.months == frozenset(range(1, 13))
    assert schedule.days_of_week == frozenset({1, 2, 3, 4, 5})


def test_daily_schedule_matches_only_its_minute():
    schedule = parse_cron("0 6 * * *")

    assert schedule.matches(_at(2026, 6, 15, 6, 0))
    assert not schedule.matches(_at(2026, 6, 15, 6, 1))
    assert not schedule.matches(_at(2026, 6, 15, 7, 0))


def test_day_of_week_uses_sunday_as_zero_and_seven():
    assert parse_cron("0 0 * * 7").days_of_week == frozenset({0})

    sundays = parse_cron("30 9 * * 0")
    assert sundays.matches(_at(2026, 6, 14, 9, 30))  # Sunday
    assert not sundays.matches(_at(2026, 6, 15, 9, 30))  # Monday


def test_next_after_skips_to_following_match():
    schedule = parse_cron("0 7 * * *")

    assert schedule.next_after(_at(2026, 6, 15, 7, 0, 30)) == _at(2026, 6, 16, 7, 0)
    assert schedule.next_after(_at(2026, 6, 15, 6, 59)) == _at(2026, 6, 15, 7, 0)


def test_expression_is_normalised():
    assert parse_cron("  0   6 * *  * ").expression == "0 6 * * *"


@pytest.mark.parametrize(
    "expression",
    [
        "",
        "0 6 * *",
        "0 6 * * * *",
        "60 * * * *",
        "0 24 * * *",
        "0 0 0 * *",
        "0 0 * 13 *",
        "0 0 * * 8",
        "5-1 * * * *",
        "*/0 * * * *",
        "a * * * *",
        "1,,2 * * * *",
    ],
)
def test_invalid_expressions_are_rejected(expression):
    with pytest.raises(ValueError):
        parse_cron(expression)
