"""Five-field cron expressions (minute hour day-of-month month day-of-week).

Supports ``*``, single values, lists (``1,15``), ranges (``1-5``) and steps
(``*/15``, ``8-18/2``). Day-of-week uses cron numbering: 0 = Sunday, and 7 is
accepted as Sunday too. All evaluation is done on the caller's datetime; the
scheduler passes UTC.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

_FIELD_BOUNDS = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day of month", 1, 31),
    ("month", 1, 12),
    ("day of week", 0, 7),
)

# Upper bound for next-fire searches: one leap year of minutes.
_MAX_SEARCH_MINUTES = 366 * 24 * 60


@dataclass(frozen=True)
class CronSchedule:
    expression: str
    minutes: frozenset[int]
    hours: frozenset[int]
    days_of_month: frozenset[int]
    months: frozenset[int]
    days_of_week: frozenset[int]

    def matches(self, moment: datetime) -> bool:
        """True when ``moment`` falls in a minute this schedule fires on."""
        cron_weekday = (moment.weekday() + 1) % 7
        return (
            moment.minute in self.minutes
            and moment.hour in self.hours
            and moment.day in self.days_of_month
            and moment.month in self.months
            and cron_weekday in self.days_of_week
        )

    def next_after(self, moment: datetime) -> datetime:
        """First matching minute strictly after ``moment``."""
        candidate = moment.replace(second=0, microsecond=0) + timedelta(minutes=1)
        for _ in range(_MAX_SEARCH_MINUTES):
            if self.matches(candidate):
                return candidate
            candidate += timedelta(minutes=1)
        raise ValueError(f"Cron expression {self.expression!r} never fires within a year")


def _parse_int(text: str, name: str) -> int:
    if not text.isdigit():
        raise ValueError(f"Invalid {name} value: {text!r}")
    return int(text)


def _parse_field(text: str, name: str, low: int, high: int) -> frozenset[int]:
    values: set[int] = set()
    for part in text.split(","):
        if not part:
            raise ValueError(f"Empty item in {name} field: {text!r}")

        base, slash, step_text = part.partition("/")
        step = _parse_int(step_text, name) if slash else 1
        if step <= 0:
            raise ValueError(f"Step must be positive in {name} field: {part!r}")

        if base == "*":
            start, end = low, high
        elif "-" in base:
            start_text, _, end_text = base.partition("-")
            start, end = _parse_int(start_text, name), _parse_int(end_text, name)
            if start > end:
                raise ValueError(f"Range start > end in {name} field: {part!r}")
        else:
            start = _parse_int(base, name)
            end = high if slash else start

        if start < low or end > high:
            raise ValueError(f"{name} value out of range [{low}, {high}]: {part!r}")
        values.update(range(start, end + 1, step))
    return frozenset(values)


def parse_cron(expression: str) -> CronSchedule:
    """
    Parse ``expression`` into a CronSchedule.

    Raises:
        ValueError: wrong field count, malformed item or out-of-range value.
    """
    fields = (expression or "").split()
    if len(fields) != len(_FIELD_BOUNDS):
        raise ValueError(
            f"Cron expression must have 5 fields, got {len(fields)}: {expression!r}"
        )

    parsed = [
        _parse_field(text, name, low, high)
        for text, (name, low, high) in zip(fields, _FIELD_BOUNDS)
    ]
    minutes, hours, days_of_month, months, days_of_week = parsed
    if 7 in days_of_week:
        days_of_week = (days_of_week - {7}) | {0}

    return CronSchedule(
        expression=" ".join(fields),
        minutes=minutes,
        hours=hours,
        days_of_month=days_of_month,
        months=months,
        days_of_week=frozenset(days_of_week),
    )
