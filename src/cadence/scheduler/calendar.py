"""Working-day calendar arithmetic.

Weekdays use ISO numbering (1=Monday..7=Sunday), matching ``date.isoweekday()``.
Effort math treats one story point as one day of a worker's full daily budget.
"""

from collections.abc import Collection
from datetime import date, datetime, timedelta

DEFAULT_SEARCH_DAYS = 14


def to_date(value: date | datetime) -> date:
    """Drop the time-of-day from a datetime (dates pass through)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def is_working_day(day: date | datetime, working_days: Collection[int]) -> bool:
    """Check whether ``day`` falls on one of the given ISO weekdays."""
    if not working_days:
        return False
    return to_date(day).isoweekday() in working_days


def next_working_day(
    day: date | datetime,
    working_days: Collection[int],
    max_days: int = DEFAULT_SEARCH_DAYS,
) -> date | None:
    """Find the first working day strictly after ``day``.

    Returns None for an empty calendar or when nothing matches within ``max_days``.
    """
    if not working_days:
        return None
    current = to_date(day)
    for _ in range(max_days):
        current += timedelta(days=1)
        if is_working_day(current, working_days):
            return current
    return None


def first_working_day(
    day: date | datetime,
    working_days: Collection[int],
    max_days: int = DEFAULT_SEARCH_DAYS,
) -> date | None:
    """Return ``day`` if it is a working day, else the next one (or None)."""
    if not working_days:
        return None
    if is_working_day(day, working_days):
        return to_date(day)
    return next_working_day(day, working_days, max_days)


def compare_dates(first: date | datetime, second: date | datetime) -> int:
    """Compare two calendar days ignoring time-of-day: -1, 0 or 1."""
    a, b = to_date(first), to_date(second)
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def max_date(first: date | None, second: date | None) -> date | None:
    """Later of two calendar days; a missing side yields the other."""
    if first is None:
        return second
    if second is None:
        return first
    return first if compare_dates(first, second) >= 0 else second


def count_working_days(
    start: date | datetime, end: date | datetime, working_days: Collection[int]
) -> int:
    """Count working days in the inclusive range [start, end]."""
    if not working_days:
        return 0
    current, last = to_date(start), to_date(end)
    count = 0
    while current <= last:
        if current.isoweekday() in working_days:
            count += 1
        current += timedelta(days=1)
    return count


def working_days_between(
    start: date | datetime, end: date | datetime, working_days: Collection[int]
) -> list[date]:
    """List the working days in the inclusive range [start, end]."""
    current, last = to_date(start), to_date(end)
    days: list[date] = []
    while current <= last:
        if is_working_day(current, working_days):
            days.append(current)
        current += timedelta(days=1)
    return days
