"""Working-day calendar helpers."""

from __future__ import annotations

from datetime import date, timedelta

# date.weekday(): Monday == 0 ... Sunday == 6
WEEKEND_DAYS = frozenset({5, 6})


def is_weekend(on_date: date) -> bool:
    """Check if a date is a Saturday or Sunday."""
    return on_date.weekday() in WEEKEND_DAYS


def count_working_days(start: date, end: date) -> int:
    """Count Monday-Friday days in [start, end], inclusive of both ends.

    Returns 0 when ``end`` is before ``start``.
    """
    if end < start:
        return 0

    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5

    day = start + timedelta(days=full_weeks * 7)
    for _ in range(remainder):
        if not is_weekend(day):
            count += 1
        day += timedelta(days=1)

    return count
