"""
Late-fee arithmetic for loan settlement.

Lateness is counted in whole days: ``floor((actual - expected) / 1 day)``,
never below zero. A plain ``date`` counts as midnight of that day, so a book
handed back on the afternoon of its due date is not late.
"""

import math
from datetime import date, datetime
from decimal import Decimal

from .exceptions import InvalidDateError

SECONDS_PER_DAY = 24 * 60 * 60


def parse_date(value: date | datetime | str) -> date | datetime:
    """
    Coerce a date input into a ``date`` or ``datetime``.

    Accepts ``date``/``datetime`` objects unchanged and ISO-8601 strings
    (``2023-01-15`` or ``2023-01-15T10:30:00``).

    Raises:
        InvalidDateError: If the value is not a date or cannot be parsed
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(f"Invalid date: {value!r}")

    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidDateError(f"Invalid date: {value!r}") from e


def as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        # Aware and naive datetimes cannot be subtracted; compare wall-clock times
        return value.replace(tzinfo=None) if value.tzinfo else value
    return datetime(value.year, value.month, value.day)


def lateness_days(expected: date | datetime | str, actual: date | datetime | str) -> int:
    """Whole days between ``expected`` and ``actual``, floored, at least zero."""
    delta = as_datetime(parse_date(actual)) - as_datetime(parse_date(expected))
    return max(0, math.floor(delta.total_seconds() / SECONDS_PER_DAY))


def fee(days_late: int, rate: Decimal) -> Decimal:
    """Penalty owed for ``days_late`` days at ``rate`` per day."""
    if days_late < 0:
        raise ValueError("days_late cannot be negative")
    return (Decimal(days_late) * Decimal(rate)).quantize(Decimal("0.01"))


def assess(
    expected: date | datetime | str, actual: date | datetime | str, rate: Decimal
) -> tuple[int, Decimal]:
    """Return ``(days_late, penalty_fee)`` for a return at ``actual``."""
    days = lateness_days(expected, actual)
    return days, fee(days, rate)
