"""Calendar-month helpers for YNAB's YYYY-MM-DD month strings.

Months are handled as plain (year, month) integer pairs. Nothing here reads
the local timezone; "today" defaults come from UTC.
"""

import calendar
import logging
import re
from datetime import date, datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?$")
_FULL_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_month(value: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse "YYYY-MM-DD" (or "YYYY-MM") into (year, month).

    Returns None for anything malformed, including month numbers outside 1-12.
    The day component is ignored.
    """
    if not isinstance(value, str):
        return None
    match = _MONTH_RE.match(value.strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month


def validate_month_format(value: str) -> bool:
    """True if value is a real calendar date in YYYY-MM-DD form."""
    if not isinstance(value, str) or not _FULL_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}-01"


def first_day_of_month(day: Optional[date] = None) -> str:
    """First of the month containing day (default: today in UTC)."""
    if day is None:
        day = datetime.now(timezone.utc).date()
    return format_month(day.year, day.month)


def _shift(value: str, delta: int) -> str:
    parsed = parse_month(value)
    if parsed is None:
        raise ValueError(f"Invalid month format: {value}")
    year, month = parsed
    index = year * 12 + (month - 1) + delta
    return format_month(index // 12, index % 12 + 1)


def previous_month(value: str) -> str:
    return _shift(value, -1)


def next_month(value: str) -> str:
    return _shift(value, 1)


def compare_months(a: tuple[int, int], b: tuple[int, int]) -> int:
    """-1, 0 or 1 as month a is before, equal to, or after month b."""
    return (a > b) - (a < b)


def count_weekday_occurrences(year: int, month: int, goal_day: int) -> int:
    """Count days in the month whose weekday equals goal_day (0=Sunday .. 6=Saturday).

    Walks every calendar day of the month. date.weekday() is Monday=0, so it
    is shifted by one to YNAB's Sunday-first numbering.
    """
    _, days_in_month = calendar.monthrange(year, month)
    count = 0
    for day in range(1, days_in_month + 1):
        if (date(year, month, day).weekday() + 1) % 7 == goal_day:
            count += 1
    return count


def month_in_budget_range(
    value: str, first_month: Optional[str], last_month: Optional[str]
) -> tuple[bool, str]:
    """Check that value falls within a budget's [first_month, last_month].

    Returns (ok, error_message); error_message is "" when ok.
    """
    if not validate_month_format(value):
        return False, f"Invalid month format: {value}. Expected YYYY-MM-DD format."
    if not first_month or not last_month:
        return False, f"Budget is missing date range information. Cannot validate month {value}."

    requested = parse_month(value)
    first = parse_month(first_month)
    last = parse_month(last_month)
    if first is None or last is None:
        return False, f"Budget has invalid date range: first_month={first_month}, last_month={last_month}"

    if compare_months(requested, first) < 0:
        return False, f"Month {value} is before budget start date {first_month}"
    if compare_months(requested, last) > 0:
        return False, f"Month {value} is after budget end date {last_month}"
    return True, ""


def safe_default_month(
    first_month: Optional[str], last_month: Optional[str], today: Optional[date] = None
) -> str:
    """Pick the current month, clamped into the budget's range."""
    first = parse_month(first_month)
    last = parse_month(last_month)
    if first is None or last is None:
        raise ValueError(
            f"Budget has invalid date range: first_month={first_month}, last_month={last_month}"
        )

    current = parse_month(first_day_of_month(today))
    if compare_months(current, last) > 0:
        logger.info("Current month is after budget range, using %s", last_month)
        return format_month(*last)
    if compare_months(current, first) < 0:
        logger.info("Current month is before budget range, using %s", first_month)
        return format_month(*first)
    return format_month(*current)
