import calendar
from datetime import date, datetime, timezone, timedelta


def get_current_datetime() -> datetime:
    """Return current UTC datetime with timezone info."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def add_days(start: date, days: int) -> date:
    return start + timedelta(days=days)


def add_months(start: date, months: int) -> date:
    """
    Add calendar months to a date.

    The day is clamped to the last day of the target month, so
    January 31st plus one month is the last day of February.
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))


def duration_to_days(value: int, unit: str) -> int:
    """
    Convert a contract duration to a number of days.

    Months count as 30 days and years as 365; an unknown unit is
    treated as months.
    """
    if unit == "days":
        return value
    if unit == "years":
        return value * 365
    return value * 30


def duration_to_months(value: int, unit: str) -> int:
    """Whole months covered by a contract duration (at least 1)"""
    if unit == "years":
        return max(1, value * 12)
    if unit == "days":
        return max(1, value // 30)
    return max(1, value)
