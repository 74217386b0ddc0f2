"""
utils/time_utils.py

Purpose: Period and date helpers

- Month boundaries for period queries
- Filing period (YYYY-MM) and financial year (April-March) labels
- GST portal date format (DD-MM-YYYY)
"""

from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union


def to_datetime(value: Union[date, datetime, None]) -> Optional[datetime]:
    """
    Mongo stores datetimes only; lifts a plain date to midnight.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def validate_month(month: int, year: int) -> None:
    if month < 1 or month > 12:
        raise ValueError("Month must be between 1 and 12")
    if year < 2017 or year > 2100:
        raise ValueError("Year must be between 2017 and 2100")


def add_months(year: int, month: int, delta: int) -> Tuple[int, int]:
    """
    Shifts a (year, month) pair by delta months.
    """
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """
    Returns [start, end) datetimes covering the calendar month.
    """
    next_year, next_month = add_months(year, month, 1)
    return datetime(year, month, 1), datetime(next_year, next_month, 1)


def filing_period(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def financial_year(year: int, month: int) -> str:
    """
    Indian financial years run April to March: Jan 2024 belongs to 2023-24.
    """
    start = year if month >= 4 else year - 1
    return f"{start}-{str(start + 1)[-2:]}"


def due_date(year: int, month: int, day: int) -> date:
    """
    Deadline falling on `day` of the month after the period.
    """
    due_year, due_month = add_months(year, month, 1)
    return date(due_year, due_month, day)


def format_gst_date(value: Union[date, datetime, None]) -> str:
    """
    Formats a date the way the GST portal JSON expects (DD-MM-YYYY).
    """
    if not value:
        return ""
    return value.strftime("%d-%m-%Y")


def current_month_year(today: Optional[date] = None) -> Tuple[int, int]:
    today = today or datetime.utcnow().date()
    return today.month, today.year


def end_of_day(value: date) -> datetime:
    return to_datetime(value) + timedelta(days=1)
