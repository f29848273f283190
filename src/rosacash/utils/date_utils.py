"""Calendar month arithmetic"""

from calendar import monthrange
from datetime import date, timedelta
from typing import Iterator, List, Tuple


def days_in_month(year: int, month: int) -> int:
    return monthrange(year, month)[1]


def day_in_month(year: int, month: int, day: int) -> date:
    """Date for `day` in the given month, clamped to the month's last day"""
    return date(year, month, min(day, days_in_month(year, month)))


def shift_month(month: int, year: int, offset: int = 1) -> Tuple[int, int]:
    """Move a 1-indexed (month, year) pair by `offset` months"""
    index = year * 12 + (month - 1) + offset
    return index % 12 + 1, index // 12


def add_months(start: date, months: int) -> date:
    """Same day `months` later, clamped to the end of shorter months"""
    month, year = shift_month(start.month, start.year, months)
    return day_in_month(year, month, start.day)


def iter_months(start: date, end: date) -> Iterator[Tuple[int, int]]:
    """Yield (month, year) for every calendar month touched by [start, end]"""
    month, year = start.month, start.year
    while (year, month) <= (end.year, end.month):
        yield month, year
        month, year = shift_month(month, year)


def month_bounds(month: int, year: int) -> Tuple[date, date]:
    """First and last day of a month"""
    return date(year, month, 1), day_in_month(year, month, 31)


def generate_date_range(start: date, end: date) -> List[date]:
    """Generate list of dates from start to end (inclusive)"""
    days = (end - start).days + 1
    return [start + timedelta(days=i) for i in range(days)]
