"""Date manipulation utilities"""

from datetime import date, timedelta


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative if end precedes start)"""
    return (end - start).days


def add_days(from_date: date, days: int) -> date:
    """Add calendar days to a date"""
    return from_date + timedelta(days=days)
