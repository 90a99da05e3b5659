"""Naive-UTC time helpers.

Timestamps are stored as naive UTC ``DateTime`` columns, so every
comparison against them has to use a naive UTC value as well.
"""

from datetime import date, datetime, time, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_midnight(day: date) -> datetime:
    """Calendar date -> midnight UTC on that date."""
    return datetime.combine(day, time.min)
