"""
Timestamp utilities for rate limit buckets.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

ONE_DAY_MS = 24 * 60 * 60 * 1000


def to_millis(moment: Optional[datetime] = None) -> int:
    """Convert a datetime to epoch milliseconds.

    Args:
        moment: datetime to convert (optional, uses current time if None)

    Returns:
        Epoch milliseconds
    """
    if moment is None:
        moment = datetime.now()
    return int(moment.timestamp() * 1000)


def hour_bucket_key(moment: datetime) -> str:
    """Bucket identifier for the calendar hour containing ``moment``."""
    return moment.strftime('%Y-%m-%d-%H')


def day_bucket_key(moment: datetime) -> str:
    """Bucket identifier for the calendar day containing ``moment``."""
    return moment.strftime('%Y-%m-%d')


def next_hour(moment: datetime) -> datetime:
    return moment.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)


def next_midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)


def minutes_until_next_hour(moment: datetime) -> int:
    """Whole minutes (rounded up) until the top of the next hour."""
    return math.ceil((next_hour(moment) - moment).total_seconds() / 60)


def hours_until_next_day(moment: datetime) -> int:
    """Whole hours (rounded up) until the next midnight."""
    return math.ceil((next_midnight(moment) - moment).total_seconds() / 3600)
