"""
utils/time_utils.py

Purpose: Time helpers

- Timezone-aware "now"
- Subscription period end calculation
- Monthly usage period keys
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def calculate_period_end(days: int = 30, start: Optional[datetime] = None) -> datetime:
    """
    Returns the end of a billing period starting at `start` (default: now).
    """
    return (start or utc_now()) + timedelta(days=days)


def usage_period(dt: Optional[datetime] = None) -> str:
    """
    Returns the monthly usage key, e.g. "2026-10".
    """
    return (dt or utc_now()).strftime("%Y-%m")


def epoch_millis(dt: Optional[datetime] = None) -> int:
    return int((dt or utc_now()).timestamp() * 1000)
