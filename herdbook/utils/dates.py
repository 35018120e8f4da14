"""
Date helpers - the herd calendar works on whole days in the farm's timezone
"""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from herdbook.config import get_settings


def today_local(tz_name: str | None = None) -> date:
    """Current calendar day in the configured (or given) timezone."""
    tz = ZoneInfo(tz_name or get_settings().TIMEZONE)
    return datetime.now(tz).date()
