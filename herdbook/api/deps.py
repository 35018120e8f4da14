"""
FastAPI dependencies (DB session, calendar day)
"""
from datetime import date

from herdbook.infrastructure.db.session import get_db as _get_db
from herdbook.utils.dates import today_local


# Re-export get_db for convenience
get_db = _get_db


def get_today() -> date:
    """
    Current day in the farm's timezone

    Overridden in tests to pin the calendar:
        app.dependency_overrides[get_today] = lambda: date(2024, 1, 16)
    """
    return today_local()
