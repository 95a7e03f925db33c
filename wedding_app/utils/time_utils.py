"""
Time helpers.
Storage is always UTC; calendar days ("today", D-day) are taken in SYSTEM_TIMEZONE.
"""
from datetime import date, datetime, time, timedelta, timezone

import pytz
from flask import current_app


def utcnow() -> datetime:
    """
    Current timezone-aware UTC datetime.
    Always use this instead of datetime.utcnow() or datetime.now().
    """
    return datetime.now(timezone.utc)


def system_timezone():
    tz_name = current_app.config.get('SYSTEM_TIMEZONE', 'UTC')
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        current_app.logger.warning(f"Unknown SYSTEM_TIMEZONE '{tz_name}', falling back to UTC")
        return pytz.UTC


def local_now() -> datetime:
    """Current time in the system timezone."""
    return utcnow().astimezone(system_timezone())


def local_today() -> date:
    return local_now().date()


def day_bounds_utc(day: date):
    """
    UTC [start, end) of a local calendar day.

    Used by "already sent today" queries so the boundary follows the system
    timezone rather than the database server's.
    """
    tz = system_timezone()
    start_local = tz.localize(datetime.combine(day, time.min))
    end_local = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)
