"""
Timezone Utilities for the loadshedding engine

Centralised timezone handling so that outage windows, notification checks
and persisted timestamps all use the configured household timezone.
"""

import pytz
from datetime import datetime, timedelta
from typing import Optional
import logging

# Global logger
log = logging.getLogger(__name__)

# Global timezone variable (will be initialized from config)
CONFIGURED_TZ = None
UTC = pytz.UTC
_WARNING_LOGGED = False  # Track if we've already logged the warning

def initialize_timezones(configured_timezone: str = "Africa/Johannesburg"):
    """
    Initialize timezone settings from configuration.
    This should be called once at application startup.

    Args:
        configured_timezone: The timezone string from config (e.g., "Africa/Johannesburg")
    """
    global CONFIGURED_TZ, _WARNING_LOGGED

    try:
        CONFIGURED_TZ = pytz.timezone(configured_timezone)
        log.info(f"Configured timezone set to: {configured_timezone}")
        _WARNING_LOGGED = False
    except pytz.UnknownTimeZoneError as e:
        log.error(f"Failed to initialize timezones: {e}")
        # Fallback to UTC
        CONFIGURED_TZ = UTC

def get_configured_timezone():
    """Get the configured timezone object."""
    global _WARNING_LOGGED
    if CONFIGURED_TZ is None:
        if not _WARNING_LOGGED:
            log.warning("Timezones not initialized, using UTC. Timezones will be initialized at application startup.")
            _WARNING_LOGGED = True
        return UTC
    return CONFIGURED_TZ

def now_configured() -> datetime:
    """Get current time in configured timezone."""
    return datetime.now(get_configured_timezone())

def now_configured_iso() -> str:
    """Get current time in configured timezone as ISO string."""
    return now_configured().isoformat()

def to_configured(dt: datetime) -> datetime:
    """
    Convert any datetime to configured timezone.

    Args:
        dt: datetime object (with or without timezone info)

    Returns:
        datetime object in configured timezone
    """
    if dt.tzinfo is None:
        # No timezone info, assume it's already configured wall time
        return get_configured_timezone().localize(dt)

    return dt.astimezone(get_configured_timezone())

def attach_timezone(naive: datetime, tzinfo) -> datetime:
    """
    Attach ``tzinfo`` to a naive wall-clock datetime.

    pytz zones must go through ``localize`` so the correct UTC offset is
    picked for that date; any other tzinfo is attached directly. A ``None``
    tzinfo leaves the datetime naive.
    """
    if tzinfo is None:
        return naive
    if hasattr(tzinfo, "localize"):
        return tzinfo.localize(naive)
    return naive.replace(tzinfo=tzinfo)

def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end`` (floored, may be negative)."""
    return int((end - start) // timedelta(minutes=1))

def format_time_until(start: datetime, now: Optional[datetime] = None) -> str:
    """
    Human readable countdown used in notes and the CLI summary.

    Returns "In progress" once ``start`` has passed.
    """
    if now is None:
        now = now_configured()
    diff = start - now
    if diff <= timedelta(0):
        return "In progress"
    hours, remainder = divmod(int(diff.total_seconds()), 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes} minutes"
