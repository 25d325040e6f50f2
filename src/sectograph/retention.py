"""
Retention policy for ended, non-repeating events.
"""

from datetime import datetime
from datetime import timedelta

from sectograph.models import Event

RETENTION_PERIODS = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=31),
}


def should_purge(event: Event, auto_delete: str, now: datetime) -> bool:
    """Return True if ``event`` ended longer ago than the ``auto_delete`` grace period.

    Repeating events are never purged, and ``never`` (or any unknown policy)
    keeps everything.  The boundary is exclusive: an event that ended exactly
    one period ago is kept.
    """
    if event.is_repeating:
        return False
    period = RETENTION_PERIODS.get(auto_delete)
    if period is None:
        return False
    return now > event.end and now - event.end > period
