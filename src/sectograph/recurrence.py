"""
Recurrence expansion: turns a repeating event into concrete occurrences.
"""

import logging
from dataclasses import replace
from datetime import datetime
from datetime import timedelta

from dateutil.relativedelta import relativedelta

from sectograph.models import Event

logger = logging.getLogger(__name__)

_FIXED_STEPS = {
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
}


def month_step(start: datetime) -> timedelta:
    """Return the delta from ``start`` to the same day of the following month.

    The day is clamped to the length of the target month (Jan 31 -> Feb 28 or
    Feb 29).  Time of day is kept.
    """
    return (start + relativedelta(months=1)) - start


def repeat_step(event: Event) -> timedelta:
    """Return the interval from ``event.start`` to its next occurrence."""
    if event.repeat == "month":
        return month_step(event.start)
    try:
        return _FIXED_STEPS[event.repeat]
    except KeyError:
        raise ValueError(f"Event does not repeat: {event.repeat!r}") from None


def expand(
    event: Event,
    window_start: datetime,
    window_end: datetime,
    occurrences: list[Event],
) -> list[Event]:
    """Append the repeats of ``event`` that overlap the window to ``occurrences``.

    The stored occurrence itself is not emitted, only the ones after it.
    Every emitted copy has ``repeat='never'`` and carries the original rule in
    ``check_repeat``.  Stepping walks from the stored start, so occurrences
    ending before ``window_start`` are skipped rather than emitted.
    Returns ``occurrences`` for convenience.
    """
    if not event.is_repeating:
        return occurrences

    step = repeat_step(event)
    candidate = replace(
        event,
        check_repeat=event.repeat,
        repeat="never",
        start_angle=None,
        end_angle=None,
    ).shifted(step)

    emitted = 0
    while candidate.start <= window_end:
        if candidate.end >= window_start:
            occurrences.append(replace(candidate))
            emitted += 1
        if event.repeat == "month":
            step = month_step(candidate.start)
        candidate = candidate.shifted(step)

    logger.debug(
        "Expanded %s (%s) into %d occurrence(s)", event.id, event.repeat, emitted
    )
    return occurrences
