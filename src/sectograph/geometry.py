"""
Dial geometry: clock time to angle conversion and tap hit-testing.

Angles are degrees measured clockwise from the top of the dial.  The dial
turns half a degree per minute, so it wraps every twelve hours, which matches
the [now - 2h, now + 10h] horizon shown on it.
"""

import math
from collections.abc import Iterable
from datetime import datetime

from sectograph.models import LOOK_AHEAD
from sectograph.models import LOOK_BEHIND
from sectograph.models import Event

DEGREES_PER_MINUTE = 0.5

# Device layout of the 480x480 round screen
DIAL_CENTER_X = 240
DIAL_CENTER_Y = 240
DIAL_HIT_RADIUS = 200


def time_to_angle(instant: datetime) -> float:
    """Return the dial angle of the wall-clock time of ``instant``."""
    result = (instant.hour * 60 + instant.minute) * DEGREES_PER_MINUTE
    return result % 360 if result >= 360 else result


def sector_angles_for(event: Event, now: datetime | None = None) -> tuple[float, float]:
    """Return ``(start_angle, end_angle)`` of the sector covering ``event``.

    With ``now`` given the sector is clipped to the visible horizon: a start
    earlier than ``now - 2h`` is drawn from that mark, an end later than
    ``now + 10h`` is drawn up to that mark.

    A sector that crosses the top of the dial gets a negative start angle so
    that ``start_angle <= end_angle`` always describes the short way round.
    An event spanning the whole horizon covers the full dial, ``(0, 360)``.
    """
    start_angle = time_to_angle(event.start)
    end_angle = time_to_angle(event.end)

    if now is not None:
        horizon_start = now - LOOK_BEHIND
        horizon_end = now + LOOK_AHEAD
        clipped_start = event.start < horizon_start
        clipped_end = event.end > horizon_end
        if clipped_start:
            start_angle = time_to_angle(horizon_start)
        if clipped_end:
            end_angle = time_to_angle(horizon_end)
        # Both horizon edges land on the same mark
        if clipped_start and clipped_end and start_angle == end_angle:
            return 0.0, 360.0

    if start_angle > end_angle:
        start_angle -= 360
    return start_angle, end_angle


def point_angle(x: float, y: float, center_x: float, center_y: float) -> float:
    """Return the dial angle of screen point (x, y), in [0, 360)."""
    # Screen y grows downwards, hence (center_y - y)
    angle = 90 - math.degrees(math.atan2(center_y - y, x - center_x))
    if angle < 0:
        angle += 360
    return angle


def is_point_in_sector(
    x: float,
    y: float,
    center_x: float,
    center_y: float,
    radius: float,
    start_angle: float,
    end_angle: float,
) -> bool:
    """Return True if screen point (x, y) falls inside the given dial sector."""
    if math.hypot(x - center_x, y - center_y) > radius:
        return False

    angle = point_angle(x, y, center_x, center_y)
    if start_angle <= end_angle:
        if start_angle < 0 and angle > 270:
            angle -= 360
        return start_angle <= angle <= end_angle
    return angle >= start_angle or angle <= end_angle


def surface_arc(start_angle: float, end_angle: float) -> tuple[float, float]:
    """Convert dial angles to the drawing surface's arc angles (0° at 3 o'clock)."""
    return start_angle - 90, end_angle - 90


def find_event_at(
    x: float,
    y: float,
    events: Iterable[Event],
    center_x: float = DIAL_CENTER_X,
    center_y: float = DIAL_CENTER_Y,
    radius: float = DIAL_HIT_RADIUS,
) -> list[Event]:
    """Return the annotated events whose sector contains the tap at (x, y)."""
    hits = []
    for event in events:
        if event.start_angle is None or event.end_angle is None:
            continue
        if is_point_in_sector(
            x, y, center_x, center_y, radius, event.start_angle, event.end_angle
        ):
            hits.append(event)
    return hits
