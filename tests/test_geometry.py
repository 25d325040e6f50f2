"""
Unit tests for dial geometry: time → angle mapping, horizon clipping and
tap hit-testing.
"""

import math
from datetime import datetime
from datetime import timedelta

import pytest

from sectograph.geometry import DIAL_CENTER_X
from sectograph.geometry import DIAL_CENTER_Y
from sectograph.geometry import DIAL_HIT_RADIUS
from sectograph.geometry import find_event_at
from sectograph.geometry import is_point_in_sector
from sectograph.geometry import point_angle
from sectograph.geometry import sector_angles_for
from sectograph.geometry import surface_arc
from sectograph.geometry import time_to_angle
from sectograph.models import Event

_DAY = datetime(2026, 3, 4)


def _at(hour: int, minute: int = 0) -> datetime:
    return _DAY.replace(hour=hour, minute=minute)


def _event(start: datetime, end: datetime) -> Event:
    return Event(description="Dial", start=start, end=end)


def _point_at(angle: float, distance: float = 100) -> tuple[float, float]:
    """Screen coordinates of a point at dial ``angle`` (0° up, clockwise)."""
    rad = math.radians(angle)
    return (
        DIAL_CENTER_X + distance * math.sin(rad),
        DIAL_CENTER_Y - distance * math.cos(rad),
    )


def _hit(x, y, start_angle, end_angle) -> bool:
    return is_point_in_sector(
        x, y, DIAL_CENTER_X, DIAL_CENTER_Y, DIAL_HIT_RADIUS, start_angle, end_angle
    )


# ---------------------------------------------------------------------------
# TestTimeToAngle
# ---------------------------------------------------------------------------


class TestTimeToAngle:
    @pytest.mark.parametrize(
        ("hour", "minute", "expected"),
        [
            (0, 0, 0),
            (3, 0, 90),
            (6, 0, 180),
            (9, 30, 285),
            (12, 0, 0),
            (18, 0, 180),
            (23, 59, 359.5),
        ],
    )
    def test_half_degree_per_minute(self, hour, minute, expected):
        assert time_to_angle(_at(hour, minute)) == expected

    def test_seconds_are_ignored(self):
        assert time_to_angle(_at(6).replace(second=59)) == 180

    def test_always_below_full_turn(self):
        moment = _DAY
        while moment < _DAY + timedelta(days=1):
            assert 0 <= time_to_angle(moment) < 360
            moment += timedelta(minutes=7)


# ---------------------------------------------------------------------------
# TestSectorAngles
# ---------------------------------------------------------------------------


class TestSectorAngles:
    def test_plain_sector(self):
        assert sector_angles_for(_event(_at(3), _at(6))) == (90, 180)

    def test_sector_across_top_gets_negative_start(self):
        """11:00–13:00 crosses 12 o'clock: 330° becomes -30°."""
        assert sector_angles_for(_event(_at(11), _at(13))) == (-30, 30)

    def test_start_clipped_to_two_hours_ago(self):
        now = _at(12)
        # Started 4h ago → drawn from 10:00 (300°)
        assert sector_angles_for(_event(_at(8), _at(11)), now) == (300, 330)

    def test_end_clipped_to_ten_hours_ahead(self):
        now = _at(12)
        # Ends 13h from now → drawn up to 22:00 (300°)
        end = _at(12) + timedelta(hours=13)
        assert sector_angles_for(_event(_at(13), end), now) == (30, 300)

    def test_event_spanning_whole_horizon_is_full_turn(self):
        """Both edges clip to the 300° mark, so the sector is the whole dial."""
        now = _at(12)
        start_angle, end_angle = sector_angles_for(_event(_at(0), _at(23, 59)), now)
        assert (start_angle, end_angle) == (0, 360)

        for angle in (0, 90, 180, 280, 299, 300, 301, 359):
            assert _hit(*_point_at(angle), start_angle, end_angle), angle

    def test_single_clip_landing_on_same_mark_is_not_full_turn(self):
        # Only the start clips (to 10:00); the event ends at 10:00 too
        now = _at(12)
        assert sector_angles_for(_event(_at(8), _at(10)), now) == (300, 300)

    def test_no_clipping_inside_horizon(self):
        now = _at(12)
        assert sector_angles_for(_event(_at(11), _at(13)), now) == (-30, 30)

    def test_no_clipping_without_now(self):
        """Without ``now`` the raw times are used even for long events."""
        assert sector_angles_for(_event(_at(1), _at(5))) == (30, 150)


# ---------------------------------------------------------------------------
# TestPointInSector
# ---------------------------------------------------------------------------


class TestPointInSector:
    def test_point_angle_cardinal_directions(self):
        assert point_angle(240, 140, 240, 240) == pytest.approx(0)
        assert point_angle(340, 240, 240, 240) == pytest.approx(90)
        assert point_angle(240, 340, 240, 240) == pytest.approx(180)
        assert point_angle(140, 240, 240, 240) == pytest.approx(270)

    def test_outside_radius_always_false(self):
        assert _hit(240, 0, 0, 360) is False
        assert _hit(240, 0, 300, 60) is False
        assert _hit(*_point_at(45, distance=DIAL_HIT_RADIUS + 1), -90, 90) is False

    def test_on_radius_is_inside(self):
        assert _hit(240, 240 - DIAL_HIT_RADIUS, 0, 90) is True

    def test_non_wrapping_sector(self):
        assert _hit(*_point_at(90), 0, 120) is True
        assert _hit(*_point_at(270), 0, 120) is False

    def test_negative_start_sector(self):
        """(-30, 30) covers the top of the dial on both sides of 0°."""
        assert _hit(*_point_at(0), -30, 30) is True
        assert _hit(*_point_at(350), -30, 30) is True
        assert _hit(*_point_at(20), -30, 30) is True
        assert _hit(*_point_at(315), -30, 30) is False
        assert _hit(*_point_at(45), -30, 30) is False

    def test_wrapping_sector(self):
        """start > end: the sector runs through 0°."""
        assert _hit(*_point_at(0), 300, 60) is True
        assert _hit(*_point_at(315), 300, 60) is True
        assert _hit(*_point_at(90), 300, 60) is False


# ---------------------------------------------------------------------------
# TestSurfaceHelpers
# ---------------------------------------------------------------------------


class TestSurfaceHelpers:
    def test_surface_arc_shifts_by_quarter_turn(self):
        assert surface_arc(30, 90) == (-60, 0)
        assert surface_arc(-30, 30) == (-120, -60)

    def test_find_event_at_returns_hits_in_order(self):
        morning = _event(_at(3), _at(6))
        morning.start_angle, morning.end_angle = 90, 180
        top = _event(_at(11), _at(13))
        top.start_angle, top.end_angle = -30, 30
        unannotated = _event(_at(3), _at(6))

        assert find_event_at(*_point_at(120), [morning, top, unannotated]) == [morning]
        assert find_event_at(*_point_at(10), [morning, top, unannotated]) == [top]
        assert find_event_at(*_point_at(250), [morning, top]) == []
