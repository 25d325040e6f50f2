"""
Unit tests for the retention policy predicate.
"""

from datetime import datetime
from datetime import timedelta

import pytest

from sectograph.models import Event
from sectograph.retention import should_purge

NOW = datetime(2026, 3, 4, 12, 0)


def _ended(ago: timedelta, repeat: str = "never") -> Event:
    end = NOW - ago
    return Event(description="Old", start=end - timedelta(hours=1), end=end, repeat=repeat)


class TestShouldPurge:
    def test_day_boundary_is_exclusive(self):
        assert should_purge(_ended(timedelta(hours=24, milliseconds=1)), "day", NOW) is True
        assert should_purge(_ended(timedelta(hours=24)), "day", NOW) is False

    @pytest.mark.parametrize(
        ("policy", "period"),
        [("day", timedelta(days=1)), ("week", timedelta(days=7)), ("month", timedelta(days=31))],
    )
    def test_periods(self, policy, period):
        assert should_purge(_ended(period + timedelta(seconds=1)), policy, NOW) is True
        assert should_purge(_ended(period - timedelta(seconds=1)), policy, NOW) is False

    def test_never_keeps_everything(self):
        assert should_purge(_ended(timedelta(days=3650)), "never", NOW) is False

    def test_unknown_policy_keeps_everything(self):
        assert should_purge(_ended(timedelta(days=3650)), "fortnight", NOW) is False

    def test_repeating_events_are_never_purged(self):
        for repeat in ("day", "week", "month"):
            assert should_purge(_ended(timedelta(days=365), repeat), "day", NOW) is False

    def test_future_events_are_kept(self):
        assert should_purge(_ended(-timedelta(days=2)), "day", NOW) is False
