"""
Pure data models — no file-system or rendering imports.
"""

from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from datetime import datetime
from datetime import timedelta
from pathlib import Path
from typing import Any
from typing import NamedTuple

DEFAULT_CONFIG = Path.home() / ".config/sectograph.conf"
DEFAULT_DATA_DIR = Path.home() / ".local/share/sectograph"

EVENTS_BLOB = "events"
SETTINGS_BLOB = "settings"

REPEAT_VALUES = ("never", "day", "week", "month")
AUTO_DELETE_VALUES = ("never", "day", "week", "month")

DEFAULT_COLOR = "0xffffff"
DEFAULT_AUTO_DELETE = "never"
DEFAULT_COLOR_THEME = "standard"

# Visible horizon of the dial around "now"
LOOK_BEHIND = timedelta(hours=2)
LOOK_AHEAD = timedelta(hours=10)


class SectographError(Exception):
    """Base exception for scheduler errors."""

    pass


class EventValidationError(SectographError):
    """An event record does not have the expected shape."""

    def __init__(self, field_name: str, message: str):
        super().__init__(message)
        self.field = field_name


class SettingsValidationError(SectographError):
    """A settings record does not have the expected shape."""

    pass


class StorageError(SectographError):
    """Reading or writing a persisted blob failed."""

    pass


def parse_instant(value: Any) -> datetime:
    """Parse a stored timestamp into a naive local datetime.

    Accepts datetime objects, ISO-8601 strings (a trailing ``Z`` or an offset
    is converted to local time) and epoch milliseconds.  Raises ValueError or
    TypeError for anything else.
    """
    if isinstance(value, bool):
        raise TypeError("boolean is not a timestamp")
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000)
    elif isinstance(value, str):
        result = datetime.fromisoformat(value.strip())
    else:
        raise TypeError(f"unsupported timestamp type: {type(value).__name__}")
    if result.tzinfo is not None:
        result = result.astimezone().replace(tzinfo=None)
    return result


@dataclass
class Event:
    """One stored event, or one concrete occurrence of it."""

    description: str
    start: datetime
    end: datetime
    color: str = DEFAULT_COLOR
    repeat: str = "never"
    id: str | None = None
    # Display-only, never persisted
    check_repeat: str | None = field(default=None, compare=False)
    start_angle: float | None = field(default=None, compare=False)
    end_angle: float | None = field(default=None, compare=False)

    @property
    def is_repeating(self) -> bool:
        return self.repeat != "never"

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> "Event":
        """Build an Event from a stored record; unknown keys are ignored."""
        return cls(
            description=record["description"],
            start=parse_instant(record["start"]),
            end=parse_instant(record["end"]),
            color=str(record.get("color") or DEFAULT_COLOR),
            repeat=record.get("repeat", "never"),
            id=record.get("id"),
            check_repeat=record.get("checkRepeat"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the persisted JSON shape (transient fields excluded)."""
        return {
            "id": self.id,
            "description": self.description,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "color": self.color,
            "repeat": self.repeat,
        }

    def to_display_dict(self) -> dict[str, Any]:
        """Return the persisted shape plus the display annotations."""
        data = self.to_dict()
        data["checkRepeat"] = self.check_repeat
        data["startAngle"] = self.start_angle
        data["endAngle"] = self.end_angle
        return data

    def shifted(self, delta: timedelta) -> "Event":
        """Return a copy with start and end moved by ``delta``."""
        return replace(self, start=self.start + delta, end=self.end + delta)


@dataclass
class Settings:
    """User preferences singleton."""

    auto_delete: str = DEFAULT_AUTO_DELETE
    color_theme: str = DEFAULT_COLOR_THEME

    def to_dict(self) -> dict[str, str]:
        return {"autoDelete": self.auto_delete, "colorTheme": self.color_theme}


class EventCounts(NamedTuple):
    """Cumulative past/current/future tallies (see past_current_future_counts)."""

    past: int
    current: int
    future: int
