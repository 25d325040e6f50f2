"""
EventService — CRUD over the event collection plus the derived dial views.
"""

import json
import logging
import random
import string
import time
from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import replace
from datetime import date
from datetime import datetime
from datetime import timedelta
from typing import Any

from sectograph.geometry import sector_angles_for
from sectograph.models import EVENTS_BLOB
from sectograph.models import LOOK_AHEAD
from sectograph.models import LOOK_BEHIND
from sectograph.models import REPEAT_VALUES
from sectograph.models import Event
from sectograph.models import EventCounts
from sectograph.models import EventValidationError
from sectograph.models import SectographError
from sectograph.models import StorageError
from sectograph.models import parse_instant
from sectograph.recurrence import expand
from sectograph.retention import should_purge
from sectograph.settings import SettingsStore
from sectograph.store import FileStore

logger = logging.getLogger(__name__)

_BASE36_DIGITS = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def generate_event_id() -> str:
    """Return base-36 epoch milliseconds followed by a random base-36 suffix."""
    millis = time.time_ns() // 1_000_000
    suffix = "".join(random.choices(_BASE36_DIGITS, k=_ID_SUFFIX_LENGTH))
    return _to_base36(millis) + suffix


def check_event_fields(record: Any) -> None:
    """Raise EventValidationError unless ``record`` has a valid event shape.

    ``record`` may be a stored mapping or an Event.  The raised error's
    ``field`` attribute names the first offending field.
    """
    if isinstance(record, Event):
        record = {
            "description": record.description,
            "start": record.start,
            "end": record.end,
            "repeat": record.repeat,
        }
    if not isinstance(record, dict):
        raise EventValidationError("event", "Event must be a valid object")

    description = record.get("description")
    if not isinstance(description, str) or not description.strip():
        raise EventValidationError("description", "Invalid description: must be a non-empty string")

    for field_name in ("start", "end"):
        try:
            parse_instant(record.get(field_name))
        except (TypeError, ValueError, OverflowError, OSError):
            raise EventValidationError(
                field_name, f"Invalid {field_name}: must be a valid timestamp"
            ) from None

    if record.get("repeat") not in REPEAT_VALUES:
        raise EventValidationError(
            "repeat", f"Invalid repeat: must be one of {', '.join(REPEAT_VALUES)}"
        )


def is_actual(event: Event, now: datetime) -> bool:
    """Return True if ``event`` belongs on the dial at ``now``.

    That is: it starts within the next 10 hours, ended within the last
    2 hours, or is in progress.
    """
    starts_soon = event.start >= now and event.start - now <= LOOK_AHEAD
    ended_recently = now >= event.end and now - event.end <= LOOK_BEHIND
    in_progress = event.start <= now <= event.end
    return starts_soon or ended_recently or in_progress


class EventService:
    """Event collection operations over a FileStore.

    Every mutation reads the whole collection, builds the next one in memory,
    writes it back in a single call and then rebuilds ``actual_events``.
    """

    def __init__(
        self,
        file_store: FileStore,
        settings_store: SettingsStore,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.file_store = file_store
        self.settings_store = settings_store
        self.clock = clock
        self.actual_events: list[Event] = []

    # ------------------------------------------------------------------ #
    # Mutations                                                            #
    # ------------------------------------------------------------------ #

    def create(self, event: Event) -> Event:
        """Validate, assign a fresh id and store ``event``; return the stored copy."""
        logger.info("Creating new event...")
        try:
            check_event_fields(event)
            records = self._load_events()
            created = replace(
                self._normalized(event),
                id=self._unique_id(records),
                check_repeat=None,
                start_angle=None,
                end_angle=None,
            )
            records.append(created.to_dict())
            self._save_events(records)
        except SectographError as e:
            logger.error("Create new event failed: %s", e)
            raise
        self._refresh_actual_events()
        logger.info("New event created: %s", created.id)
        return created

    def edit(self, event: Event) -> None:
        """Replace the stored event that has ``event.id``.

        An unknown id leaves the collection unchanged.  Stored records that
        fail validation never match and are written back untouched.
        """
        logger.info("Edit event started: %s", event.id)
        try:
            check_event_fields(event)
            if not event.id:
                raise EventValidationError("id", "Invalid id: edited event must have an id")
            replacement = replace(
                self._normalized(event), check_repeat=None, start_angle=None, end_angle=None
            ).to_dict()
            result = []
            for record in self._load_events():
                if self._is_valid(record) and record.get("id") == event.id:
                    result.append(replacement)
                else:
                    result.append(record)
            self._save_events(result)
        except SectographError as e:
            logger.error("Edit event failed: %s", e)
            raise
        self._refresh_actual_events()
        logger.info("Event edited successfully")

    def delete(self, event_id: str) -> list[Event]:
        """Remove the event with ``event_id`` and return the remaining collection.

        Invalid stored records are dropped along the way.  An unknown id is
        not an error.
        """
        logger.info("Deleting event with ID: %s", event_id)
        try:
            result = [
                record
                for record in self._load_events()
                if self._is_valid(record) and record.get("id") != event_id
            ]
            self._save_events(result)
        except SectographError as e:
            logger.error("Failed to delete event with ID %s: %s", event_id, e)
            raise
        self._refresh_actual_events()
        logger.info("Event deleted successfully")
        return [Event.from_dict(record) for record in result]

    def clear_all(self) -> None:
        """Erase the whole event collection."""
        logger.info("Delete events history init...")
        try:
            self._save_events([])
        except StorageError as e:
            logger.error("Clear history failed: %s", e)
            raise StorageError("Clear history failed") from e
        self.actual_events = []
        logger.info("Clear history successful")

    def auto_delete_events(self) -> None:
        """Apply the retention policy from the settings and persist the result.

        Invalid records are dropped too.  The collection is written back even
        when nothing was removed.
        """
        logger.debug("Starting auto-delete process...")
        auto_delete = self.settings_store.load_settings().auto_delete
        now = self.clock()
        kept = []
        for record in self._load_events():
            if not self._is_valid(record):
                continue
            if should_purge(Event.from_dict(record), auto_delete, now):
                logger.debug("Auto-delete (%s) removed event %s", auto_delete, record.get("id"))
                continue
            kept.append(record)
        try:
            self._save_events(kept)
        except StorageError as e:
            logger.error("Auto-delete events failed: %s", e)
            raise
        logger.debug("Auto-delete process completed")

    # ------------------------------------------------------------------ #
    # Queries                                                              #
    # ------------------------------------------------------------------ #

    def get(self, event_id: str) -> Event | None:
        """Return the stored event with ``event_id``, or None."""
        for record in self._load_events():
            if self._is_valid(record) and record.get("id") == event_id:
                return Event.from_dict(record)
        return None

    def list_for_week(self, reference: date | datetime) -> list[Event]:
        """Return every occurrence in the Monday-based week containing ``reference``.

        Runs the retention sweep first.  Result is sorted by start.
        """
        self.auto_delete_events()
        week_start, week_end = self.week_range(reference)

        occurrences = []
        for record in self._load_events():
            if not self._is_valid(record):
                continue
            event = Event.from_dict(record)
            event.check_repeat = event.repeat
            if week_start <= event.start < week_end:
                occurrences.append(event)
            if event.is_repeating:
                occurrences.extend(
                    occurrence
                    for occurrence in expand(event, week_start, week_end, [])
                    if week_start <= occurrence.start < week_end
                )

        occurrences.sort(key=lambda ev: ev.start)
        return occurrences

    def list_actual(self) -> list[Event]:
        """Run the retention sweep, rebuild the dial view and return it."""
        self.auto_delete_events()
        self._refresh_actual_events()
        return list(self.actual_events)

    @staticmethod
    def week_range(reference: date | datetime) -> tuple[datetime, datetime]:
        """Return ``[Monday 00:00, next Monday 00:00)`` around ``reference``."""
        day = reference.date() if isinstance(reference, datetime) else reference
        monday = datetime.combine(day - timedelta(days=day.weekday()), datetime.min.time())
        return monday, monday + timedelta(days=7)

    @staticmethod
    def past_current_future_counts(
        events: Iterable[Event], now: datetime | None = None
    ) -> EventCounts:
        """Tally events as past, current or future, cumulatively.

        ``current`` includes the past events and ``future`` includes all of
        them, the layout a stacked progress bar consumes directly.
        """
        now = now or datetime.now()
        past = current = future = 0
        for event in events:
            if now > event.end:
                past += 1
            elif event.start > now:
                future += 1
            else:
                current += 1
        return EventCounts(past=past, current=past + current, future=past + current + future)

    # ------------------------------------------------------------------ #
    # Internal helpers                                                     #
    # ------------------------------------------------------------------ #

    def _refresh_actual_events(self) -> None:
        """Rebuild ``actual_events`` for the [now - 2h, now + 10h] horizon.

        Expanded repeats inside the horizon are taken as they are; stored
        events must pass is_actual().  Each entry gets clipped dial angles.
        """
        now = self.clock()
        window_start, window_end = now - LOOK_BEHIND, now + LOOK_AHEAD

        actual = []
        for record in self._load_events():
            if not self._is_valid(record):
                continue
            event = Event.from_dict(record)
            event.check_repeat = event.repeat
            if event.is_repeating:
                for occurrence in expand(event, window_start, window_end, []):
                    actual.append(self._with_angles(occurrence, now))
            if is_actual(event, now):
                actual.append(self._with_angles(event, now))

        actual.sort(key=lambda ev: ev.start)
        self.actual_events = actual
        logger.debug("Actual events loaded: %d", len(actual))

    @staticmethod
    def _with_angles(event: Event, now: datetime) -> Event:
        event.start_angle, event.end_angle = sector_angles_for(event, now)
        return event

    @staticmethod
    def _normalized(event: Event) -> Event:
        return replace(event, start=parse_instant(event.start), end=parse_instant(event.end))

    @staticmethod
    def _is_valid(record: Any) -> bool:
        try:
            check_event_fields(record)
        except EventValidationError as e:
            logger.debug("Skipping invalid event record (%s): %s", e.field, e)
            return False
        return True

    @staticmethod
    def _unique_id(records: list[Any]) -> str:
        taken = {
            record["id"]
            for record in records
            if isinstance(record, dict) and isinstance(record.get("id"), str)
        }
        event_id = generate_event_id()
        while event_id in taken:
            event_id = generate_event_id()
        return event_id

    def _load_events(self) -> list[Any]:
        """Return the raw stored records; any read problem yields an empty list."""
        try:
            content = self.file_store.read_file(EVENTS_BLOB)
            if not content:
                return []
            records = json.loads(content)
        except (StorageError, json.JSONDecodeError) as e:
            logger.error("Upload events failed: %s", e)
            return []
        if not isinstance(records, list):
            logger.error("Upload events failed: stored events are not a list")
            return []
        return records

    def _save_events(self, records: list[Any]) -> None:
        try:
            self.file_store.write_file(EVENTS_BLOB, json.dumps(records, ensure_ascii=False))
        except StorageError as e:
            logger.error("Failed to save events: %s", e)
            raise
        logger.debug("Events successfully saved (%d)", len(records))
