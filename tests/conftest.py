"""
Shared pytest fixtures and event-record helpers.
"""

import json
from datetime import datetime
from datetime import timedelta

import pytest

from sectograph.models import EVENTS_BLOB
from sectograph.models import SETTINGS_BLOB
from sectograph.service import EventService
from sectograph.settings import SettingsStore
from tests.fake_store import FakeFileStore

# Wednesday; its week runs from Mon 2026-03-02 to Mon 2026-03-09
NOW = datetime(2026, 3, 4, 12, 0)


def make_record(
    event_id: str,
    start: datetime,
    duration: timedelta = timedelta(hours=1),
    description: str = "Test Event",
    repeat: str = "never",
    color: str = "0x2E8B57",
) -> dict:
    """Return a stored event record in its persisted JSON shape."""
    return {
        "id": event_id,
        "description": description,
        "start": start.isoformat(),
        "end": (start + duration).isoformat(),
        "color": color,
        "repeat": repeat,
    }


def stored_events(file_store: FakeFileStore) -> list:
    """Decode the events blob of ``file_store``."""
    content = file_store.blob(EVENTS_BLOB)
    return json.loads(content) if content else []


def seed(file_store: FakeFileStore, records: list, auto_delete: str = "never") -> None:
    file_store.write_file(EVENTS_BLOB, json.dumps(records))
    file_store.write_file(
        SETTINGS_BLOB, json.dumps({"autoDelete": auto_delete, "colorTheme": "standard"})
    )
    file_store.reset_counters()


@pytest.fixture
def file_store():
    return FakeFileStore()


@pytest.fixture
def settings_store(file_store):
    return SettingsStore(file_store)


@pytest.fixture
def service(file_store, settings_store):
    return EventService(file_store, settings_store, clock=lambda: NOW)
