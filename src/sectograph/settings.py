"""
Settings persistence on top of the flat file store.
"""

import json
import logging
from typing import Any

from sectograph.models import AUTO_DELETE_VALUES
from sectograph.models import SETTINGS_BLOB
from sectograph.models import Settings
from sectograph.models import SettingsValidationError
from sectograph.models import StorageError
from sectograph.store import FileStore

logger = logging.getLogger(__name__)


def validate_settings(record: Any) -> None:
    """Raise SettingsValidationError unless ``record`` is a valid settings mapping."""
    if not isinstance(record, dict):
        raise SettingsValidationError("Invalid settings: must be an object")
    auto_delete = record.get("autoDelete")
    if not isinstance(auto_delete, str) or auto_delete not in AUTO_DELETE_VALUES:
        raise SettingsValidationError(
            f"Invalid autoDelete: must be one of {', '.join(AUTO_DELETE_VALUES)}"
        )
    if not isinstance(record.get("colorTheme"), str):
        raise SettingsValidationError("Invalid colorTheme: must be a string")


class SettingsStore:
    """Loads and saves the ``{autoDelete, colorTheme}`` settings record."""

    def __init__(self, file_store: FileStore):
        self.file_store = file_store

    def load_settings(self) -> Settings:
        """Return the stored settings, falling back to (and saving) the defaults.

        A missing blob, unreadable blob, corrupt JSON or invalid shape all
        resolve to the defaults; this never raises for read problems.
        """
        logger.debug("Loading settings...")
        try:
            content = self.file_store.read_file(SETTINGS_BLOB)
            if content is None:
                raise SettingsValidationError("No settings stored yet")
            record = json.loads(content)
            validate_settings(record)
        except (StorageError, SettingsValidationError, json.JSONDecodeError) as e:
            logger.warning("Load settings failed (%s); using defaults", e)
            return self._set_default_settings()
        return Settings(auto_delete=record["autoDelete"], color_theme=record["colorTheme"])

    def save_settings(self, settings: Settings) -> None:
        """Validate and persist ``settings``.

        Raises SettingsValidationError for a bad shape and StorageError if the
        write fails.
        """
        record = settings.to_dict()
        validate_settings(record)
        try:
            self.file_store.write_file(SETTINGS_BLOB, json.dumps(record))
        except StorageError as e:
            logger.error("Save settings failed: %s", e)
            raise StorageError("Save settings failed") from e
        logger.info("Settings saved")

    def _set_default_settings(self) -> Settings:
        defaults = Settings()
        try:
            self.save_settings(defaults)
        except StorageError:
            # Still usable in memory; the next load retries the write
            logger.warning("Could not persist default settings")
        return defaults
