"""
Flat file persistence: one text blob per logical collection.
"""

import logging
import re
import tempfile
from pathlib import Path

from sectograph.models import StorageError

logger = logging.getLogger(__name__)

_BLOB_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class FileStore:
    """Reads and writes named blobs stored as ``<data_dir>/<name>.json``.

    Values are opaque text; callers do their own JSON encoding.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _path(self, name: str) -> Path:
        if not _BLOB_NAME_RE.match(name):
            raise StorageError(f"Invalid blob name: {name!r}")
        return self.data_dir / f"{name}.json"

    def read_file(self, name: str) -> str | None:
        """Return the blob's text, or None if it has never been written."""
        path = self._path(name)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise StorageError(f"{path} is not valid UTF-8: {e}") from e

    def write_file(self, name: str, value: str) -> None:
        """Replace the blob's content with ``value``.

        The text goes to a temporary file in the same directory first and is
        then moved over the old blob, so readers never see a partial write.
        """
        path = self._path(name)
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.data_dir,
                prefix=f".{name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                handle.write(value)
            Path(tmp_name).replace(path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Cannot write {path}: {e}") from e
        logger.debug("Wrote %d byte(s) to %s", len(value), path)
