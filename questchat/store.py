"""Handles persistent snapshot storage for QuestChat profiles.

A thin JSON-file wrapper the host can hand to the coordinator as its
persistence callback. Writes go to a temporary file that replaces the
target, so a crash mid-write never leaves a truncated snapshot behind.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from . import const, data_builders as db
from .exceptions import SnapshotError

if TYPE_CHECKING:
    from .type_defs import Snapshot


class QuestChatStore:
    """Handles persistent storage operations for one QuestChat profile.

    Loading does not migrate: pass the loaded data to
    QuestChatCoordinator.from_snapshot(), which upgrades and validates it.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """Initialize the store.

        Args:
            path: Location of the snapshot JSON file.
        """
        self._path = Path(path)
        self._data: dict[str, Any] = {}  # In-memory copy of the last load/save.

    @staticmethod
    def get_default_structure() -> Snapshot:
        """Return the canonical empty snapshot for a fresh profile."""
        return db.build_default_snapshot()

    def get_storage_path(self) -> str:
        return str(self._path)

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    def load(self) -> dict[str, Any]:
        """Load the snapshot file.

        A missing file yields the default structure.

        Raises:
            SnapshotError: The file exists but does not hold a JSON object.
        """
        const.LOGGER.debug("DEBUG: QuestChatStore: Loading %s", self._path)
        if not self._path.exists():
            const.LOGGER.info("INFO: No existing snapshot found. Initializing new data")
            self._data = dict(self.get_default_structure())
            return self._data

        try:
            existing = json.loads(self._path.read_text(encoding="utf-8"))
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Snapshot file %s is not valid JSON: %s", self._path, err
            )
            raise SnapshotError(None, f"invalid JSON: {err}") from err

        if not isinstance(existing, dict):
            raise SnapshotError(existing)
        self._data = existing
        const.LOGGER.debug(
            "DEBUG: Loaded snapshot with sections: %s", sorted(self._data.keys())
        )
        return self._data

    def save(self, data: Snapshot | dict[str, Any] | None = None) -> bool:
        """Write the snapshot to disk.

        Errors are logged and reported through the return value; they never
        propagate to the caller.

        Args:
            data: Snapshot to store; defaults to the in-memory copy.

        Returns:
            True when the file was written.
        """
        if data is not None:
            self._data = dict(data)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            payload = json.dumps(self._data, indent=2, sort_keys=True)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save snapshot due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._path,
            )
            return False
        except TypeError as err:
            const.LOGGER.error(
                "ERROR: Failed to save snapshot due to non-serializable data: %s",
                err,
            )
            return False
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Failed to save snapshot due to invalid data format: %s",
                err,
            )
            return False
        const.LOGGER.debug("DEBUG: Snapshot saved to %s", self._path)
        return True

    def clear(self) -> bool:
        """Reset the stored snapshot to the default structure."""
        const.LOGGER.warning("WARNING: Clearing all QuestChat data for %s", self._path)
        self._data = dict(self.get_default_structure())
        return self.save()

    def delete(self) -> None:
        """Remove the snapshot file from disk."""
        self._data = {}
        try:
            self._path.unlink(missing_ok=True)
            const.LOGGER.info("INFO: Snapshot file removed: %s", self._path)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove snapshot file %s: %s", self._path, err
            )
