"""
Progress storage backends.

Two places a UserProgress record can live:
- LocalProgressStore: device-scoped JSON file that behaves like browser local
  storage (string values under string keys; the record sits under one fixed key)
- CloudProgressStore: durable SQLite table with one row per authenticated user,
  holding the serialized record plus denormalized email / display name /
  timestamps for listing

Backends raise StorageError for any I/O or decoding failure; deciding what
to do about it is the caller's job.
"""

import json
import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ailearning.schemas import Identity, LeaderboardEntry, UserProgress

logger = logging.getLogger(__name__)


STORAGE_KEY = "ai_learning_progress"
LOCAL_STORAGE_FILE = "local_storage.json"
DEFAULT_LOCAL_STORAGE_PATH = Path.home() / ".ailearning" / LOCAL_STORAGE_FILE

TABLE_NAME = "user_progress"
PARTITION_KEY = "users"


class StorageError(Exception):
    """A progress store could not read or write a record."""


class ProgressStore(ABC):
    """Whole-record persistence for one learner's progress."""

    name = "store"

    @abstractmethod
    def load(self, identity: Identity) -> Optional[UserProgress]:
        """Return the stored record, or None if there is none."""

    @abstractmethod
    def save(self, identity: Identity, progress: UserProgress) -> None:
        """Overwrite the stored record."""

    @abstractmethod
    def delete(self, identity: Identity) -> None:
        """Remove the stored record if present."""


def _decode_progress(blob: str) -> UserProgress:
    try:
        return UserProgress.model_validate_json(blob)
    except ValidationError as e:
        raise StorageError(f"Stored progress is not a valid record: {e}") from e


# -----------------------------------------------------------------------------
# Local (device) storage
# -----------------------------------------------------------------------------

class LocalProgressStore(ProgressStore):
    """
    Device-scoped key-value file.

    The identity is ignored: whoever uses this device shares the record
    stored under `storage_key`.
    """

    name = "local"

    def __init__(self, path: Optional[Path] = None, storage_key: str = STORAGE_KEY):
        """
        Args:
            path: JSON file holding all keys (default: ~/.ailearning/local_storage.json)
            storage_key: Key the progress record is stored under
        """
        self.path = Path(path) if path else DEFAULT_LOCAL_STORAGE_PATH
        self.storage_key = storage_key

    def _read_items(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                items = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read local storage {self.path}: {e}") from e
        if not isinstance(items, dict):
            raise StorageError(f"Local storage {self.path} is not a key-value object")
        return items

    def _write_items(self, items: dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(items, f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Cannot write local storage {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_items().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        items = self._read_items()
        items[key] = value
        self._write_items(items)

    def remove_item(self, key: str) -> None:
        items = self._read_items()
        if items.pop(key, None) is not None:
            self._write_items(items)

    def load(self, identity: Identity) -> Optional[UserProgress]:
        blob = self.get_item(self.storage_key)
        if not blob:
            return None
        return _decode_progress(blob)

    def save(self, identity: Identity, progress: UserProgress) -> None:
        self.set_item(self.storage_key, progress.model_dump_json())

    def delete(self, identity: Identity) -> None:
        self.remove_item(self.storage_key)


# -----------------------------------------------------------------------------
# Durable (account) storage
# -----------------------------------------------------------------------------

class CloudProgressStore(ProgressStore):
    """
    One row per authenticated user in a SQLite table.

    Rows are keyed by (partition_key, row_key) = ("users", user_id) and
    overwritten whole on every save; the first save's created_at is kept.
    """

    name = "cloud"

    def __init__(self, db_path: Path):
        """
        Args:
            db_path: SQLite database file (created if missing)

        Raises:
            StorageError: If the database can't be created
        """
        self.db_path = Path(db_path)
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.executescript(f"""
                    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                        partition_key TEXT NOT NULL,
                        row_key TEXT NOT NULL,
                        email TEXT NOT NULL DEFAULT '',
                        display_name TEXT NOT NULL DEFAULT '',
                        progress_json TEXT NOT NULL DEFAULT '',
                        last_activity_at TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        PRIMARY KEY (partition_key, row_key)
                    );
                """)
                conn.commit()
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open progress database {self.db_path}: {e}") from e

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def _row_key(identity: Identity) -> str:
        if not identity.user_id:
            raise StorageError("Durable progress storage requires a user id")
        return identity.user_id

    def load(self, identity: Identity) -> Optional[UserProgress]:
        row_key = self._row_key(identity)
        try:
            conn = self._get_connection()
            try:
                row = conn.execute(
                    f"""SELECT progress_json FROM {TABLE_NAME}
                        WHERE partition_key = ? AND row_key = ?""",
                    (PARTITION_KEY, row_key)
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot load progress for user {row_key}: {e}") from e

        if not row or not row["progress_json"]:
            return None
        return _decode_progress(row["progress_json"])

    def save(self, identity: Identity, progress: UserProgress) -> None:
        row_key = self._row_key(identity)
        try:
            conn = self._get_connection()
            try:
                conn.execute(
                    f"""INSERT INTO {TABLE_NAME}
                          (partition_key, row_key, email, display_name, progress_json,
                           last_activity_at, created_at)
                        VALUES (?, ?, ?, ?, ?, ?, ?)
                        ON CONFLICT(partition_key, row_key) DO UPDATE SET
                          email = excluded.email,
                          display_name = excluded.display_name,
                          progress_json = excluded.progress_json,
                          last_activity_at = excluded.last_activity_at""",
                    (
                        PARTITION_KEY,
                        row_key,
                        identity.email,
                        identity.display_name,
                        progress.model_dump_json(),
                        progress.last_activity_at.isoformat(),
                        progress.created_at.isoformat(),
                    )
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot save progress for user {row_key}: {e}") from e

    def delete(self, identity: Identity) -> None:
        row_key = self._row_key(identity)
        try:
            conn = self._get_connection()
            try:
                conn.execute(
                    f"DELETE FROM {TABLE_NAME} WHERE partition_key = ? AND row_key = ?",
                    (PARTITION_KEY, row_key)
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot delete progress for user {row_key}: {e}") from e

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    def get_leaderboard(self, top: int = 10) -> list[LeaderboardEntry]:
        """
        Rank users by completed lessons.

        Scans every row in the users partition, decodes each progress blob
        and counts completed lessons. Ties go to the most recently active
        user. Rows that fail to decode are logged and skipped.

        Args:
            top: Maximum number of entries to return

        Returns:
            Up to `top` entries, best first
        """
        entries: list[LeaderboardEntry] = []
        try:
            conn = self._get_connection()
            try:
                rows = conn.execute(
                    f"""SELECT row_key, email, display_name, progress_json, last_activity_at
                        FROM {TABLE_NAME} WHERE partition_key = ?""",
                    (PARTITION_KEY,)
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Error fetching leaderboard: {e}")
            return entries

        for row in rows:
            if not row["progress_json"]:
                continue
            try:
                progress = _decode_progress(row["progress_json"])
                last_activity = datetime.fromisoformat(row["last_activity_at"])
            except (StorageError, ValueError) as e:
                logger.warning(f"Skipping unreadable progress row for user {row['row_key']}: {e}")
                continue
            entries.append(LeaderboardEntry(
                email=row["email"],
                display_name=row["display_name"],
                completed_lessons=progress.completed_lesson_count(),
                last_activity_at=last_activity,
            ))

        entries.sort(key=lambda e: (e.completed_lessons, e.last_activity_at), reverse=True)
        return entries[:max(top, 0)]
