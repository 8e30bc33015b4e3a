"""
Namespaced key-value storage for per-device client state.
SQLite-backed when persistent storage is available, in-memory otherwise.
"""

import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Optional

from ollie.shared.config import settings
from ollie.shared.exceptions import StorageError
from ollie.shared.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """String key to string value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, key: str, value: str):
        """Store a value, replacing any previous one."""

    @abstractmethod
    def delete(self, key: str):
        """Remove a key if present."""


class InMemoryKeyValueStore(KeyValueStore):
    """Memory-only storage; state lives as long as the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value

    def delete(self, key: str):
        self._data.pop(key, None)


class SqliteKeyValueStore(KeyValueStore):
    """Persistent storage in a single SQLite table."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or settings.storage.db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_database()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open storage at {self.db_path}: {e}") from e

    def _init_database(self):
        """Initialize key-value table."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = sqlite3.connect(str(self.db_path), timeout=5.0)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT value FROM kv WHERE key = ?",
                    (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read {key}: {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str):
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """INSERT INTO kv (key, value, updated_at)
                       VALUES (?, ?, CURRENT_TIMESTAMP)
                       ON CONFLICT(key) DO UPDATE SET
                           value = excluded.value,
                           updated_at = excluded.updated_at""",
                    (key, value)
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str):
        try:
            with self._get_connection() as conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to remove {key}: {e}") from e


def open_store(db_path: Optional[Path] = None) -> KeyValueStore:
    """Open persistent storage, falling back to memory-only storage."""
    try:
        return SqliteKeyValueStore(db_path)
    except StorageError as e:
        logger.warning(f"Persistent storage unavailable, using memory-only storage: {e}")
        return InMemoryKeyValueStore()
