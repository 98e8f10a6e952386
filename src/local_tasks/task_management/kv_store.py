"""Key-value store implementations backing the task slot."""

import logging
import sqlite3
from pathlib import Path

from .config import DEFAULT_KV_TABLE
from .exceptions import QuotaExceededError, StorageError, StorageUnavailableError
from .interfaces import KeyValueStore

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dictionary-backed store.

    Optionally enforces a byte quota over all stored keys and values, and can
    be switched off to simulate a disabled store.
    """

    def __init__(self, quota_bytes: int | None = None) -> None:
        """
        Initialize the store.

        Args:
            quota_bytes: Maximum UTF-8 size of all keys and values (None for unlimited)
        """
        self._items: dict[str, str] = {}
        self.quota_bytes = quota_bytes
        self.enabled = True

    def _check_enabled(self) -> None:
        if not self.enabled:
            raise StorageUnavailableError("Key-value store is disabled")

    def _used_bytes(self, excluding: str | None = None) -> int:
        return sum(
            len(k.encode("utf-8")) + len(v.encode("utf-8"))
            for k, v in self._items.items()
            if k != excluding
        )

    def get_item(self, key: str) -> str | None:
        self._check_enabled()
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check_enabled()
        if self.quota_bytes is not None:
            needed = len(key.encode("utf-8")) + len(value.encode("utf-8"))
            if self._used_bytes(excluding=key) + needed > self.quota_bytes:
                raise QuotaExceededError(
                    f"Writing {needed} bytes to '{key}' exceeds quota of {self.quota_bytes}"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._check_enabled()
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        """Return the stored keys in insertion order."""
        return list(self._items)


class SQLiteKeyValueStore(KeyValueStore):
    """
    SQLite file store with a single key/value table.

    Each method opens its own connection and closes it before returning,
    so the store holds no open handles between calls.
    """

    def __init__(self, db_path: str | Path, table: str = DEFAULT_KV_TABLE) -> None:
        """
        Initialize the store and create its table if missing.

        Args:
            db_path: Path to SQLite database file
            table: Table name holding the key/value rows

        Raises:
            StorageUnavailableError: If the database cannot be created
        """
        self.db_path = Path(db_path)
        self.table = table
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_schema()
        except (OSError, sqlite3.Error) as e:
            raise StorageUnavailableError(
                f"Cannot open key-value store at {self.db_path}: {e}"
            ) from e
        logger.debug(f"SQLite key-value store ready at {self.db_path}")

    def _get_conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path), timeout=30.0)

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def get_item(self, key: str) -> str | None:
        try:
            conn = self._get_conn()
            try:
                cursor = conn.execute(
                    f"SELECT value FROM {self.table} WHERE key = ?", (key,)
                )
                row = cursor.fetchone()
                return row[0] if row else None
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e

    def set_item(self, key: str, value: str) -> None:
        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    f"INSERT OR REPLACE INTO {self.table} (key, value) VALUES (?, ?)",
                    (key, value),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            conn = self._get_conn()
            try:
                conn.execute(f"DELETE FROM {self.table} WHERE key = ?", (key,))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to remove '{key}': {e}") from e
