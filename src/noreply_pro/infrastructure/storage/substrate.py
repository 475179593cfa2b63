"""
Key-Value Substrates.

Synchronous string key-value backends underneath the document store.
Every backend reports failures as SubstrateError so callers never see
backend-specific exceptions.
"""

import os
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from noreply_pro.config import StorageSettings
from noreply_pro.core.exceptions import ConfigurationError, SubstrateError
from noreply_pro.infrastructure.logging import get_logger


logger = get_logger(__name__)


class Substrate(ABC):
    """Synchronous key-value persistence with string keys and values."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Return the stored value, or None if the key is absent.

        Raises UnicodeDecodeError if the stored bytes are not valid text.
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key. Removing an absent key is a no-op."""

    @abstractmethod
    def keys(self) -> List[str]:
        """List stored keys."""

    def contains(self, key: str) -> bool:
        return self.get(key) is not None

    def close(self) -> None:
        """Release any held resources."""


class MemorySubstrate(Substrate):
    """Process-local dictionary substrate, used for tests and demos."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._data)


class FileSubstrate(Substrate):
    """
    One JSON file per key inside a data directory.

    Writes go to a temporary file in the same directory and are moved
    into place with os.replace, so readers see either the old or the
    new value, never a partial one.
    """

    SUFFIX = ".json"

    def __init__(self, directory: str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise SubstrateError(key, "resolve", "invalid key")
        return self._directory / f"{key}{self.SUFFIX}"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise SubstrateError(key, "get", str(e)) from e

    def contains(self, key: str) -> bool:
        return self._path(key).is_file()

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_name = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._directory, prefix=f".{key}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise SubstrateError(key, "set", str(e)) from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise SubstrateError(key, "remove", str(e)) from e

    def keys(self) -> List[str]:
        if not self._directory.is_dir():
            return []
        return sorted(
            path.name[:-len(self.SUFFIX)]
            for path in self._directory.glob(f"*{self.SUFFIX}")
            if not path.name.startswith(".")
        )


class SqliteSubstrate(Substrate):
    """
    Single-table SQLite substrate.

    Use ":memory:" for an in-memory database. The connection is shared
    between threads and serialized with a lock.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = Lock()

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS kv_store ("
                " key TEXT PRIMARY KEY,"
                " value TEXT NOT NULL)"
            )
            self._conn.commit()
            logger.info(
                "Opened SQLite substrate",
                extra={"extra_fields": {"db_path": self.db_path}}
            )
        return self._conn

    def _execute(self, key: str, operation: str, sql: str, params: tuple) -> List[tuple]:
        with self._lock:
            try:
                conn = self._get_connection()
                with conn:
                    rows = conn.execute(sql, params).fetchall()
                return rows
            except (sqlite3.Error, OSError) as e:
                raise SubstrateError(key, operation, str(e)) from e

    def get(self, key: str) -> Optional[str]:
        rows = self._execute(key, "get", "SELECT value FROM kv_store WHERE key = ?", (key,))
        return rows[0][0] if rows else None

    def set(self, key: str, value: str) -> None:
        self._execute(
            key,
            "set",
            "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
            (key, value),
        )

    def remove(self, key: str) -> None:
        self._execute(key, "remove", "DELETE FROM kv_store WHERE key = ?", (key,))

    def keys(self) -> List[str]:
        rows = self._execute("*", "keys", "SELECT key FROM kv_store ORDER BY key", ())
        return [row[0] for row in rows]

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


def create_substrate(storage_settings: StorageSettings) -> Substrate:
    """
    Build the substrate selected by configuration.

    Args:
        storage_settings: Storage section of the application settings.

    Returns:
        A ready-to-use Substrate.

    Raises:
        ConfigurationError: If the backend name is unknown.
    """
    backend = storage_settings.backend

    if backend == "file":
        return FileSubstrate(storage_settings.data_dir)
    if backend == "sqlite":
        return SqliteSubstrate(storage_settings.resolved_sqlite_path)
    if backend == "memory":
        return MemorySubstrate()

    raise ConfigurationError(
        "NOREPLY_STORAGE_BACKEND",
        f"Unknown storage backend: {backend!r} (expected file, sqlite or memory)",
    )
