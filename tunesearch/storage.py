"""Key-value persistence shared by the result cache and the search history."""

import asyncio
import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from .errors import StorageError

logger = logging.getLogger(__name__)

CACHE_NAMESPACE = "cache:"
HISTORY_NAMESPACE = "history:"
SESSION_NAMESPACE = "session:"


class KeyValueStore(ABC):
    """Async JSON key-value store.

    Values must be JSON-serializable. Backend failures raise StorageError.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    async def put(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    async def keys(self, prefix: str = "") -> List[str]:
        pass

    async def delete_prefix(self, prefix: str) -> int:
        """Delete every key under ``prefix`` and return how many were removed."""
        removed = 0
        for key in await self.keys(prefix):
            if await self.delete(key):
                removed += 1
        return removed

    async def clear_session(self) -> int:
        """Drop locally stored session state (tokens, user info)."""
        removed = await self.delete_prefix(SESSION_NAMESPACE)
        logger.info(f"Cleared {removed} session keys")
        return removed

    async def close(self) -> None:
        pass


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError) as e:
        raise StorageError(f"Value for key '{key}' is not JSON-serializable: {e}") from e


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise StorageError(f"Corrupted value stored under '{key}': {e}") from e


class MemoryStore(KeyValueStore):
    """In-process store; values are kept serialized like the persistent backend."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return None if raw is None else _decode(key, raw)

    async def put(self, key: str, value: Any) -> None:
        self._data[key] = _encode(key, value)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def keys(self, prefix: str = "") -> List[str]:
        return [key for key in self._data if key.startswith(prefix)]


class SQLiteStore(KeyValueStore):
    """SQLite-based persistent store."""

    def __init__(self, db_path: str, table_name: str = "kv_store"):
        self.db_path = db_path
        self.table_name = table_name
        self._lock = asyncio.Lock()
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_database(self):
        """Initialize store schema."""
        try:
            with self._connect() as conn:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {self.table_name} (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """
                )
        except sqlite3.Error as e:
            raise StorageError(f"Cannot initialize store at {self.db_path}: {e}") from e

    async def _run(self, func, *args):
        async with self._lock:
            try:
                return await asyncio.to_thread(func, *args)
            except sqlite3.Error as e:
                logger.error(f"SQLite store error: {e}")
                raise StorageError(f"SQLite store error: {e}") from e

    def _get_sync(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT value FROM {self.table_name} WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def _put_sync(self, key: str, raw: str) -> None:
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT OR REPLACE INTO {self.table_name} (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
            """,
                (key, raw),
            )

    def _delete_sync(self, key: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(f"DELETE FROM {self.table_name} WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def _keys_sync(self, prefix: str) -> List[str]:
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT key FROM {self.table_name} WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
                (escaped + "%",),
            ).fetchall()
        return [row[0] for row in rows]

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._run(self._get_sync, key)
        return None if raw is None else _decode(key, raw)

    async def put(self, key: str, value: Any) -> None:
        await self._run(self._put_sync, key, _encode(key, value))

    async def delete(self, key: str) -> bool:
        return await self._run(self._delete_sync, key)

    async def keys(self, prefix: str = "") -> List[str]:
        return await self._run(self._keys_sync, prefix)


def create_store(backend: str, path: str = "") -> KeyValueStore:
    """Build the configured store backend."""
    if backend == "memory":
        return MemoryStore()
    if backend == "sqlite":
        return SQLiteStore(path)
    raise ValueError(f"Unknown storage backend: {backend}")
