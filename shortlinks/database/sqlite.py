"""SQLite implementation of the link store."""

import os
import asyncio
import logging
import sqlite3
import tempfile
import threading
from typing import Any, Callable, List, Optional, Tuple

from .base import LinkStoreBase
from ..errors import StoreAccessFailure, StoreOpenFailure


class SQLiteLinkStore(LinkStoreBase):
    """Link store kept in a single SQLite file inside the store directory.

    All sqlite3 calls are blocking; they run in worker threads through
    ``asyncio.to_thread``. One connection is shared by every task and guarded by
    a lock, so the store needs no external synchronization.
    """

    DB_FILENAME = "links.sqlite3"

    SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS links (
        key BLOB PRIMARY KEY,
        value BLOB NOT NULL
    ) WITHOUT ROWID;
    """

    def __init__(
        self,
        location: str,
        conn: sqlite3.Connection,
        logger: Optional[logging.Logger] = None,
    ):
        """Wrap an open connection. Use ``SQLiteLinkStore.open`` instead.

        Args:
            location: Store directory
            conn: Connection created with check_same_thread=False
            logger: Optional logger instance
        """
        super().__init__(location)
        self.logger = logger or logging.getLogger(__name__)
        self.path = os.path.join(location, self.DB_FILENAME)
        self._conn: Optional[sqlite3.Connection] = conn
        self._lock = threading.Lock()

    @classmethod
    async def open(
        cls,
        location: Optional[str] = None,
        busy_timeout_seconds: float = 30.0,
        logger: Optional[logging.Logger] = None,
    ) -> "SQLiteLinkStore":
        """Open or create a store.

        Args:
            location: Store directory (a temporary one is created if omitted)
            busy_timeout_seconds: How long to wait on a locked database file
            logger: Optional logger instance

        Returns:
            Open store

        Raises:
            StoreOpenFailure: If the directory is inaccessible or the file is not a valid store
        """
        logger = logger or logging.getLogger(__name__)

        if location is None:
            logger.warning(
                "A store location was not provided. A temporary folder will be used; "
                "if this is a mistake, specify a location instead. "
                "Data may not survive a restart."
            )
            try:
                location = await asyncio.to_thread(tempfile.mkdtemp, prefix="shortlinks-")
            except OSError as e:
                raise StoreOpenFailure(f"cannot create temporary store directory: {e}") from e

        location = os.fspath(location)
        conn = await asyncio.to_thread(cls._connect, location, busy_timeout_seconds)

        store = cls(location, conn, logger=logger)
        logger.info(f"Link store opened at {store.path}")
        return store

    @classmethod
    def _connect(cls, location: str, busy_timeout_seconds: float) -> sqlite3.Connection:
        try:
            os.makedirs(location, exist_ok=True)
        except OSError as e:
            raise StoreOpenFailure(f"cannot access store directory {location}: {e}") from e

        path = os.path.join(location, cls.DB_FILENAME)
        try:
            conn = sqlite3.connect(path, timeout=busy_timeout_seconds, check_same_thread=False)
        except sqlite3.Error as e:
            raise StoreOpenFailure(f"cannot open store file {path}: {e}") from e

        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=FULL")
            conn.executescript(cls.SCHEMA_SQL)
            conn.commit()

            columns = [row[1] for row in conn.execute("PRAGMA table_info(links)")]
            if columns != ["key", "value"]:
                raise StoreOpenFailure(f"incompatible store schema in {path}: columns {columns}")
        except sqlite3.Error as e:
            conn.close()
            raise StoreOpenFailure(f"store file {path} is corrupt or incompatible: {e}") from e
        except StoreOpenFailure:
            conn.close()
            raise

        return conn

    async def _run(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking operation on the shared connection in a worker thread."""
        return await asyncio.to_thread(self._call, operation, func, *args)

    def _call(self, operation: str, func: Callable[..., Any], *args: Any) -> Any:
        with self._lock:
            if self._conn is None:
                raise StoreAccessFailure(f"{operation} failed: store at {self.location} is closed")
            try:
                return func(self._conn, *args)
            except sqlite3.Error as e:
                self.logger.error(f"Store {operation} failed: {e}")
                raise StoreAccessFailure(f"{operation} failed: {e}") from e

    @staticmethod
    def _check_key(key: bytes) -> bytes:
        if not isinstance(key, (bytes, bytearray, memoryview)):
            raise TypeError(f"store keys must be bytes, got {type(key).__name__}")
        return bytes(key)

    @staticmethod
    def _insert(conn: sqlite3.Connection, key: bytes, value: bytes) -> None:
        with conn:
            conn.execute(
                """
                INSERT INTO links (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (key, value),
            )

    @staticmethod
    def _insert_if_absent(conn: sqlite3.Connection, key: bytes, value: bytes) -> bool:
        with conn:
            cur = conn.execute(
                """
                INSERT INTO links (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO NOTHING
                """,
                (key, value),
            )
        return cur.rowcount == 1

    @staticmethod
    def _get(conn: sqlite3.Connection, key: bytes) -> Optional[bytes]:
        row = conn.execute("SELECT value FROM links WHERE key = ?", (key,)).fetchone()
        return bytes(row[0]) if row else None

    @staticmethod
    def _contains(conn: sqlite3.Connection, key: bytes) -> bool:
        return conn.execute("SELECT 1 FROM links WHERE key = ?", (key,)).fetchone() is not None

    @staticmethod
    def _count(conn: sqlite3.Connection) -> int:
        return conn.execute("SELECT COUNT(*) FROM links").fetchone()[0]

    @staticmethod
    def _scan(
        conn: sqlite3.Connection,
        limit: int,
        start_after: Optional[bytes],
    ) -> List[Tuple[bytes, bytes]]:
        if start_after is None:
            rows = conn.execute(
                "SELECT key, value FROM links ORDER BY key LIMIT ?", (limit,)
            ).fetchall()
        else:
            rows = conn.execute(
                "SELECT key, value FROM links WHERE key > ? ORDER BY key LIMIT ?",
                (start_after, limit),
            ).fetchall()
        return [(bytes(k), bytes(v)) for k, v in rows]

    async def insert(self, key: bytes, value: bytes) -> None:
        await self._run("insert", self._insert, self._check_key(key), bytes(value))

    async def insert_if_absent(self, key: bytes, value: bytes) -> bool:
        return await self._run("insert", self._insert_if_absent, self._check_key(key), bytes(value))

    async def get(self, key: bytes) -> Optional[bytes]:
        return await self._run("get", self._get, self._check_key(key))

    async def contains(self, key: bytes) -> bool:
        return await self._run("lookup", self._contains, self._check_key(key))

    async def count(self) -> int:
        return await self._run("count", self._count)

    async def scan(
        self,
        limit: int = 100,
        start_after: Optional[bytes] = None,
    ) -> List[Tuple[bytes, bytes]]:
        if start_after is not None:
            start_after = self._check_key(start_after)
        return await self._run("scan", self._scan, limit, start_after)

    async def health_check(self) -> bool:
        """Check if the store answers queries.

        Returns:
            True if healthy, False otherwise
        """
        try:
            await self._run("health check", lambda conn: conn.execute("SELECT 1").fetchone())
            return True
        except StoreAccessFailure as e:
            self.logger.error(f"Health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        await asyncio.to_thread(self._close)

    def _close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
        self.logger.debug(f"Closed link store at {self.path}")
