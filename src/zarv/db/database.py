"""Database connection and migration management."""

import asyncio
import logging
import re
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from zarv.exceptions import QuotaExceededError, StorageError, StorageUnavailableError

logger = logging.getLogger(__name__)

_SAVEPOINT_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,63}$")


def _translate(error: sqlite3.Error) -> StorageError:
    """Map a sqlite error onto the storage error taxonomy."""
    if getattr(error, "sqlite_errorcode", None) == sqlite3.SQLITE_FULL:
        return QuotaExceededError(f"Storage quota exceeded: {error}")
    if isinstance(error, sqlite3.IntegrityError):
        return StorageError(f"Storage constraint violated: {error}")
    return StorageUnavailableError(f"Storage operation failed: {error}")


class Database:
    """Storage client owning one aiosqlite connection.

    The client is constructed explicitly at application start and injected
    into repositories; `connect()` and `close()` bound its lifetime.
    """

    def __init__(self, database_path: str, max_page_count: int | None = None) -> None:
        """Initialize database manager.

        Args:
            database_path: Path to SQLite database file (or ":memory:")
            max_page_count: Optional page limit used as storage quota
        """
        self.database_path = database_path
        self.max_page_count = max_page_count
        self.conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._transaction_owner: asyncio.Task[Any] | None = None

    @property
    def is_connected(self) -> bool:
        """Whether the connection is open."""
        return self.conn is not None

    async def connect(self) -> None:
        """Open the connection and apply connection pragmas.

        Raises:
            StorageUnavailableError: If the database cannot be opened
        """
        if self.database_path != ":memory:":
            Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self.conn = await aiosqlite.connect(self.database_path)
            self.conn.row_factory = sqlite3.Row
            await self.conn.execute("PRAGMA foreign_keys = ON")
            if self.max_page_count is not None:
                await self.conn.execute(f"PRAGMA max_page_count = {int(self.max_page_count)}")
        except sqlite3.Error as e:
            logger.error("Failed to open database %s: %s", self.database_path, e)
            self.conn = None
            raise StorageUnavailableError(
                f"Cannot open database {self.database_path}: {e}"
            ) from e

        logger.debug("Database is ready: %s", self.database_path)

    async def close(self) -> None:
        """Close database connection."""
        if self.conn:
            await self.conn.close()
            self.conn = None

    def _owns_transaction(self) -> bool:
        """Whether the current task is inside `transaction()`."""
        owner = self._transaction_owner
        return owner is not None and owner is asyncio.current_task()

    def _require_connection(self) -> aiosqlite.Connection:
        if not self.conn:
            raise StorageUnavailableError("Database not connected")
        return self.conn

    async def execute(
        self, sql: str, parameters: tuple[Any, ...] | dict[str, Any] = ()
    ) -> aiosqlite.Cursor:
        """Execute a SQL statement.

        Args:
            sql: SQL statement
            parameters: Query parameters

        Returns:
            Database cursor

        Raises:
            StorageUnavailableError: If the database is not connected or
                the statement fails
            QuotaExceededError: If the write does not fit in storage
            StorageError: If the statement violates a constraint
        """
        conn = self._require_connection()
        try:
            return await conn.execute(sql, parameters)
        except sqlite3.Error as e:
            raise _translate(e) from e

    async def executemany(self, sql: str, parameters: list[tuple[Any, ...]]) -> None:
        """Execute a SQL statement with multiple parameter sets.

        Args:
            sql: SQL statement
            parameters: List of parameter tuples
        """
        conn = self._require_connection()
        try:
            await conn.executemany(sql, parameters)
        except sqlite3.Error as e:
            raise _translate(e) from e

    async def commit(self) -> None:
        """Commit current transaction."""
        conn = self._require_connection()
        try:
            await conn.commit()
        except sqlite3.Error as e:
            raise _translate(e) from e

    async def _rollback(self) -> None:
        conn = self._require_connection()
        try:
            await conn.rollback()
        except sqlite3.Error as e:
            raise _translate(e) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Context manager for database transactions.

        If already in a transaction, yields without starting a new one so
        that repository calls compose into the caller's transaction.

        Example:
            async with db.transaction():
                await db.execute(...)
        """
        self._require_connection()

        if self._owns_transaction():
            yield
            return

        async with self._write_lock:
            self._transaction_owner = asyncio.current_task()
            try:
                await self.execute("BEGIN")
                try:
                    yield
                    await self.commit()
                except Exception:
                    await self._rollback()
                    raise
            finally:
                self._transaction_owner = None

    @asynccontextmanager
    async def savepoint(self, name: str) -> AsyncIterator[None]:
        """Run a block inside a SAVEPOINT of the current transaction.

        On error only the work done inside the block is undone; the
        enclosing transaction stays open and the error propagates.

        Args:
            name: Savepoint identifier
        """
        if not _SAVEPOINT_NAME.match(name):
            raise ValueError(f"Invalid savepoint name: {name}")
        if not self._owns_transaction():
            raise RuntimeError("savepoint() requires an open transaction")

        await self.execute(f"SAVEPOINT {name}")
        try:
            yield
        except Exception:
            # SQLite may already have rolled back the whole transaction
            if self._require_connection().in_transaction:
                await self.execute(f"ROLLBACK TO SAVEPOINT {name}")
                await self.execute(f"RELEASE SAVEPOINT {name}")
            raise
        await self.execute(f"RELEASE SAVEPOINT {name}")

    async def migrate(self) -> None:
        """Run database migrations."""
        cursor = await self.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
        )
        current_version = 0
        if await cursor.fetchone():
            cursor = await self.execute(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            )
            row = await cursor.fetchone()
            current_version = row[0] if row else 0

        if current_version < 1:
            await self._migrate_v1()

    async def _migrate_v1(self) -> None:
        """Initial database schema migration."""
        async with self.transaction():
            await self.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at DATETIME NOT NULL
                )
            """)

            await self.execute("""
                CREATE TABLE IF NOT EXISTS projects (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT,
                    name TEXT NOT NULL,
                    description TEXT,
                    created_at DATETIME NOT NULL,
                    updated_at DATETIME NOT NULL
                )
            """)
            await self.execute(
                "CREATE INDEX IF NOT EXISTS idx_projects_owner ON projects(owner_id)"
            )

            await self.execute("""
                CREATE TABLE IF NOT EXISTS schemas (
                    id TEXT PRIMARY KEY,
                    project_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT,
                    endpoint_url TEXT,
                    http_method TEXT,
                    definition TEXT NOT NULL CHECK (length(definition) > 0),
                    last_request_body TEXT,
                    created_at DATETIME NOT NULL,
                    updated_at DATETIME NOT NULL,
                    FOREIGN KEY (project_id) REFERENCES projects(id)
                )
            """)
            await self.execute(
                "CREATE INDEX IF NOT EXISTS idx_schemas_project ON schemas(project_id)"
            )

            # Append-only: sequence is the insertion order tiebreak
            await self.execute("""
                CREATE TABLE IF NOT EXISTS schema_versions (
                    sequence INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT UNIQUE NOT NULL,
                    schema_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    description TEXT,
                    endpoint_url TEXT,
                    http_method TEXT,
                    definition TEXT NOT NULL,
                    actor_id TEXT,
                    change_note TEXT,
                    captured_at DATETIME NOT NULL,
                    FOREIGN KEY (schema_id) REFERENCES schemas(id)
                )
            """)
            await self.execute(
                "CREATE INDEX IF NOT EXISTS idx_schema_versions_schema "
                "ON schema_versions(schema_id, captured_at DESC, sequence DESC)"
            )

            await self.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (1, datetime.now(timezone.utc).isoformat()),
            )
