"""Tests for database operations."""

import asyncio
import sqlite3
from datetime import datetime, timezone

import pytest

from zarv.db.database import Database
from zarv.exceptions import QuotaExceededError, StorageError, StorageUnavailableError


async def _insert_project(db: Database, project_id: str, description: str = "") -> None:
    now = datetime.now(timezone.utc).isoformat()
    await db.execute(
        "INSERT INTO projects (id, owner_id, name, description, created_at, updated_at) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (project_id, None, "Project", description, now, now),
    )


async def _project_ids(db: Database) -> set[str]:
    cursor = await db.execute("SELECT id FROM projects")
    return {row["id"] for row in await cursor.fetchall()}


class TestDatabase:
    """Test Database class."""

    async def test_database_initialization(self, memory_db: Database):
        """Test database initialization and migration."""
        cursor = await memory_db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        tables = {row["name"] for row in await cursor.fetchall()}

        expected_tables = {"schema_version", "projects", "schemas", "schema_versions"}
        assert expected_tables.issubset(tables), f"Missing tables: {expected_tables - tables}"

    async def test_version_index_exists(self, memory_db: Database):
        cursor = await memory_db.execute(
            "SELECT name FROM sqlite_master WHERE type='index' AND tbl_name='schema_versions'"
        )
        indexes = {row["name"] for row in await cursor.fetchall()}

        assert "idx_schema_versions_schema" in indexes

    async def test_migrate_is_idempotent(self, memory_db: Database):
        await memory_db.migrate()

        cursor = await memory_db.execute("SELECT version FROM schema_version")
        versions = [row["version"] for row in await cursor.fetchall()]
        assert versions == [1]

    async def test_foreign_keys_enabled(self, memory_db: Database):
        """Test that foreign keys are enabled."""
        cursor = await memory_db.execute("PRAGMA foreign_keys")
        result = await cursor.fetchone()

        assert result[0] == 1

    async def test_schema_requires_project(self, memory_db: Database):
        now = datetime.now(timezone.utc).isoformat()

        with pytest.raises(StorageError) as exc_info:
            async with memory_db.transaction():
                await memory_db.execute(
                    "INSERT INTO schemas (id, project_id, name, definition, created_at, updated_at)"
                    " VALUES (?, ?, ?, ?, ?, ?)",
                    ("s1", "missing-project", "User", "z.string()", now, now),
                )

        assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)
        assert not isinstance(exc_info.value, StorageUnavailableError)

    async def test_execute_many(self, memory_db: Database):
        """Test executemany operation."""
        now = datetime.now(timezone.utc).isoformat()
        rows = [(f"p{i}", None, f"Project {i}", None, now, now) for i in range(3)]

        async with memory_db.transaction():
            await memory_db.executemany(
                "INSERT INTO projects (id, owner_id, name, description, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                rows,
            )

        assert await _project_ids(memory_db) == {"p0", "p1", "p2"}


class TestTransactions:
    """Test transactions and savepoints."""

    async def test_transaction_commit(self, memory_db: Database):
        async with memory_db.transaction():
            await _insert_project(memory_db, "committed")

        assert await _project_ids(memory_db) == {"committed"}

    async def test_transaction_rollback(self, memory_db: Database):
        """Test transaction rollback on error."""
        with pytest.raises(ValueError):
            async with memory_db.transaction():
                await _insert_project(memory_db, "rolled-back")
                raise ValueError("Intentional error")

        assert await _project_ids(memory_db) == set()

    async def test_nested_transaction_joins_outer(self, memory_db: Database):
        with pytest.raises(ValueError):
            async with memory_db.transaction():
                async with memory_db.transaction():
                    await _insert_project(memory_db, "inner")
                raise ValueError("Intentional error")

        assert await _project_ids(memory_db) == set()

    async def test_concurrent_transactions_are_serialized(self, memory_db: Database):
        async def insert(project_id: str) -> None:
            async with memory_db.transaction():
                await _insert_project(memory_db, project_id)
                await asyncio.sleep(0)

        await asyncio.gather(insert("first"), insert("second"))

        assert await _project_ids(memory_db) == {"first", "second"}

    async def test_savepoint_rolls_back_only_its_block(self, memory_db: Database):
        # Given: A transaction with a failing savepoint block
        async with memory_db.transaction():
            await _insert_project(memory_db, "kept")
            with pytest.raises(ValueError):
                async with memory_db.savepoint("optional_work"):
                    await _insert_project(memory_db, "discarded")
                    raise ValueError("Intentional error")

        # Then: Work outside the savepoint is committed
        assert await _project_ids(memory_db) == {"kept"}

    async def test_savepoint_requires_transaction(self, memory_db: Database):
        with pytest.raises(RuntimeError):
            async with memory_db.savepoint("outside"):
                pass

    async def test_savepoint_name_is_validated(self, memory_db: Database):
        with pytest.raises(ValueError):
            async with memory_db.transaction():
                async with memory_db.savepoint("bad name; DROP TABLE projects"):
                    pass


class TestStorageErrors:
    """Test translation of storage failures."""

    async def test_not_connected(self):
        db = Database(":memory:")

        with pytest.raises(StorageUnavailableError):
            await db.execute("SELECT 1")
        with pytest.raises(StorageUnavailableError):
            async with db.transaction():
                pass

    async def test_closed_connection(self, memory_db: Database):
        await memory_db.close()

        assert memory_db.is_connected is False
        with pytest.raises(StorageUnavailableError):
            await memory_db.execute("SELECT 1")

    async def test_rejected_write(self, memory_db: Database):
        """A write the engine refuses surfaces as a storage error."""
        await memory_db.execute("PRAGMA query_only = ON")

        with pytest.raises(StorageUnavailableError) as exc_info:
            await _insert_project(memory_db, "p1")
        assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)

        with pytest.raises(StorageUnavailableError):
            await memory_db.executemany(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                [(2, "2026-01-01T00:00:00+00:00")],
            )

    async def test_quota_detection_uses_error_code(self, memory_db: Database):
        # The message mentions "full" but the error is not SQLITE_FULL
        with pytest.raises(StorageUnavailableError) as exc_info:
            await memory_db.execute("SELECT * FROM full_history")

        assert not isinstance(exc_info.value, QuotaExceededError)

    async def test_rejected_write_in_transaction(self, memory_db: Database):
        await memory_db.execute("PRAGMA query_only = ON")

        with pytest.raises(StorageUnavailableError):
            async with memory_db.transaction():
                await _insert_project(memory_db, "p1")

        # The transaction was rolled back and the database is usable again
        await memory_db.execute("PRAGMA query_only = OFF")
        async with memory_db.transaction():
            await _insert_project(memory_db, "p2")
        assert await _project_ids(memory_db) == {"p2"}

    async def test_unopenable_path(self, tmp_path):
        # A directory cannot be opened as a database file
        db = Database(str(tmp_path))

        with pytest.raises(StorageUnavailableError):
            await db.connect()
        assert db.is_connected is False

    async def test_page_limit_applied(self, temp_db_path: str):
        db = Database(temp_db_path, max_page_count=64)
        await db.connect()
        try:
            cursor = await db.execute("PRAGMA max_page_count")
            assert (await cursor.fetchone())[0] == 64
        finally:
            await db.close()

    async def test_quota_exceeded(self, temp_db_path: str):
        # Given: A database limited to a few pages
        db = Database(temp_db_path, max_page_count=32)
        await db.connect()
        await db.migrate()

        try:
            # When: Writing more than fits
            with pytest.raises(QuotaExceededError):
                async with db.transaction():
                    await _insert_project(db, "too-big", description="x" * 500_000)

            # Then: Nothing was written and the database is still usable
            assert await _project_ids(db) == set()
            async with db.transaction():
                await _insert_project(db, "small")
            assert await _project_ids(db) == {"small"}
        finally:
            await db.close()
