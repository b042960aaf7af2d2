"""
Execution Storage — Persistence layer for execution records.

Stores expose an async create/patch interface. Each run creates its own
row and patches only that row, so concurrent runs never contend.
"""

import asyncio
import sqlite3
import threading
import uuid
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from taskrun.execution.record import ExecutionRecord
from taskrun.vocabulary import ExecutionStatus


class RecordNotFoundError(Exception):
    """Raised when a record id is unknown to the store."""

    def __init__(self, record_id: str):
        super().__init__(f"Execution record not found: {record_id}")
        self.record_id = record_id


class RecordFinalisedError(Exception):
    """Raised when a finalised record is patched."""

    def __init__(self, record_id: str):
        super().__init__(f"Execution record already finalised: {record_id}")
        self.record_id = record_id


@runtime_checkable
class ExecutionStore(Protocol):
    """
    Protocol for execution record storage backends.
    """

    async def create(self, fields: dict[str, Any]) -> str:
        """Insert a new record and return its id."""
        ...

    async def patch(self, record_id: str, fields: dict[str, Any], final: bool = False) -> None:
        """Apply a partial update. `final` marks the record finalised."""
        ...

    async def load(self, record_id: str) -> ExecutionRecord | None:
        """Load a record by id."""
        ...

    async def query(
        self,
        task_id: str | None = None,
        tenant_id: str | None = None,
        status: ExecutionStatus | None = None,
        limit: int = 100,
    ) -> list[ExecutionRecord]:
        """Query records, newest first."""
        ...

    async def count(self) -> int:
        """Count total records."""
        ...


def _new_record(fields: dict[str, Any]) -> ExecutionRecord:
    record = ExecutionRecord(
        id=str(uuid.uuid4()),
        task_id=fields["task_id"],
        tenant_id=fields["tenant_id"],
        invoker_id=fields["invoker_id"],
    )
    rest = {
        k: v for k, v in fields.items()
        if k not in ("task_id", "tenant_id", "invoker_id")
    }
    record.apply(rest)
    return record


def _patched(record: ExecutionRecord, fields: dict[str, Any], final: bool) -> ExecutionRecord:
    if record.finalised:
        raise RecordFinalisedError(record.id)
    record.apply(fields, final=final)
    return record


class InMemoryExecutionStore:
    """
    In-memory execution store for testing.

    Records are lost when process terminates.
    """

    def __init__(self):
        self._records: dict[str, ExecutionRecord] = {}

    async def create(self, fields: dict[str, Any]) -> str:
        record = _new_record(fields)
        self._records[record.id] = record
        return record.id

    async def patch(self, record_id: str, fields: dict[str, Any], final: bool = False) -> None:
        record = self._records.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        _patched(record, fields, final)

    async def load(self, record_id: str) -> ExecutionRecord | None:
        record = self._records.get(record_id)
        return record.copy() if record else None

    async def query(
        self,
        task_id: str | None = None,
        tenant_id: str | None = None,
        status: ExecutionStatus | None = None,
        limit: int = 100,
    ) -> list[ExecutionRecord]:
        results = []

        for record in self._records.values():
            if task_id and record.task_id != task_id:
                continue
            if tenant_id and record.tenant_id != tenant_id:
                continue
            if status is not None and record.status != status:
                continue
            results.append(record.copy())

        results.sort(key=lambda r: r.started_at, reverse=True)
        return results[:limit]

    async def count(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        """Clear all records (testing helper)."""
        self._records.clear()


class SQLiteExecutionStore:
    """
    SQLite-backed execution store for persistence.

    sqlite3 calls run on a worker thread so the event loop is never
    blocked by disk I/O.
    """

    def __init__(self, db_path: str | Path = "taskrun_executions.db"):
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS executions (
                    id TEXT PRIMARY KEY,
                    task_id TEXT NOT NULL,
                    tenant_id TEXT NOT NULL,
                    status TEXT NOT NULL,
                    started_at TEXT NOT NULL,
                    finalised INTEGER NOT NULL,
                    data TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_task_id
                ON executions(task_id)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_tenant_id
                ON executions(tenant_id)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_status
                ON executions(status)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_started_at
                ON executions(started_at)
            """)
            conn.commit()

    def _write(self, conn: sqlite3.Connection, record: ExecutionRecord) -> None:
        conn.execute("""
            INSERT OR REPLACE INTO executions
            (id, task_id, tenant_id, status, started_at, finalised, data)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            record.id,
            record.task_id,
            record.tenant_id,
            record.status.value,
            record.started_at.isoformat(),
            1 if record.finalised else 0,
            record.to_json(),
        ))

    def _read(self, conn: sqlite3.Connection, record_id: str) -> ExecutionRecord | None:
        cursor = conn.execute(
            "SELECT data FROM executions WHERE id = ?",
            (record_id,)
        )
        row = cursor.fetchone()
        if row:
            return ExecutionRecord.from_json(row[0])
        return None

    def _create_sync(self, fields: dict[str, Any]) -> str:
        record = _new_record(fields)
        with self._lock, sqlite3.connect(self.db_path) as conn:
            self._write(conn, record)
            conn.commit()
        return record.id

    def _patch_sync(self, record_id: str, fields: dict[str, Any], final: bool) -> None:
        with self._lock, sqlite3.connect(self.db_path) as conn:
            record = self._read(conn, record_id)
            if record is None:
                raise RecordNotFoundError(record_id)
            self._write(conn, _patched(record, fields, final))
            conn.commit()

    def _load_sync(self, record_id: str) -> ExecutionRecord | None:
        with sqlite3.connect(self.db_path) as conn:
            return self._read(conn, record_id)

    def _query_sync(
        self,
        task_id: str | None,
        tenant_id: str | None,
        status: ExecutionStatus | None,
        limit: int,
    ) -> list[ExecutionRecord]:
        conditions = []
        params: list[Any] = []

        if task_id:
            conditions.append("task_id = ?")
            params.append(task_id)
        if tenant_id:
            conditions.append("tenant_id = ?")
            params.append(tenant_id)
        if status is not None:
            conditions.append("status = ?")
            params.append(ExecutionStatus(status).value)

        where_clause = " AND ".join(conditions) if conditions else "1=1"
        params.append(limit)

        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(f"""
                SELECT data FROM executions
                WHERE {where_clause}
                ORDER BY started_at DESC
                LIMIT ?
            """, params)

            return [ExecutionRecord.from_json(row[0]) for row in cursor.fetchall()]

    def _count_sync(self) -> int:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("SELECT COUNT(*) FROM executions")
            return cursor.fetchone()[0]

    async def create(self, fields: dict[str, Any]) -> str:
        return await asyncio.to_thread(self._create_sync, fields)

    async def patch(self, record_id: str, fields: dict[str, Any], final: bool = False) -> None:
        await asyncio.to_thread(self._patch_sync, record_id, fields, final)

    async def load(self, record_id: str) -> ExecutionRecord | None:
        return await asyncio.to_thread(self._load_sync, record_id)

    async def query(
        self,
        task_id: str | None = None,
        tenant_id: str | None = None,
        status: ExecutionStatus | None = None,
        limit: int = 100,
    ) -> list[ExecutionRecord]:
        return await asyncio.to_thread(self._query_sync, task_id, tenant_id, status, limit)

    async def count(self) -> int:
        return await asyncio.to_thread(self._count_sync)

    def clear(self) -> None:
        """Clear all records (testing helper)."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM executions")
            conn.commit()


async def request_stop(
    store: ExecutionStore,
    record_id: str,
    reason: str = "Execution stopped by user",
) -> None:
    """
    Mark a running record as stopped from outside the engine.

    The record is not finalised: the engine still owns the final write
    and applies it when it next observes the cancel request.
    """
    await store.patch(record_id, {
        "status": ExecutionStatus.FAILED,
        "output": {"error": reason},
        "cancel_requested": True,
    })


def create_memory_store() -> InMemoryExecutionStore:
    """Factory for in-memory store."""
    return InMemoryExecutionStore()


def create_sqlite_store(db_path: str | Path = "taskrun_executions.db") -> SQLiteExecutionStore:
    """Factory for SQLite store."""
    return SQLiteExecutionStore(db_path)
