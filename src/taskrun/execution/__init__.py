"""
Execution — Records, storage and write path for task runs.
"""

from taskrun.execution.record import (
    Step,
    Usage,
    ExecutionRecord,
)
from taskrun.execution.storage import (
    ExecutionStore,
    InMemoryExecutionStore,
    SQLiteExecutionStore,
    RecordNotFoundError,
    RecordFinalisedError,
    request_stop,
    create_memory_store,
    create_sqlite_store,
)
from taskrun.execution.writer import RecordWriter

__all__ = [
    # Record
    "Step",
    "Usage",
    "ExecutionRecord",
    # Storage
    "ExecutionStore",
    "InMemoryExecutionStore",
    "SQLiteExecutionStore",
    "RecordNotFoundError",
    "RecordFinalisedError",
    "request_stop",
    "create_memory_store",
    "create_sqlite_store",
    # Writer
    "RecordWriter",
]
