"""
Logging — Structured logging tagged with the run it belongs to.

Every run executes inside a LogContext bound to its execution record id
(and, when known, its task and tenant), so log lines from the engine,
the record writer and capabilities can be traced back to a single run.
"""

import logging
import json
import sys
from contextvars import ContextVar
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class RunTags:
    """Identifiers attached to every log line emitted during a run."""
    execution_id: str | None = None
    task_id: str | None = None
    tenant_id: str | None = None


_run_tags: ContextVar[RunTags] = ContextVar("run_tags", default=RunTags())


def _as_id(value: UUID | str | None) -> str | None:
    return str(value) if value else None


def get_run_tags() -> RunTags:
    return _run_tags.get()


def set_execution_id(execution_id: UUID | str | None) -> None:
    """Set execution ID for current context, keeping other tags."""
    _run_tags.set(replace(_run_tags.get(), execution_id=_as_id(execution_id)))


def get_execution_id() -> str | None:
    return _run_tags.get().execution_id


class ExecutionIdFilter(logging.Filter):
    """Copies the current run tags onto log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        tags = _run_tags.get()
        record.execution_id = tags.execution_id or "-"
        record.task_id = tags.task_id
        record.tenant_id = tags.tenant_id
        return True


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line; task and tenant only appear inside a run.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "execution_id": getattr(record, "execution_id", None),
        }
        for tag in ("task_id", "tenant_id"):
            value = getattr(record, tag, None)
            if value:
                log_data[tag] = value

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ReadableFormatter(logging.Formatter):
    """
    Human-readable formatter for development.

        WARNING [abcd1234] taskrun.capabilities.resolver (echo): Unknown capability
    """

    def format(self, record: logging.LogRecord) -> str:
        eid = getattr(record, "execution_id", "-")
        eid_short = eid[:8] if eid and eid != "-" else "-"
        task_id = getattr(record, "task_id", None)
        where = f"{record.name} ({task_id})" if task_id else record.name

        line = f"{record.levelname:<7} [{eid_short}] {where}: {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    stream: Any = None,
) -> None:
    """
    Configure taskrun logging.

    Args:
        level: Logging level
        json_format: Use JSON format (for production)
        stream: Output stream (default: stderr)
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.addFilter(ExecutionIdFilter())
    handler.setFormatter(JSONFormatter() if json_format else ReadableFormatter())

    package_logger = logging.getLogger("taskrun")
    package_logger.setLevel(level)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a taskrun component."""
    return logging.getLogger(f"taskrun.{name}")


class LogContext:
    """
    Context manager binding run tags for the enclosed block.

    Usage:
        with LogContext(record_id, task_id=task.id, tenant_id=ctx.tenant_id):
            logger.info("Step emitted")  # tagged with the run
    """

    def __init__(
        self,
        execution_id: UUID | str | None,
        task_id: str | None = None,
        tenant_id: str | None = None,
    ):
        self.tags = RunTags(_as_id(execution_id), task_id, tenant_id)
        self._token = None

    def __enter__(self) -> "LogContext":
        self._token = _run_tags.set(self.tags)
        return self

    def __exit__(self, *args) -> None:
        if self._token is not None:
            _run_tags.reset(self._token)
            self._token = None
