"""
Execution Record — Persistent representation of one task run.

One record per run. The engine creates it at start, patches its step
list as the run progresses and finalises it exactly once with a
terminal status.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from taskrun.vocabulary import ExecutionStatus, StepKind, TriggerKind


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_dt(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


# =============================================================================
# STEP
# =============================================================================

@dataclass
class Step:
    """
    One observable unit of progress within a run.

    Capability-call steps carry capability_name, input and output; text
    steps carry content.
    """
    index: int
    kind: StepKind
    capability_name: str | None = None
    input: Any = None
    output: Any = None
    content: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def capability_call(
        cls,
        index: int,
        capability_name: str,
        input: Any,
        output: Any = None,
    ) -> "Step":
        return cls(
            index=index,
            kind=StepKind.CAPABILITY_CALL,
            capability_name=capability_name,
            input=input,
            output=output,
        )

    @classmethod
    def text(cls, index: int, content: str) -> "Step":
        return cls(index=index, kind=StepKind.TEXT, content=content)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "index": self.index,
            "kind": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.kind == StepKind.CAPABILITY_CALL:
            data["capability_name"] = self.capability_name
            data["input"] = self.input
            data["output"] = self.output
        else:
            data["content"] = self.content
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        return cls(
            index=data["index"],
            kind=StepKind(data["kind"]),
            capability_name=data.get("capability_name"),
            input=data.get("input"),
            output=data.get("output"),
            content=data.get("content"),
            timestamp=_parse_dt(data.get("timestamp")) or _utcnow(),
        )


@dataclass
class Usage:
    """Model consumption counters for one run."""
    input_units: int = 0
    output_units: int = 0
    total_units: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "input_units": self.input_units,
            "output_units": self.output_units,
            "total_units": self.total_units,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Usage":
        return cls(
            input_units=data.get("input_units", 0),
            output_units=data.get("output_units", 0),
            total_units=data.get("total_units", 0),
        )


# =============================================================================
# EXECUTION RECORD
# =============================================================================

@dataclass
class ExecutionRecord:
    """
    Complete record of one run.

    `output` is {"summary": ...} on completion and {"error": ...} on
    failure. Once `finalised` the record accepts no further patches.
    """
    id: str
    task_id: str
    tenant_id: str
    invoker_id: str
    trigger_kind: TriggerKind = TriggerKind.MANUAL
    input: dict[str, Any] = field(default_factory=dict)
    status: ExecutionStatus = ExecutionStatus.RUNNING
    steps: list[Step] = field(default_factory=list)
    output: dict[str, Any] | None = None
    usage: Usage | None = None
    model_identifier: str | None = None
    duration_millis: int | None = None
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None
    cancel_requested: bool = False
    finalised: bool = False

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def summary(self) -> str | None:
        return (self.output or {}).get("summary")

    @property
    def error(self) -> str | None:
        return (self.output or {}).get("error")

    def apply(self, fields: dict[str, Any], final: bool = False) -> None:
        """
        Apply a partial update.

        Values may be given in their serialised form (step dicts, status
        strings). Reaching a terminal status stamps completed_at; a final
        update also marks the record finalised.

        Raises:
            ValueError: an unknown or read-only field is given
        """
        for key, value in fields.items():
            if key in ("id", "finalised") or key not in _FIELD_NAMES:
                raise ValueError(f"Cannot patch record field: {key}")
            setattr(self, key, _coerce(key, value))

        if self.status.is_terminal and self.completed_at is None:
            self.completed_at = _utcnow()
        if final:
            self.finalised = True

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for storage."""
        return {
            "id": self.id,
            "task_id": self.task_id,
            "tenant_id": self.tenant_id,
            "invoker_id": self.invoker_id,
            "trigger_kind": self.trigger_kind.value,
            "input": self.input,
            "status": self.status.value,
            "steps": [step.to_dict() for step in self.steps],
            "output": self.output,
            "usage": self.usage.to_dict() if self.usage else None,
            "model_identifier": self.model_identifier,
            "duration_millis": self.duration_millis,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "cancel_requested": self.cancel_requested,
            "finalised": self.finalised,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExecutionRecord":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            task_id=data["task_id"],
            tenant_id=data["tenant_id"],
            invoker_id=data["invoker_id"],
            trigger_kind=TriggerKind(data.get("trigger_kind", "manual")),
            input=data.get("input") or {},
            status=ExecutionStatus(data.get("status", "running")),
            steps=[Step.from_dict(s) for s in data.get("steps", [])],
            output=data.get("output"),
            usage=Usage.from_dict(data["usage"]) if data.get("usage") else None,
            model_identifier=data.get("model_identifier"),
            duration_millis=data.get("duration_millis"),
            started_at=_parse_dt(data.get("started_at")) or _utcnow(),
            completed_at=_parse_dt(data.get("completed_at")),
            cancel_requested=data.get("cancel_requested", False),
            finalised=data.get("finalised", False),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "ExecutionRecord":
        return cls.from_dict(json.loads(json_str))

    def copy(self) -> "ExecutionRecord":
        """Detached copy; stores hand these out so callers cannot alias state."""
        return ExecutionRecord.from_dict(json.loads(self.to_json()))


_FIELD_NAMES = frozenset(ExecutionRecord.__dataclass_fields__)


def _coerce(key: str, value: Any) -> Any:
    if key == "steps":
        return [s if isinstance(s, Step) else Step.from_dict(s) for s in value or []]
    if key == "status":
        return ExecutionStatus(value)
    if key == "trigger_kind":
        return TriggerKind(value)
    if key == "usage" and isinstance(value, dict):
        return Usage.from_dict(value)
    if key in ("started_at", "completed_at"):
        return _parse_dt(value)
    return value
