"""
Execution Callbacks — Streaming contract between the engine and its consumer.

Per run, callbacks fire in this order:
- on_execution_created once, before any step
- on_step / on_live_view / on_sub_action, in emission order
- exactly one of on_complete or on_error, last
"""

from dataclasses import dataclass, field
from typing import Any, Callable

from taskrun.capabilities import SubActionCallback
from taskrun.execution import Step, Usage
from taskrun.vocabulary import ExecutionStatus


@dataclass
class RunOutcome:
    """Terminal result handed to on_complete."""
    status: ExecutionStatus
    summary: str
    record_id: str
    steps: list[Step] = field(default_factory=list)
    usage: Usage | None = None
    duration_millis: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "summary": self.summary,
            "record_id": self.record_id,
            "steps": [step.to_dict() for step in self.steps],
            "usage": self.usage.to_dict() if self.usage else None,
            "duration_millis": self.duration_millis,
        }


@dataclass
class ExecutionCallbacks:
    """
    Consumer hooks for one run.

    Hooks are synchronous and should return quickly; exceptions they
    raise are logged and never affect the run.
    """
    on_step: Callable[[Step], None]
    on_complete: Callable[[RunOutcome], None]
    on_error: Callable[[Exception], None]
    on_live_view: Callable[[str], None] | None = None
    on_sub_action: SubActionCallback | None = None
    on_execution_created: Callable[[str], None] | None = None
