"""
Vocabulary enums — shared language of the execution engine.

All enumerated types referenced by task definitions, steps,
execution records and engine events.
"""

from enum import Enum


# =============================================================================
# TASK METADATA
# =============================================================================

class TriggerKind(str, Enum):
    """
    How a task is (or was) triggered.

    Descriptive only; the engine never schedules anything itself.
    """
    SCHEDULE = "schedule"
    EVENT = "event"
    MANUAL = "manual"


class OversightMode(str, Enum):
    """Human oversight policy attached to a task definition."""
    AUTO = "auto"
    REVIEW_BEFORE = "review-before"
    NOTIFY_AFTER = "notify-after"


# =============================================================================
# EXECUTION
# =============================================================================

class StepKind(str, Enum):
    """Kind of durable step produced during a run."""
    CAPABILITY_CALL = "capability-call"
    TEXT = "text"


class ExecutionStatus(str, Enum):
    """
    Lifecycle status of an execution record.

    RUNNING until finalised; COMPLETED and FAILED are terminal
    and each run reaches exactly one of them.
    """
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.RUNNING


class EngineEventKind(str, Enum):
    """Tag for events carried on the engine event bus."""
    CREATED = "created"
    STEP = "step"
    LIVE_VIEW = "live_view"
    SUB_ACTION = "sub_action"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in {EngineEventKind.COMPLETE, EngineEventKind.ERROR}
