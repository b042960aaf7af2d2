"""
Vocabulary — Enumerated types shared across taskrun.
"""

from taskrun.vocabulary.enums import (
    TriggerKind,
    OversightMode,
    StepKind,
    ExecutionStatus,
    EngineEventKind,
)

__all__ = [
    "TriggerKind",
    "OversightMode",
    "StepKind",
    "ExecutionStatus",
    "EngineEventKind",
]
