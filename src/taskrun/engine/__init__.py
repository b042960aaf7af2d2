"""
Engine — Execution loop, callbacks and run control.
"""

from taskrun.engine.config import EngineConfig
from taskrun.engine.callbacks import ExecutionCallbacks, RunOutcome
from taskrun.engine.control import RunControl, RunCancelledError, DEFAULT_CANCEL_REASON
from taskrun.engine.events import (
    EngineEvent,
    EventBus,
    EventChannel,
    DeliveryFailure,
    create_event_bus,
)
from taskrun.engine.engine import ExecutionEngine, create_engine, detect_live_view

__all__ = [
    "EngineConfig",
    "ExecutionCallbacks",
    "RunOutcome",
    "RunControl",
    "RunCancelledError",
    "DEFAULT_CANCEL_REASON",
    "EngineEvent",
    "EventBus",
    "EventChannel",
    "DeliveryFailure",
    "create_event_bus",
    "ExecutionEngine",
    "create_engine",
    "detect_live_view",
]
