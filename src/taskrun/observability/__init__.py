"""
Observability — Logging, metrics, and debugging for taskrun.

Provides:
- Structured logging tagged with execution, task and tenant ids
- Metrics collection (counters, gauges, histograms)
- Debug capture of prompts handed to the model
"""

from taskrun.observability.logging import (
    RunTags,
    get_run_tags,
    set_execution_id,
    get_execution_id,
    configure_logging,
    get_logger,
    LogContext,
    ExecutionIdFilter,
    JSONFormatter,
    ReadableFormatter,
)
from taskrun.observability.metrics import (
    Counter,
    Gauge,
    Histogram,
    MetricsRegistry,
    get_metrics,
    reset_metrics,
)
from taskrun.observability.debug import (
    DebugCapture,
    DebugRecorder,
    enable_debug,
    disable_debug,
    get_debug_recorder,
    is_debug_enabled,
)

__all__ = [
    # Logging
    "RunTags",
    "get_run_tags",
    "set_execution_id",
    "get_execution_id",
    "configure_logging",
    "get_logger",
    "LogContext",
    "ExecutionIdFilter",
    "JSONFormatter",
    "ReadableFormatter",
    # Metrics
    "Counter",
    "Gauge",
    "Histogram",
    "MetricsRegistry",
    "get_metrics",
    "reset_metrics",
    # Debug
    "DebugCapture",
    "DebugRecorder",
    "enable_debug",
    "disable_debug",
    "get_debug_recorder",
    "is_debug_enabled",
]
