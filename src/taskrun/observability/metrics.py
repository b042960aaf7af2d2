"""
Metrics — Simple in-process metrics for the execution engine.

Tracks run outcomes, step throughput and persistence health.
"""

from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from typing import Any


class _Metric:
    """Named metric guarded by a lock."""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._lock = Lock()
        self.reset()

    def reset(self) -> None:
        raise NotImplementedError


class Counter(_Metric):
    """Monotonically increasing counter."""

    def inc(self, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError(f"Counter {self.name} cannot decrease")
        with self._lock:
            self._value += amount

    @property
    def value(self) -> float:
        return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0.0


class Gauge(Counter):
    """Counter that may also go down or be set outright."""

    def inc(self, amount: float = 1.0) -> None:
        with self._lock:
            self._value += amount

    def dec(self, amount: float = 1.0) -> None:
        self.inc(-amount)

    def set(self, value: float) -> None:
        with self._lock:
            self._value = value


class Histogram(_Metric):
    """
    Distribution of observed values.

    count and sum cover every observation; min, max and percentiles are
    taken over the most recent `window` observations.
    """

    def __init__(self, name: str, description: str = "", window: int = 1024):
        self._window = window
        super().__init__(name, description)

    def observe(self, value: float) -> None:
        with self._lock:
            self._count += 1
            self._sum += value
            self._recent.append(value)

    @property
    def count(self) -> int:
        return self._count

    @property
    def sum(self) -> float:
        return self._sum

    @property
    def avg(self) -> float:
        return self._sum / self._count if self._count else 0.0

    @property
    def min(self) -> float:
        return min(self._recent, default=0.0)

    @property
    def max(self) -> float:
        return max(self._recent, default=0.0)

    def percentile(self, q: float) -> float:
        """Nearest-rank percentile over the recent window, q in [0, 100]."""
        with self._lock:
            ordered = sorted(self._recent)
        if not ordered:
            return 0.0
        rank = max(1, round(q / 100 * len(ordered)))
        return ordered[min(rank, len(ordered)) - 1]

    def reset(self) -> None:
        with self._lock:
            self._count = 0
            self._sum = 0.0
            self._recent: deque[float] = deque(maxlen=self._window)

    def to_dict(self) -> dict[str, float]:
        return {
            "count": self._count,
            "sum": self._sum,
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
        }


@dataclass
class MetricsRegistry:
    """
    Registry for engine metrics.
    """
    # Run outcomes
    runs_total: Counter = field(
        default_factory=lambda: Counter("runs_total", "Total runs started")
    )
    runs_completed: Counter = field(
        default_factory=lambda: Counter("runs_completed", "Runs finalised as completed")
    )
    runs_failed: Counter = field(
        default_factory=lambda: Counter("runs_failed", "Runs finalised as failed")
    )
    runs_cancelled: Counter = field(
        default_factory=lambda: Counter("runs_cancelled", "Runs stopped by a cancel request")
    )
    active_runs: Gauge = field(
        default_factory=lambda: Gauge("active_runs", "Currently executing runs")
    )
    run_duration_seconds: Histogram = field(
        default_factory=lambda: Histogram("run_duration_seconds", "Run wall-clock duration")
    )

    # Step throughput
    steps_total: Counter = field(
        default_factory=lambda: Counter("steps_total", "Steps emitted")
    )
    capability_calls_total: Counter = field(
        default_factory=lambda: Counter("capability_calls_total", "Capability-call steps emitted")
    )
    live_views_detected: Counter = field(
        default_factory=lambda: Counter("live_views_detected", "Live view references detected")
    )
    units_consumed: Counter = field(
        default_factory=lambda: Counter("units_consumed", "Model usage units consumed")
    )

    # Degradation
    unknown_capabilities: Counter = field(
        default_factory=lambda: Counter("unknown_capabilities", "Unknown capability names skipped")
    )
    persistence_failures: Counter = field(
        default_factory=lambda: Counter("persistence_failures", "Failed record store writes")
    )
    callback_failures: Counter = field(
        default_factory=lambda: Counter("callback_failures", "Consumer callbacks that raised")
    )
    debug_failures: Counter = field(
        default_factory=lambda: Counter("debug_failures", "Debug captures that could not be recorded")
    )

    def to_dict(self) -> dict[str, Any]:
        """Export all metrics as dict."""
        return {
            "runs": {
                "total": self.runs_total.value,
                "completed": self.runs_completed.value,
                "failed": self.runs_failed.value,
                "cancelled": self.runs_cancelled.value,
                "active": self.active_runs.value,
                "duration": self.run_duration_seconds.to_dict(),
            },
            "steps": {
                "total": self.steps_total.value,
                "capability_calls": self.capability_calls_total.value,
                "live_views": self.live_views_detected.value,
                "units_consumed": self.units_consumed.value,
            },
            "degradation": {
                "unknown_capabilities": self.unknown_capabilities.value,
                "persistence_failures": self.persistence_failures.value,
                "callback_failures": self.callback_failures.value,
                "debug_failures": self.debug_failures.value,
            },
        }

    def reset(self) -> None:
        """Reset all metrics (for testing)."""
        for value in vars(self).values():
            if isinstance(value, _Metric):
                value.reset()


# Process-wide default registry
_metrics = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the process-wide metrics registry."""
    return _metrics


def reset_metrics() -> None:
    """Reset all metrics (for testing)."""
    _metrics.reset()
