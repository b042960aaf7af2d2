"""
Capability Infrastructure — Base protocol and types for model-invokable actions.

Capabilities are the named units of external action a task exposes to
the model. Their output shape is opaque to the engine; by convention
it is {"data": ...} on success and {"error": ...} on failure.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Protocol, runtime_checkable


# Key under output["data"] that carries a live view URL
LIVE_VIEW_KEY = "live_view_url"


# =============================================================================
# SUB-ACTIONS
# =============================================================================

@dataclass
class SubAction:
    """
    Ephemeral progress event emitted while a capability executes.

    Forwarded live to observers; never persisted as a step.
    """
    index: int  # scoped to one capability invocation
    action_type: str
    reasoning: str | None = None
    raw_action: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "action_type": self.action_type,
            "reasoning": self.reasoning,
            "raw_action": self.raw_action,
            "timestamp": self.timestamp.isoformat(),
        }


SubActionCallback = Callable[[SubAction], None]


class SubActionEmitter:
    """
    Numbers and forwards sub-actions for a single invocation.

    A no-op when no callback is bound.
    """

    def __init__(self, callback: SubActionCallback | None):
        self._callback = callback
        self._index = 0

    def emit(
        self,
        action_type: str,
        reasoning: str | None = None,
        raw_action: str | None = None,
    ) -> SubAction | None:
        if self._callback is None:
            return None
        action = SubAction(
            index=self._index,
            action_type=action_type,
            reasoning=reasoning,
            raw_action=raw_action,
        )
        self._index += 1
        self._callback(action)
        return action


# =============================================================================
# RESULTS
# =============================================================================

@dataclass
class CapabilityResult:
    """
    Result of a capability execution.
    """
    success: bool
    data: Any = None
    error: str | None = None
    execution_time_ms: float = 0.0

    @classmethod
    def ok(cls, data: Any) -> "CapabilityResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "CapabilityResult":
        return cls(success=False, error=error)

    def to_output(self) -> dict[str, Any]:
        """Opaque output handed back to the model."""
        if self.success:
            return {"data": self.data}
        return {"error": self.error or "Capability failed"}


# =============================================================================
# PROTOCOLS
# =============================================================================

@runtime_checkable
class Capability(Protocol):
    """
    Protocol for executable capabilities.
    """

    @property
    def name(self) -> str:
        """Unique capability identifier."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description for model context."""
        ...

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of accepted input."""
        ...

    async def invoke(self, input: dict[str, Any]) -> Any:
        """Run the capability and return its output."""
        ...


@runtime_checkable
class CapabilityFactory(Protocol):
    """
    Capability that needs a per-run callback closed over it.

    bind(None) yields a callback-less instance.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def description(self) -> str:
        ...

    def bind(self, callback: SubActionCallback | None) -> Capability:
        ...


# =============================================================================
# BASE CLASS
# =============================================================================

class BaseCapability(ABC):
    """
    Abstract base class for capability implementations.

    Subclasses implement execute(); invoke() converts the result to the
    opaque output shape and turns raised errors into error outputs.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}}

    @abstractmethod
    async def execute(self, params: dict[str, Any]) -> CapabilityResult:
        pass

    async def invoke(self, input: dict[str, Any]) -> Any:
        started = time.perf_counter()
        try:
            result = await self.execute(input or {})
        except Exception as e:
            result = CapabilityResult.fail(f"Capability execution failed: {e}")
        result.execution_time_ms = (time.perf_counter() - started) * 1000
        return result.to_output()

    def __repr__(self) -> str:
        return f"<Capability:{self.name}>"
