"""
Model Invocation Service — Protocols for the consumed model boundary.

A service opens one session per run. The session is an async iterator
of ModelEvents; the service invokes capabilities itself and reports the
outcomes inside each event.
"""

from typing import Any, AsyncIterator, Protocol, runtime_checkable

from taskrun.model.messages import InvocationRequest, ModelEvent, ModelUsage
from taskrun.observability import get_logger

logger = get_logger("model.service")


class InvocationError(Exception):
    """Raised when the model invocation service fails."""
    pass


class InvocationTimeoutError(InvocationError):
    """
    Raised when a run exceeds a time bound.

    `bound` is "total" for max_execution_millis and "chunk" for the
    per-event stall bound.
    """

    def __init__(self, bound: str, limit_millis: int):
        super().__init__(f"Model invocation exceeded {bound} timeout of {limit_millis}ms")
        self.bound = bound
        self.limit_millis = limit_millis


@runtime_checkable
class ModelSession(Protocol):
    """
    Event stream for one run.
    """

    def __aiter__(self) -> AsyncIterator[ModelEvent]:
        ...

    @property
    def usage(self) -> ModelUsage:
        """Accumulated usage; final once the stream has ended."""
        ...

    async def aclose(self) -> None:
        ...


@runtime_checkable
class ModelInvocationService(Protocol):
    """
    Protocol for model invocation services.
    """

    @property
    def model_identifier(self) -> str:
        ...

    def open_session(self, request: InvocationRequest) -> ModelSession:
        ...


async def invoke_capability(capabilities: dict[str, Any], name: str, input: dict[str, Any]) -> Any:
    """
    Invoke a resolved capability on the model's behalf.

    A missing or failing capability yields an {"error": ...} output that
    is reported back to the model; it never ends the run.
    """
    capability = capabilities.get(name)
    if capability is None:
        return {"error": f"Unknown capability: {name}"}
    try:
        return await capability.invoke(input)
    except Exception as e:
        logger.warning(f"Capability {name!r} raised: {e}")
        return {"error": f"Capability execution failed: {e}"}
