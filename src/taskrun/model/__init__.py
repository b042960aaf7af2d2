"""
Model — Boundary to the model invocation service.

Provides:
- Wire-shaped messages (calls, outcomes, events, usage)
- Service/session protocols and the bounded session wrapper
- A scripted service for tests and an OpenAI-backed service
"""

from taskrun.model.messages import (
    CapabilityCall,
    CapabilityOutcome,
    ModelEvent,
    ModelUsage,
    InvocationRequest,
)
from taskrun.model.service import (
    InvocationError,
    InvocationTimeoutError,
    ModelSession,
    ModelInvocationService,
    invoke_capability,
)
from taskrun.model.boundary import BoundedSession, open_bounded_session
from taskrun.model.scripted import (
    ScriptedTurn,
    ScriptedSession,
    ScriptedModelService,
    create_scripted_service,
)
from taskrun.model.openai_service import (
    OpenAIConfig,
    OpenAISession,
    OpenAIModelService,
    create_openai_service,
)

__all__ = [
    # Messages
    "CapabilityCall",
    "CapabilityOutcome",
    "ModelEvent",
    "ModelUsage",
    "InvocationRequest",
    # Service
    "InvocationError",
    "InvocationTimeoutError",
    "ModelSession",
    "ModelInvocationService",
    "invoke_capability",
    "BoundedSession",
    "open_bounded_session",
    # Implementations
    "ScriptedTurn",
    "ScriptedSession",
    "ScriptedModelService",
    "create_scripted_service",
    "OpenAIConfig",
    "OpenAISession",
    "OpenAIModelService",
    "create_openai_service",
]
