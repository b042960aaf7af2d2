"""
Scripted Model Service — Deterministic model service for tests and demos.

Replays a fixed list of turns for every session. Capability calls in a
turn are really invoked against the request's resolved capabilities.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from taskrun.model.messages import (
    CapabilityCall,
    CapabilityOutcome,
    InvocationRequest,
    ModelEvent,
    ModelUsage,
)
from taskrun.model.service import invoke_capability


@dataclass
class ScriptedTurn:
    """
    One scripted model-decision round.

    Attributes:
        calls: (capability name, input) pairs to invoke, in order
        text: Text the model emits this round
        delay: Seconds to wait before the round is produced
        error: Raised instead of producing the round
        input_units / output_units: Usage reported for the round
    """
    calls: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    text: str = ""
    delay: float = 0.0
    error: Exception | None = None
    input_units: int = 10
    output_units: int = 5


class ScriptedSession:
    """Session that plays back a copy of the script."""

    def __init__(self, turns: list[ScriptedTurn], request: InvocationRequest):
        self._turns = list(turns)
        self._request = request
        self._usage = ModelUsage()
        self._call_counter = 0
        self.closed = False

    @property
    def usage(self) -> ModelUsage:
        return self._usage

    def __aiter__(self) -> "ScriptedSession":
        return self

    async def __anext__(self) -> ModelEvent:
        if self.closed or not self._turns:
            raise StopAsyncIteration
        turn = self._turns.pop(0)

        if turn.delay:
            await asyncio.sleep(turn.delay)
        if turn.error is not None:
            raise turn.error

        calls = []
        results = []
        for name, input in turn.calls:
            self._call_counter += 1
            call = CapabilityCall(call_id=f"call_{self._call_counter}", name=name, input=input)
            calls.append(call)

            output = await invoke_capability(self._request.capabilities, name, dict(input))
            results.append(CapabilityOutcome(call_id=call.call_id, output=output))

        self._usage = self._usage + ModelUsage(
            input_units=turn.input_units,
            output_units=turn.output_units,
            total_units=turn.input_units + turn.output_units,
        )
        return ModelEvent(capability_calls=calls, capability_results=results, text=turn.text)

    async def aclose(self) -> None:
        self.closed = True


class ScriptedModelService:
    """
    Model service that replays predefined turns.

    Every request is recorded for inspection.
    """

    def __init__(
        self,
        turns: list[ScriptedTurn] | None = None,
        model_identifier: str = "scripted-model",
    ):
        self.turns = list(turns) if turns else []
        self._model_identifier = model_identifier
        self.requests: list[InvocationRequest] = []
        self.sessions: list[ScriptedSession] = []

    @property
    def model_identifier(self) -> str:
        return self._model_identifier

    def open_session(self, request: InvocationRequest) -> ScriptedSession:
        self.requests.append(request)
        session = ScriptedSession(self.turns, request)
        self.sessions.append(session)
        return session

    @property
    def call_count(self) -> int:
        """Number of sessions opened."""
        return len(self.requests)

    def last_request(self) -> InvocationRequest | None:
        return self.requests[-1] if self.requests else None


def create_scripted_service(
    turns: list[ScriptedTurn] | None = None,
    model_identifier: str = "scripted-model",
) -> ScriptedModelService:
    """Factory for scripted model service."""
    return ScriptedModelService(turns, model_identifier)
