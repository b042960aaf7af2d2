"""
Model Messages — Wire-shaped messages exchanged with a model invocation service.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CapabilityCall(BaseModel):
    """One capability invocation decided by the model."""
    call_id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class CapabilityOutcome(BaseModel):
    """Output of one capability invocation, matched by call_id."""
    call_id: str
    output: Any = None


class ModelEvent(BaseModel):
    """
    One model-decision round.

    Carries the capability calls the model made, their outcomes, and any
    text it produced.
    """
    capability_calls: list[CapabilityCall] = Field(default_factory=list)
    capability_results: list[CapabilityOutcome] = Field(default_factory=list)
    text: str = ""

    def result_for(self, call_id: str) -> CapabilityOutcome | None:
        for outcome in self.capability_results:
            if outcome.call_id == call_id:
                return outcome
        return None


class ModelUsage(BaseModel):
    """Consumption counters reported by the service."""
    input_units: int = 0
    output_units: int = 0
    total_units: int = 0

    def __add__(self, other: "ModelUsage") -> "ModelUsage":
        return ModelUsage(
            input_units=self.input_units + other.input_units,
            output_units=self.output_units + other.output_units,
            total_units=self.total_units + other.total_units,
        )


class InvocationRequest(BaseModel):
    """Everything a service needs to drive one run."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    prompt: str
    seed_message: str
    capabilities: dict[str, Any] = Field(
        default_factory=dict,
        description="Resolved capabilities keyed by name",
    )
    max_steps: int = Field(..., gt=0)
    max_execution_millis: int = Field(..., gt=0)
    chunk_timeout_millis: int = Field(..., gt=0)
