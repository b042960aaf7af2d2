"""
Task Definition — Static description of one executable task.

A task definition is loaded once and never mutated at runtime. The
engine reads its prompt fragment, declared capability names and
execution limits; trigger and oversight metadata are descriptive.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    create_model,
    field_validator,
)

from taskrun.vocabulary import OversightMode, TriggerKind


class InputContractError(Exception):
    """Raised when invocation input does not satisfy a task's input contract."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


# =============================================================================
# EXECUTION CONTEXT
# =============================================================================

@dataclass(frozen=True)
class ExecutionContext:
    """
    Per-invocation parameters.

    `input` is expected to have been validated against the task's
    input contract before the engine sees it.
    """
    input: dict[str, Any]
    tenant_id: str
    invoker_id: str
    tenant_prompt_override: str | None = None
    trigger_kind: TriggerKind = TriggerKind.MANUAL
    metadata: dict[str, Any] = field(default_factory=dict)


# Returns str or an awaitable of str
DynamicContextResolver = Callable[[ExecutionContext], Any]


# =============================================================================
# TASK KINDS
# =============================================================================

class TaskKind(BaseModel):
    """
    Kind-specific prompt wording.

    Task families differ only in how the preamble and seed message
    refer to the work, so the difference is carried as data.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Kind identifier, e.g. 'agent'")
    subject: str = Field(..., description="Noun used in prompts, e.g. 'task'")
    extra_rules: tuple[str, ...] = Field(
        default=(),
        description="Additional preamble rules for this kind",
    )


AGENT_KIND = TaskKind(
    name="agent",
    subject="task",
    extra_rules=(
        "When setting due dates, always use dates in the future relative to the current date above",
    ),
)

SKILL_KIND = TaskKind(name="skill", subject="skill")


# =============================================================================
# INPUT CONTRACT & LIMITS
# =============================================================================

def _field_label(name: str) -> str:
    """'candidateName' / 'candidate_name' -> 'Candidate Name'."""
    spaced = re.sub(r"([A-Z])", r" \1", name).replace("_", " ")
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split())


class InputField(BaseModel):
    """One accepted invocation parameter."""
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    required: bool = True
    default: Any = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("input field name cannot be empty")
        return v

    @property
    def label(self) -> str:
        return _field_label(self.name)


class ExecutionLimits(BaseModel):
    """Bounds applied to every run of a task."""
    model_config = ConfigDict(frozen=True)

    max_steps: int = Field(..., gt=0, description="Maximum model-decision rounds")
    max_execution_millis: int = Field(..., gt=0, description="Wall-clock bound in ms")


# =============================================================================
# TASK DEFINITION
# =============================================================================

class TaskDefinition(BaseModel):
    """
    Immutable static description of one executable task.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    name: str
    version: str = "1.0"
    description: str = ""
    kind: TaskKind = AGENT_KIND

    task_prompt: str = Field(..., description="Layer-3 instruction text")
    capability_names: tuple[str, ...] = Field(
        default=(),
        description="Declared subset of the capability registry, in order",
    )
    input_contract: tuple[InputField, ...] = ()
    limits: ExecutionLimits

    trigger_kind: TriggerKind = TriggerKind.MANUAL
    trigger_description: str = ""
    oversight_mode: OversightMode = OversightMode.AUTO

    dynamic_context: DynamicContextResolver | None = Field(
        default=None,
        description="Produces layer-4 context at invocation time",
    )

    @field_validator("id", "name")
    @classmethod
    def identity_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("task id and name cannot be empty")
        return v

    @field_validator("capability_names", mode="before")
    @classmethod
    def ordered_unique(cls, v: Any) -> tuple[str, ...]:
        return tuple(dict.fromkeys(v or ()))

    def validate_input(self, raw: dict[str, Any]) -> dict[str, Any]:
        """
        Validate invocation input against the input contract.

        Missing optional fields take their defaults and undeclared keys
        are dropped.

        Raises:
            InputContractError: a required field is missing or null
        """
        fields: dict[str, Any] = {}
        for input_field in self.input_contract:
            if input_field.required:
                fields[input_field.name] = (Any, ...)
            else:
                fields[input_field.name] = (Any, input_field.default)

        model = create_model(
            "TaskInput",
            __config__=ConfigDict(extra="ignore"),
            **fields,
        )
        try:
            validated = model.model_validate(raw or {}).model_dump()
        except ValidationError as exc:
            raise InputContractError(
                f"Invalid input for task '{self.id}'",
                errors=exc.errors(include_url=False),
            ) from exc

        missing = [
            input_field.name for input_field in self.input_contract
            if input_field.required and validated.get(input_field.name) is None
        ]
        if missing:
            raise InputContractError(
                f"Invalid input for task '{self.id}': missing {', '.join(missing)}",
                errors=[{"loc": (name,), "msg": "Field required"} for name in missing],
            )
        return validated

    def describe(self) -> dict[str, Any]:
        """Serialisable view of the definition, without callables."""
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "kind": self.kind.name,
            "task_prompt": self.task_prompt,
            "capabilities": list(self.capability_names),
            "input_fields": [
                {
                    "key": input_field.name,
                    "label": input_field.label,
                    "description": input_field.description,
                    "required": input_field.required,
                    "default": input_field.default,
                }
                for input_field in self.input_contract
            ],
            "limits": self.limits.model_dump(),
            "trigger": {
                "kind": self.trigger_kind.value,
                "description": self.trigger_description,
            },
            "oversight": {"mode": self.oversight_mode.value},
            "has_dynamic_context": self.dynamic_context is not None,
        }
