"""
Tasks — Static task definitions and their registry.
"""

from taskrun.tasks.definition import (
    InputContractError,
    ExecutionContext,
    DynamicContextResolver,
    TaskKind,
    AGENT_KIND,
    SKILL_KIND,
    InputField,
    ExecutionLimits,
    TaskDefinition,
)
from taskrun.tasks.registry import (
    TaskRegistry,
    create_task_registry,
)

__all__ = [
    # Definition
    "InputContractError",
    "ExecutionContext",
    "DynamicContextResolver",
    "TaskKind",
    "AGENT_KIND",
    "SKILL_KIND",
    "InputField",
    "ExecutionLimits",
    "TaskDefinition",
    # Registry
    "TaskRegistry",
    "create_task_registry",
]
