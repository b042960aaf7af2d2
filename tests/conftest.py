"""
Shared fixtures for taskrun tests.
"""

import logging
from datetime import datetime, timezone

import pytest

from taskrun.capabilities import BaseCapability, CapabilityResult, create_registry
from taskrun.observability import MetricsRegistry, disable_debug, reset_metrics
from taskrun.prompts import PromptAssembler
from taskrun.tasks import ExecutionContext, ExecutionLimits, TaskDefinition


FIXED_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _isolate_observability():
    """Reset process-wide metrics, debug and logging state between tests."""
    reset_metrics()
    disable_debug()
    yield
    reset_metrics()
    disable_debug()
    taskrun_logger = logging.getLogger("taskrun")
    taskrun_logger.handlers.clear()
    taskrun_logger.propagate = True
    taskrun_logger.setLevel(logging.NOTSET)


class MsgEchoCapability:
    """Returns input["msg"] as its bare output."""
    name = "echo"
    description = "Echo the msg field"
    input_schema = {"type": "object", "properties": {"msg": {"type": "string"}}}

    async def invoke(self, input):
        return input.get("msg")


class SearchCapability(BaseCapability):
    @property
    def name(self) -> str:
        return "search"

    @property
    def description(self) -> str:
        return "Search documents\nReturns matching titles"

    async def execute(self, params):
        return CapabilityResult.ok({"results": [params.get("query", "")]})


@pytest.fixture
def metrics():
    return MetricsRegistry()


@pytest.fixture
def assembler():
    return PromptAssembler(clock=lambda: FIXED_NOW)


@pytest.fixture
def registry():
    registry = create_registry()
    registry.register(MsgEchoCapability())
    registry.register(SearchCapability())
    return registry


@pytest.fixture
def make_task():
    def _make(
        name: str = "Echo",
        task_prompt: str = "Echo the message back.",
        capability_names=("echo",),
        max_steps: int = 3,
        max_execution_millis: int = 5_000,
        **kwargs,
    ) -> TaskDefinition:
        return TaskDefinition(
            id=kwargs.pop("id", name.lower().replace(" ", "-")),
            name=name,
            task_prompt=task_prompt,
            capability_names=capability_names,
            limits=ExecutionLimits(
                max_steps=max_steps,
                max_execution_millis=max_execution_millis,
            ),
            **kwargs,
        )
    return _make


@pytest.fixture
def ctx():
    return ExecutionContext(
        input={"msg": "hi"},
        tenant_id="org-1",
        invoker_id="user-1",
    )
