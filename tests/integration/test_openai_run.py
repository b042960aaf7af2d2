"""End-to-end runs against the real OpenAI API."""

import pytest

from taskrun.capabilities import create_default_registry
from taskrun.engine import EventBus, ExecutionEngine
from taskrun.execution import create_memory_store
from taskrun.tasks import ExecutionContext, ExecutionLimits, TaskDefinition
from taskrun.vocabulary import EngineEventKind, ExecutionStatus, StepKind


pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_echo_task(openai_service):
    """The model calls echo and summarises the result."""
    registry = create_default_registry()
    registry.freeze()
    store = create_memory_store()
    engine = ExecutionEngine(openai_service, store, registry)

    task = TaskDefinition(
        id="echo",
        name="Echo",
        task_prompt="Call the echo capability with the given msg, then report what it returned.",
        capability_names=("echo",),
        limits=ExecutionLimits(max_steps=3, max_execution_millis=60_000),
    )
    ctx = ExecutionContext(input={"msg": "hi"}, tenant_id="org-1", invoker_id="user-1")

    bus = EventBus()
    channel = bus.channel()
    await engine.run(task, ctx, bus.callbacks())
    events = await channel.collect()

    assert events[-1].kind == EngineEventKind.COMPLETE
    outcome = events[-1].payload
    assert outcome.status == ExecutionStatus.COMPLETED
    assert any(s.kind == StepKind.CAPABILITY_CALL and s.capability_name == "echo" for s in outcome.steps)

    record = await store.load(outcome.record_id)
    assert record.finalised
    assert record.usage.total_units > 0
