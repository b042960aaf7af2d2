"""Tests for prompt assembly."""

import pytest

from taskrun.prompts import (
    LAYER_SEPARATOR,
    build_seed_message,
    resolve_dynamic_context,
)
from taskrun.tasks import SKILL_KIND, ExecutionContext


def _ctx(**kwargs) -> ExecutionContext:
    defaults = dict(input={}, tenant_id="org-1", invoker_id="user-1")
    defaults.update(kwargs)
    return ExecutionContext(**defaults)


class TestPreamble:
    """Tests for layer 1."""

    def test_date_injected(self, assembler, make_task):
        """Current date and time appear in the preamble."""
        preamble = assembler.preamble(make_task())
        assert "2026-03-02T09:30:00+00:00" in preamble
        assert "Monday 02 March 2026" in preamble
        assert "09:30" in preamble

    def test_safety_rules(self, assembler, make_task):
        """Factual-only and escalation rules are always present."""
        preamble = assembler.preamble(make_task())
        assert "Never invent facts" in preamble
        assert "escalate to a human" in preamble

    def test_kind_wording(self, assembler, make_task):
        """Kind controls the subject noun and extra rules."""
        agent = assembler.preamble(make_task())
        skill = assembler.preamble(make_task(kind=SKILL_KIND))

        assert "executing a specific task" in agent
        assert "due dates" in agent
        assert "executing a specific skill" in skill
        assert "due dates" not in skill


class TestAssemble:
    """Tests for full layering."""

    def test_ping_layering(self, assembler, make_task):
        """No override and empty context give preamble + task block only."""
        task = make_task(name="Ping", task_prompt="Say pong.", dynamic_context=lambda ctx: "")
        prompt = assembler.assemble(task, _ctx(), "")

        assert prompt == assembler.preamble(task) + "\n\nTASK: Ping\nSay pong."
        assert "CONTEXT:" not in prompt

    def test_all_layers_in_order(self, assembler, make_task):
        """Layers appear preamble, override, task, context."""
        task = make_task(name="Ping", task_prompt="Say pong.")
        prompt = assembler.assemble(
            task,
            _ctx(tenant_prompt_override="Use a formal tone."),
            "Candidate is in Leeds.",
        )

        assert prompt == LAYER_SEPARATOR.join([
            assembler.preamble(task),
            "Use a formal tone.",
            "TASK: Ping\nSay pong.",
            "CONTEXT:\nCandidate is in Leeds.",
        ])

    def test_blank_override_omitted(self, assembler, make_task):
        """Whitespace-only overrides are dropped."""
        task = make_task(name="Ping", task_prompt="Say pong.")
        prompt = assembler.assemble(task, _ctx(tenant_prompt_override="   "), None)
        assert prompt == assembler.preamble(task) + "\n\nTASK: Ping\nSay pong."


class TestSeedMessage:
    """Tests for build_seed_message."""

    def test_flat_listing(self, make_task):
        """Input fields are listed one per line."""
        message = build_seed_message(make_task(name="Echo"), {"msg": "hi", "count": 2})
        assert message == (
            'Execute the "Echo" task with the following input:\n'
            "- msg: hi\n"
            "- count: 2"
        )

    def test_skips_empty_values(self, make_task):
        """None and empty strings are left out; falsy numbers are kept."""
        message = build_seed_message(make_task(), {"a": None, "b": "", "c": 0})
        assert message.splitlines()[1:] == ["- c: 0"]

    def test_skill_subject(self, make_task):
        """Skill kind changes the subject noun."""
        message = build_seed_message(make_task(name="Lookup", kind=SKILL_KIND), {})
        assert message == 'Execute the "Lookup" skill with the following input:'


class TestDynamicContext:
    """Tests for resolve_dynamic_context."""

    @pytest.mark.asyncio
    async def test_none(self, make_task):
        """Tasks without a resolver yield empty context."""
        assert await resolve_dynamic_context(make_task(), _ctx()) == ""

    @pytest.mark.asyncio
    async def test_sync_resolver(self, make_task):
        """Sync resolvers receive the context."""
        task = make_task(dynamic_context=lambda ctx: f"tenant={ctx.tenant_id}")
        assert await resolve_dynamic_context(task, _ctx()) == "tenant=org-1"

    @pytest.mark.asyncio
    async def test_async_resolver(self, make_task):
        """Async resolvers are awaited."""
        async def resolver(ctx):
            return "open jobs: 3"

        task = make_task(dynamic_context=resolver)
        assert await resolve_dynamic_context(task, _ctx()) == "open jobs: 3"
