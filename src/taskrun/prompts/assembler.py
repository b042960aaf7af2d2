"""
Prompt Assembler — Composes the four-layer instruction text for a run.

Layer order is a contract:
1. System preamble (safety rails, current date)
2. Tenant prompt override
3. Task prompt
4. Dynamic per-invocation context

Task instructions outrank tenant style but never the preamble, and
dynamic facts are always the last thing the model reads.
"""

import inspect
from datetime import datetime, timezone
from typing import Any, Callable

from taskrun.prompts.preamble import BASE_RULES, PREAMBLE_TEMPLATE
from taskrun.tasks import ExecutionContext, TaskDefinition

LAYER_SEPARATOR = "\n\n"


class PromptAssembler:
    """
    Builds the system prompt handed to the model invocation service.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        """
        Initialize assembler.

        Args:
            clock: Source of the injected current time (default: now, UTC)
        """
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def preamble(self, task: TaskDefinition) -> str:
        """Layer 1 for the given task's kind."""
        now = self._clock()
        subject = task.kind.subject
        rules = [rule.format(subject=subject) for rule in BASE_RULES]
        rules.extend(task.kind.extra_rules)

        return PREAMBLE_TEMPLATE.format(
            subject=subject,
            now_iso=now.isoformat(),
            now_long_date=now.strftime("%A %d %B %Y"),
            now_time=now.strftime("%H:%M"),
            rules="\n".join(f"- {rule}" for rule in rules),
        )

    def assemble(
        self,
        task: TaskDefinition,
        ctx: ExecutionContext,
        dynamic_context_text: str | None = None,
    ) -> str:
        """Join the non-empty layers, separated by a blank line."""
        override = ctx.tenant_prompt_override
        layers = [
            self.preamble(task),
            override if override and override.strip() else "",
            f"TASK: {task.name}\n{task.task_prompt}",
            f"CONTEXT:\n{dynamic_context_text}" if dynamic_context_text else "",
        ]
        return LAYER_SEPARATOR.join(layer for layer in layers if layer)


def build_seed_message(task: TaskDefinition, input: dict[str, Any]) -> str:
    """
    Flatten invocation input into the single seed message.

    None and empty-string values are left out.
    """
    parts = [f'Execute the "{task.name}" {task.kind.subject} with the following input:']
    for key, value in input.items():
        if value is None or value == "":
            continue
        parts.append(f"- {key}: {value}")
    return "\n".join(parts)


async def resolve_dynamic_context(task: TaskDefinition, ctx: ExecutionContext) -> str:
    """Run the task's layer-4 resolver, if any. Accepts sync or async resolvers."""
    if task.dynamic_context is None:
        return ""
    text = task.dynamic_context(ctx)
    if inspect.isawaitable(text):
        text = await text
    return text or ""
