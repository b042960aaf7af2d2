"""
Execution Engine — Drives one task run from start to terminal state.

For each run:
1. Create the execution record and announce its id
2. Assemble the prompt, resolve capabilities, build the seed message
3. Drive a bounded model session, turning each event into steps
4. Finalise the record as completed or failed and notify the consumer

Intermediate record writes are fire-and-forget; only the final write
is awaited. Runs share no mutable state, so one engine serves many
concurrent runs.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from taskrun.capabilities import (
    LIVE_VIEW_KEY,
    CapabilityRegistry,
    ResolverCallbacks,
    SubAction,
    resolve_capabilities,
)
from taskrun.engine.callbacks import ExecutionCallbacks, RunOutcome
from taskrun.engine.config import EngineConfig
from taskrun.engine.control import RunCancelledError, RunControl, DEFAULT_CANCEL_REASON
from taskrun.execution import (
    ExecutionStore,
    RecordFinalisedError,
    RecordNotFoundError,
    RecordWriter,
    Step,
    Usage,
    request_stop,
)
from taskrun.model import (
    BoundedSession,
    InvocationRequest,
    ModelInvocationService,
    open_bounded_session,
)
from taskrun.observability import (
    DebugRecorder,
    LogContext,
    MetricsRegistry,
    get_debug_recorder,
    get_logger,
    get_metrics,
)
from taskrun.prompts import PromptAssembler, build_seed_message, resolve_dynamic_context
from taskrun.tasks import ExecutionContext, TaskDefinition
from taskrun.vocabulary import ExecutionStatus, StepKind

logger = get_logger("engine")


def detect_live_view(output: Any) -> str | None:
    """Return output["data"]["live_view_url"] if present and non-empty."""
    if not isinstance(output, dict):
        return None
    data = output.get("data")
    if not isinstance(data, dict):
        return None
    url = data.get(LIVE_VIEW_KEY)
    if isinstance(url, str) and url:
        return url
    return None


@dataclass
class _RunState:
    """Mutable state owned by exactly one run."""
    record_id: str
    started: float
    steps: list[Step] = field(default_factory=list)
    session: BoundedSession | None = None

    def next_index(self) -> int:
        return len(self.steps) + 1

    def snapshot(self) -> list[dict[str, Any]]:
        return [step.to_dict() for step in self.steps]

    def usage(self) -> Usage | None:
        if self.session is None:
            return None
        return Usage(**self.session.usage.model_dump())

    def duration_millis(self) -> int:
        return max(1, int((time.monotonic() - self.started) * 1000))


class ExecutionEngine:
    """
    Runs tasks against a model invocation service.

    Handles:
    - Record lifecycle (create, incremental patches, final write)
    - Prompt assembly and capability resolution
    - Step emission and live-view detection
    - Failure capture with partial state preserved
    - Best-effort cancellation
    """

    def __init__(
        self,
        model_service: ModelInvocationService,
        store: ExecutionStore,
        capabilities: CapabilityRegistry,
        config: EngineConfig | None = None,
        assembler: PromptAssembler | None = None,
        metrics: MetricsRegistry | None = None,
        debug_recorder: DebugRecorder | None = None,
    ):
        """
        Initialize engine.

        Args:
            model_service: Service that drives the model
            store: Execution record store
            capabilities: Capability registry (shared, read-only during runs)
            config: Engine tunables
            assembler: Prompt assembler (default: real clock)
            metrics: Metrics registry (default: process-wide)
            debug_recorder: Debug recorder (default: process-wide)
        """
        self.model_service = model_service
        self.store = store
        self.capabilities = capabilities
        self.config = config or EngineConfig()
        self.assembler = assembler or PromptAssembler()
        self.metrics = metrics or get_metrics()
        self.debug_recorder = debug_recorder or get_debug_recorder()
        self._controls: dict[str, RunControl] = {}

    def active_runs(self) -> list[str]:
        """Record ids of runs currently executing on this engine."""
        return list(self._controls)

    async def cancel(self, record_id: str, reason: str = DEFAULT_CANCEL_REASON) -> bool:
        """
        Request that a run stop.

        Flags the live run (if it belongs to this engine) and overwrites
        the stored status. The run observes the flag at its next
        suspension point; a capability call in flight still completes.

        Returns:
            True if a live run on this engine was flagged
        """
        control = self._controls.get(record_id)
        if control is not None:
            control.request_cancel(reason)

        try:
            await request_stop(self.store, record_id, reason)
        except (RecordNotFoundError, RecordFinalisedError) as e:
            logger.warning(f"Stop request not recorded: {e}")
        except Exception as e:
            self.metrics.persistence_failures.inc()
            logger.warning(f"Stop request for {record_id} failed: {e}")

        return control is not None

    async def run(
        self,
        task: TaskDefinition,
        ctx: ExecutionContext,
        callbacks: ExecutionCallbacks,
        control: RunControl | None = None,
    ) -> None:
        """
        Execute one run to a terminal state.

        Never raises for run failures; they are reported through
        callbacks.on_error and recorded on the execution record.
        """
        control = control or RunControl()
        self.metrics.runs_total.inc()
        self.metrics.active_runs.inc()

        try:
            record_id = await self.store.create({
                "task_id": task.id,
                "tenant_id": ctx.tenant_id,
                "invoker_id": ctx.invoker_id,
                "trigger_kind": ctx.trigger_kind,
                "input": dict(ctx.input),
                "status": ExecutionStatus.RUNNING,
                "steps": [],
                "model_identifier": self.model_service.model_identifier,
            })
        except asyncio.CancelledError:
            self.metrics.active_runs.dec()
            self.metrics.runs_failed.inc()
            self.metrics.runs_cancelled.inc()
            logger.info(f"Run of {task.id} cancelled before its record was created")
            self._notify(callbacks.on_error, "on_error", RunCancelledError("Execution cancelled"))
            raise
        except Exception as e:
            self.metrics.active_runs.dec()
            self.metrics.runs_failed.inc()
            logger.error(f"Could not create execution record for {task.id}: {e}", exc_info=True)
            self._notify(callbacks.on_error, "on_error", e)
            return

        state = _RunState(record_id=record_id, started=time.monotonic())
        writer = RecordWriter(
            self.store,
            record_id,
            metrics=self.metrics,
            drain_timeout_seconds=self.config.writer_drain_timeout_seconds,
        )
        self._controls[record_id] = control

        with LogContext(record_id, task_id=task.id, tenant_id=ctx.tenant_id):
            logger.info("Run started")
            self._notify(callbacks.on_execution_created, "on_execution_created", record_id)
            try:
                await self._drive(task, ctx, callbacks, control, state, writer)
            except asyncio.CancelledError:
                await self._fail(
                    RunCancelledError("Execution cancelled"), state, writer, callbacks
                )
                raise
            except Exception as e:
                await self._fail(e, state, writer, callbacks)
            else:
                await self._finish(state, writer, callbacks)
            finally:
                self._controls.pop(record_id, None)
                self.metrics.active_runs.dec()

    # =========================================================================
    # DRIVE
    # =========================================================================

    async def _drive(
        self,
        task: TaskDefinition,
        ctx: ExecutionContext,
        callbacks: ExecutionCallbacks,
        control: RunControl,
        state: _RunState,
        writer: RecordWriter,
    ) -> None:
        dynamic_text = await resolve_dynamic_context(task, ctx)
        prompt = self.assembler.assemble(task, ctx, dynamic_text)

        on_sub_action = None
        if callbacks.on_sub_action is not None:
            on_sub_action = self._guarded_sub_action(callbacks.on_sub_action)
        capabilities = resolve_capabilities(
            task.capability_names,
            self.capabilities,
            ResolverCallbacks(on_sub_action=on_sub_action),
            strict=self.config.strict_capabilities,
            metrics=self.metrics,
        )
        seed_message = build_seed_message(task, ctx.input)

        self._record_debug(
            "capture",
            execution_id=state.record_id,
            task_id=task.id,
            prompt=prompt,
            seed_message=seed_message,
            capability_names=list(capabilities),
            skipped_capabilities=[n for n in task.capability_names if n not in capabilities],
        )

        self._check_cancel(control)

        limits = task.limits
        request = InvocationRequest(
            prompt=prompt,
            seed_message=seed_message,
            capabilities=capabilities,
            max_steps=limits.max_steps,
            max_execution_millis=limits.max_execution_millis,
            chunk_timeout_millis=min(self.config.chunk_timeout_millis, limits.max_execution_millis),
        )
        state.session = open_bounded_session(self.model_service, request)

        try:
            async for event in state.session:
                for call in event.capability_calls:
                    outcome = event.result_for(call.call_id)
                    output = outcome.output if outcome else None
                    step = Step.capability_call(state.next_index(), call.name, call.input, output)
                    self._emit_step(step, state, writer, callbacks)
                    self.metrics.capability_calls_total.inc()

                    url = detect_live_view(output)
                    if url:
                        self.metrics.live_views_detected.inc()
                        self._notify(callbacks.on_live_view, "on_live_view", url)

                if event.text.strip():
                    step = Step.text(state.next_index(), event.text)
                    self._emit_step(step, state, writer, callbacks)

                self._check_cancel(control)
        finally:
            try:
                await state.session.aclose()
            except Exception as e:
                logger.warning(f"Closing model session failed: {e}")

    def _emit_step(
        self,
        step: Step,
        state: _RunState,
        writer: RecordWriter,
        callbacks: ExecutionCallbacks,
    ) -> None:
        state.steps.append(step)
        self.metrics.steps_total.inc()
        logger.debug(f"Step {step.index}: {step.kind.value} {step.capability_name or ''}".rstrip())
        self._notify(callbacks.on_step, "on_step", step)
        writer.submit({"steps": state.snapshot()})

    @staticmethod
    def _check_cancel(control: RunControl) -> None:
        if control.cancel_requested:
            raise RunCancelledError(control.reason or DEFAULT_CANCEL_REASON)

    # =========================================================================
    # TERMINAL STATES
    # =========================================================================

    async def _finish(
        self,
        state: _RunState,
        writer: RecordWriter,
        callbacks: ExecutionCallbacks,
    ) -> None:
        summary = self.config.default_summary
        for step in reversed(state.steps):
            if step.kind == StepKind.TEXT and step.content:
                summary = step.content
                break

        usage = state.usage()
        duration = state.duration_millis()
        await writer.finalise({
            "status": ExecutionStatus.COMPLETED,
            "output": {"summary": summary},
            "steps": state.snapshot(),
            "usage": usage,
            "duration_millis": duration,
        })

        self._record_debug(
            "finish", state.record_id, ExecutionStatus.COMPLETED.value, len(state.steps)
        )
        self.metrics.runs_completed.inc()
        self.metrics.run_duration_seconds.observe(duration / 1000)
        if usage:
            self.metrics.units_consumed.inc(usage.total_units)
        logger.info(f"Run completed: {len(state.steps)} steps in {duration}ms")

        self._notify(callbacks.on_complete, "on_complete", RunOutcome(
            status=ExecutionStatus.COMPLETED,
            summary=summary,
            record_id=state.record_id,
            steps=list(state.steps),
            usage=usage,
            duration_millis=duration,
        ))

    async def _fail(
        self,
        error: Exception,
        state: _RunState,
        writer: RecordWriter,
        callbacks: ExecutionCallbacks,
    ) -> None:
        message = str(error) or type(error).__name__
        usage = state.usage()
        duration = state.duration_millis()
        await writer.finalise({
            "status": ExecutionStatus.FAILED,
            "output": {"error": message},
            "steps": state.snapshot(),
            "usage": usage,
            "duration_millis": duration,
        })

        self._record_debug(
            "finish", state.record_id, ExecutionStatus.FAILED.value, len(state.steps), error=message
        )
        self.metrics.runs_failed.inc()
        self.metrics.run_duration_seconds.observe(duration / 1000)
        if usage:
            self.metrics.units_consumed.inc(usage.total_units)
        if isinstance(error, RunCancelledError):
            self.metrics.runs_cancelled.inc()
            logger.info(f"Run cancelled after {len(state.steps)} steps: {message}")
        else:
            logger.error(f"Run failed after {len(state.steps)} steps: {message}", exc_info=error)

        self._notify(callbacks.on_error, "on_error", error)

    # =========================================================================
    # CALLBACK ISOLATION
    # =========================================================================

    def _notify(self, hook: Callable[..., Any] | None, name: str, *args: Any) -> None:
        if hook is None:
            return
        try:
            hook(*args)
        except Exception as e:
            self.metrics.callback_failures.inc()
            logger.warning(f"Callback {name} raised: {e}", exc_info=True)

    def _record_debug(self, action: str, *args: Any, **kwargs: Any) -> None:
        try:
            getattr(self.debug_recorder, action)(*args, **kwargs)
        except Exception as e:
            self.metrics.debug_failures.inc()
            logger.warning(f"Debug {action} failed: {e}")

    def _guarded_sub_action(self, hook: Callable[[SubAction], None]) -> Callable[[SubAction], None]:
        def forward(action: SubAction) -> None:
            self._notify(hook, "on_sub_action", action)
        return forward


def create_engine(
    model_service: ModelInvocationService,
    store: ExecutionStore,
    capabilities: CapabilityRegistry,
    **kwargs: Any
) -> ExecutionEngine:
    """Factory for execution engine."""
    return ExecutionEngine(model_service, store, capabilities, **kwargs)
