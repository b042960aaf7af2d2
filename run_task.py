"""Run the echo task once and print its step stream."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from taskrun.capabilities import create_default_registry
from taskrun.engine import EngineConfig, EventBus, ExecutionEngine
from taskrun.execution import create_sqlite_store
from taskrun.model import ScriptedModelService, ScriptedTurn, create_openai_service
from taskrun.observability import configure_logging, enable_debug, get_metrics
from taskrun.tasks import ExecutionContext, ExecutionLimits, InputField, TaskDefinition
from taskrun.vocabulary import EngineEventKind


ECHO_TASK = TaskDefinition(
    id="echo",
    name="Echo",
    description="Echo a message back and confirm it",
    task_prompt="Call the echo capability with the given msg, then report what it returned.",
    capability_names=("echo", "clock"),
    input_contract=(InputField(name="msg", description="Message to echo"),),
    limits=ExecutionLimits(max_steps=3, max_execution_millis=60_000),
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--msg", default="hi", help="Message to echo")
    parser.add_argument("--openai", action="store_true", help="Use the OpenAI service")
    parser.add_argument("--db", default="taskrun_executions.db", help="SQLite database path")
    parser.add_argument("--debug-dir", help="Write prompt captures to this directory")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    return parser.parse_args()


async def main() -> int:
    args = parse_args()
    configure_logging(level=logging.INFO, json_format=args.json_logs)
    if args.debug_dir:
        enable_debug(output_dir=args.debug_dir, log_to_console=False)

    if args.openai:
        service = create_openai_service()
    else:
        service = ScriptedModelService([
            ScriptedTurn(calls=[("echo", {"msg": args.msg})]),
            ScriptedTurn(text=f"The echo capability returned {args.msg!r}."),
        ])

    registry = create_default_registry()
    registry.freeze()
    store = create_sqlite_store(args.db)
    engine = ExecutionEngine(service, store, registry, config=EngineConfig.from_env())

    ctx = ExecutionContext(
        input=ECHO_TASK.validate_input({"msg": args.msg}),
        tenant_id="demo-org",
        invoker_id="demo-user",
    )

    bus = EventBus()
    channel = bus.channel()
    await engine.run(ECHO_TASK, ctx, bus.callbacks())

    async for event in channel:
        if event.kind == EngineEventKind.CREATED:
            print(f"[OK] Execution record: {event.payload}")
        elif event.kind == EngineEventKind.STEP:
            step = event.payload
            detail = step.capability_name if step.capability_name else step.content
            print(f"  {step.index}. {step.kind.value}: {detail}")
        elif event.kind == EngineEventKind.LIVE_VIEW:
            print(f"  live view: {event.payload}")
        elif event.kind == EngineEventKind.COMPLETE:
            outcome = event.payload
            print(f"[OK] {outcome.status.value} in {outcome.duration_millis}ms: {outcome.summary}")
        elif event.kind == EngineEventKind.ERROR:
            print(f"[FAIL] {event.payload}")
            return 1

    print(f"\nMetrics: {get_metrics().to_dict()['runs']}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
