"""
Debug Mode — Prompt and outcome capture for development.

When enabled, records exactly what each run handed to the model (the
assembled prompt, the seed message and the resolved capabilities) and,
once the run ends, how it ended.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from taskrun.observability.logging import get_logger

logger = get_logger("debug")


@dataclass
class DebugCapture:
    """
    Captured invocation data for one run.

    `status` stays None until the run reaches a terminal state.
    """
    execution_id: str
    task_id: str
    timestamp: datetime = field(default_factory=datetime.now)

    prompt: str = ""
    seed_message: str = ""
    capability_names: list[str] = field(default_factory=list)
    skipped_capabilities: list[str] = field(default_factory=list)

    status: str | None = None
    step_count: int = 0
    error: str | None = None

    @property
    def finished(self) -> bool:
        return self.status is not None

    def to_dict(self) -> dict[str, Any]:
        """Summary view; prompt text is reduced to its length."""
        data = self.to_full_dict()
        data["prompt_length"] = len(data.pop("prompt"))
        data["seed_message_length"] = len(data.pop("seed_message"))
        return data

    def to_full_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_full_dict(), indent=2)


class DebugRecorder:
    """
    Records debug captures during run execution.

    Captures are written to `output_dir` twice: once when the model is
    invoked and again, overwriting, when the run finishes.
    Only the most recent `max_captures` runs are kept in memory.
    """

    def __init__(
        self,
        enabled: bool = False,
        output_dir: Path | str | None = None,
        log_to_console: bool = True,
        max_captures: int = 256,
    ):
        self.enabled = enabled
        self.max_captures = max_captures
        self.output_dir = Path(output_dir) if output_dir else None
        self.log_to_console = log_to_console
        self._captures: dict[str, DebugCapture] = {}

        if self.output_dir:
            self.output_dir.mkdir(parents=True, exist_ok=True)

    def capture(
        self,
        execution_id: str,
        task_id: str,
        prompt: str = "",
        seed_message: str = "",
        capability_names: list[str] | None = None,
        skipped_capabilities: list[str] | None = None,
    ) -> DebugCapture | None:
        """
        Capture invocation data for a run.

        Returns capture if enabled, None otherwise.
        """
        if not self.enabled:
            return None

        capture = DebugCapture(
            execution_id=str(execution_id),
            task_id=task_id,
            prompt=prompt,
            seed_message=seed_message,
            capability_names=list(capability_names or []),
            skipped_capabilities=list(skipped_capabilities or []),
        )
        self._captures.pop(capture.execution_id, None)
        self._captures[capture.execution_id] = capture
        while len(self._captures) > self.max_captures:
            del self._captures[next(iter(self._captures))]

        if self.log_to_console:
            logger.debug(
                f"Model invoked: prompt={len(prompt)} chars, "
                f"capabilities={capture.capability_names}"
            )
            for name in capture.skipped_capabilities:
                logger.debug(f"Capability skipped: {name}")

        self._save(capture)
        return capture

    def finish(
        self,
        execution_id: str,
        status: str,
        step_count: int,
        error: str | None = None,
    ) -> DebugCapture | None:
        """Attach the run's outcome to its capture, if one was taken."""
        capture = self._captures.get(str(execution_id)) if self.enabled else None
        if capture is None:
            return None

        capture.status = status
        capture.step_count = step_count
        capture.error = error
        if self.log_to_console:
            logger.debug(f"Run {capture.status} after {step_count} steps")

        self._save(capture)
        return capture

    def get_captures(
        self,
        execution_id: str | None = None,
        task_id: str | None = None,
    ) -> list[DebugCapture]:
        """Query recorded captures, oldest first."""
        return [
            c for c in self._captures.values()
            if (not execution_id or c.execution_id == execution_id)
            and (not task_id or c.task_id == task_id)
        ]

    def clear(self) -> None:
        self._captures.clear()

    def _save(self, capture: DebugCapture) -> None:
        if not self.output_dir:
            return
        path = self.output_dir / f"{capture.execution_id}.json"
        path.write_text(capture.to_json())


# Process-wide default recorder
_recorder = DebugRecorder(enabled=False)


def enable_debug(
    output_dir: Path | str | None = None,
    log_to_console: bool = True,
) -> None:
    """Enable debug mode globally."""
    global _recorder
    _recorder = DebugRecorder(
        enabled=True,
        output_dir=output_dir,
        log_to_console=log_to_console,
    )


def disable_debug() -> None:
    global _recorder
    _recorder = DebugRecorder(enabled=False)


def get_debug_recorder() -> DebugRecorder:
    """Get global debug recorder."""
    return _recorder


def is_debug_enabled() -> bool:
    return _recorder.enabled
