"""
Run Control — Best-effort cancellation for a running task.
"""

from dataclasses import dataclass

DEFAULT_CANCEL_REASON = "Execution stopped by user"


class RunCancelledError(Exception):
    """Raised inside the loop when a cancel request is observed."""

    def __init__(self, reason: str = DEFAULT_CANCEL_REASON):
        super().__init__(reason)
        self.reason = reason


@dataclass
class RunControl:
    """
    Cancel flag shared between a run and its controller.

    The engine only looks at the flag between model events, so a
    capability call already in flight still completes.
    """
    cancel_requested: bool = False
    reason: str | None = None

    def request_cancel(self, reason: str = DEFAULT_CANCEL_REASON) -> None:
        if not self.cancel_requested:
            self.cancel_requested = True
            self.reason = reason
