"""
Record Writer — Ordered, non-blocking persistence for one run.

The execution loop never waits on intermediate writes. Patches are
queued and applied by a single background task in submission order, so
an older step snapshot can never overwrite a newer one. Only the final
write is awaited.
"""

import asyncio
import contextlib
from typing import Any

from taskrun.execution.storage import ExecutionStore
from taskrun.observability import MetricsRegistry, get_logger, get_metrics

logger = get_logger("execution.writer")


class RecordWriter:
    """
    Per-run write queue in front of an ExecutionStore.

    Failures are logged and counted, never raised to the caller.
    """

    def __init__(
        self,
        store: ExecutionStore,
        record_id: str,
        metrics: MetricsRegistry | None = None,
        drain_timeout_seconds: float = 5.0,
    ):
        self.store = store
        self.record_id = record_id
        self.metrics = metrics or get_metrics()
        self.drain_timeout_seconds = drain_timeout_seconds
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._closed = False
        self.failures = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, fields: dict[str, Any]) -> None:
        """Queue a non-final patch. Returns immediately."""
        if self._closed:
            logger.warning(f"Patch submitted after finalise for {self.record_id} (dropped)")
            return
        self._queue.put_nowait(fields)
        if self._worker is None:
            self._worker = asyncio.create_task(self._drain_forever())

    async def _drain_forever(self) -> None:
        while True:
            fields = await self._queue.get()
            try:
                await self.store.patch(self.record_id, fields)
            except Exception as e:
                self._record_failure("patch", e)
            finally:
                self._queue.task_done()

    async def finalise(self, fields: dict[str, Any]) -> bool:
        """
        Drain pending patches, then write the terminal state.

        Returns:
            True if the final write succeeded
        """
        self._closed = True
        if self._worker is not None:
            try:
                await asyncio.wait_for(self._queue.join(), self.drain_timeout_seconds)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Gave up draining {self._queue.qsize()} pending patch(es) "
                    f"for {self.record_id}"
                )
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

        try:
            await self.store.patch(self.record_id, fields, final=True)
        except Exception as e:
            self._record_failure("final write", e)
            return False
        return True

    def _record_failure(self, what: str, error: Exception) -> None:
        self.failures += 1
        self.metrics.persistence_failures.inc()
        logger.warning(f"Execution record {what} failed for {self.record_id}: {error}")
