"""
Engine Events — Multiplexing one run's callbacks to several consumers.

EventBus turns the six callbacks into a single ordered stream of tagged
events. EventChannel is an async-iterable subscriber for consumers that
prefer `async for` over callbacks.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from taskrun.engine.callbacks import ExecutionCallbacks
from taskrun.observability import get_logger
from taskrun.vocabulary import EngineEventKind

logger = get_logger("engine.events")


@dataclass
class EngineEvent:
    """
    One tagged engine event.

    Payload by kind:
    - created: record id
    - step: Step
    - live_view: URL
    - sub_action: SubAction
    - complete: RunOutcome
    - error: Exception
    """
    kind: EngineEventKind
    payload: Any
    sequence: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


EventHandler = Callable[[EngineEvent], None]


@dataclass
class DeliveryFailure:
    """Record of a failed delivery to a subscriber."""
    handler: EventHandler
    exception: Exception


class EventBus:
    """
    Publishes one run's events to every subscriber.

    Failing handlers are logged but don't halt delivery to others.
    """

    def __init__(self):
        self._subscribers: list[EventHandler] = []
        self._events: list[EngineEvent] = []
        self._sequence = 0

    def subscribe(self, handler: EventHandler) -> None:
        self._subscribers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def publish(
        self,
        kind: EngineEventKind,
        payload: Any = None,
    ) -> tuple[EngineEvent, list[DeliveryFailure]]:
        """
        Publish an event.

        Returns tuple of (event, failures).
        """
        event = EngineEvent(kind=kind, payload=payload, sequence=self._sequence)
        self._sequence += 1
        self._events.append(event)

        failures: list[DeliveryFailure] = []
        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception as exc:
                failures.append(DeliveryFailure(handler=handler, exception=exc))
                logger.error(
                    f"Failed to deliver {kind.value} event: {exc}",
                    exc_info=True
                )
        return event, failures

    def get_events(self, kind: EngineEventKind | None = None) -> list[EngineEvent]:
        """Event log with optional kind filter."""
        if kind is None:
            return list(self._events)
        return [e for e in self._events if e.kind == kind]

    def callbacks(self) -> ExecutionCallbacks:
        """ExecutionCallbacks that publish onto this bus."""
        return ExecutionCallbacks(
            on_step=lambda step: self.publish(EngineEventKind.STEP, step),
            on_complete=lambda outcome: self.publish(EngineEventKind.COMPLETE, outcome),
            on_error=lambda error: self.publish(EngineEventKind.ERROR, error),
            on_live_view=lambda url: self.publish(EngineEventKind.LIVE_VIEW, url),
            on_sub_action=lambda action: self.publish(EngineEventKind.SUB_ACTION, action),
            on_execution_created=lambda record_id: self.publish(EngineEventKind.CREATED, record_id),
        )

    def channel(self) -> "EventChannel":
        """Subscribe and return a new EventChannel."""
        channel = EventChannel()
        self.subscribe(channel)
        return channel


class EventChannel:
    """
    Queue-backed subscriber.

    Iteration yields events in publish order and stops after the
    terminal complete/error event.
    """

    def __init__(self):
        self._queue: asyncio.Queue[EngineEvent] = asyncio.Queue()
        self._finished = False

    def __call__(self, event: EngineEvent) -> None:
        self._queue.put_nowait(event)

    def __aiter__(self) -> "EventChannel":
        return self

    async def __anext__(self) -> EngineEvent:
        if self._finished:
            raise StopAsyncIteration
        event = await self._queue.get()
        if event.kind.is_terminal:
            self._finished = True
        return event

    async def collect(self) -> list[EngineEvent]:
        """Drain the channel up to and including the terminal event."""
        return [event async for event in self]


def create_event_bus() -> EventBus:
    """Factory for event bus."""
    return EventBus()
