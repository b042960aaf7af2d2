"""
Bounded Session — Enforces execution limits at the service boundary.

Wraps any ModelSession so that:
- the stream ends normally after max_steps events
- no single event takes longer than chunk_timeout_millis
- the whole run takes no longer than max_execution_millis
"""

import asyncio
import time
from typing import Callable

from taskrun.model.messages import InvocationRequest, ModelEvent, ModelUsage
from taskrun.model.service import (
    InvocationError,
    InvocationTimeoutError,
    ModelInvocationService,
    ModelSession,
)


class BoundedSession:
    """
    ModelSession decorator applying the request's limits.
    """

    def __init__(
        self,
        session: ModelSession,
        request: InvocationRequest,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._session = session
        self._iterator = None
        self._clock = clock
        self.max_steps = request.max_steps
        self.max_execution_millis = request.max_execution_millis
        self.chunk_timeout_millis = request.chunk_timeout_millis
        self._deadline = clock() + request.max_execution_millis / 1000
        self.rounds = 0

    @property
    def usage(self) -> ModelUsage:
        return self._session.usage

    @property
    def exhausted(self) -> bool:
        """True once max_steps rounds have been delivered."""
        return self.rounds >= self.max_steps

    def __aiter__(self) -> "BoundedSession":
        return self

    async def __anext__(self) -> ModelEvent:
        if self.exhausted:
            raise StopAsyncIteration

        remaining = self._deadline - self._clock()
        if remaining <= 0:
            raise InvocationTimeoutError("total", self.max_execution_millis)

        chunk = self.chunk_timeout_millis / 1000
        if chunk < remaining:
            bound, limit, timeout = "chunk", self.chunk_timeout_millis, chunk
        else:
            bound, limit, timeout = "total", self.max_execution_millis, remaining

        if self._iterator is None:
            self._iterator = self._session.__aiter__()

        try:
            event = await asyncio.wait_for(self._iterator.__anext__(), timeout)
        except StopAsyncIteration:
            raise
        except asyncio.TimeoutError as e:
            raise InvocationTimeoutError(bound, limit) from e
        except InvocationError:
            raise
        except Exception as e:
            raise InvocationError(f"Model invocation failed: {e}") from e

        self.rounds += 1
        return event

    async def aclose(self) -> None:
        await self._session.aclose()


def open_bounded_session(
    service: ModelInvocationService,
    request: InvocationRequest,
) -> BoundedSession:
    """
    Open a session on the service and wrap it in the request's bounds.

    Raises:
        InvocationError: the service could not open a session
    """
    try:
        session = service.open_session(request)
    except InvocationError:
        raise
    except Exception as e:
        raise InvocationError(f"Failed to open model session: {e}") from e
    return BoundedSession(session, request)
