"""Tests for the bounded session."""

import pytest

from taskrun.model import (
    InvocationError,
    InvocationRequest,
    InvocationTimeoutError,
    ScriptedModelService,
    ScriptedTurn,
    open_bounded_session,
)


def _request(max_steps=10, max_execution_millis=2_000, chunk_timeout_millis=1_000):
    return InvocationRequest(
        prompt="prompt",
        seed_message="seed",
        capabilities={},
        max_steps=max_steps,
        max_execution_millis=max_execution_millis,
        chunk_timeout_millis=chunk_timeout_millis,
    )


async def _drain(session):
    return [event async for event in session]


class TestStepBound:
    """Tests for max_steps."""

    @pytest.mark.asyncio
    async def test_stream_ends_at_max_steps(self):
        """The stream ends normally after max_steps rounds."""
        service = ScriptedModelService([ScriptedTurn(text=f"t{i}") for i in range(5)])
        session = open_bounded_session(service, _request(max_steps=1))

        events = await _drain(session)
        await session.aclose()

        assert [e.text for e in events] == ["t0"]
        assert session.exhausted
        assert service.sessions[0].closed

    @pytest.mark.asyncio
    async def test_short_stream_unaffected(self):
        """Streams shorter than the bound end on their own."""
        service = ScriptedModelService([ScriptedTurn(text="only")])
        events = await _drain(open_bounded_session(service, _request(max_steps=3)))
        assert len(events) == 1


class TestTimeBounds:
    """Tests for chunk and total timeouts."""

    @pytest.mark.asyncio
    async def test_chunk_timeout(self):
        """A stalled event trips the chunk bound."""
        service = ScriptedModelService([ScriptedTurn(text="slow", delay=1.0)])
        session = open_bounded_session(
            service, _request(max_execution_millis=5_000, chunk_timeout_millis=50)
        )

        with pytest.raises(InvocationTimeoutError) as exc_info:
            await _drain(session)
        assert exc_info.value.bound == "chunk"

    @pytest.mark.asyncio
    async def test_total_timeout(self):
        """Steady progress still cannot exceed the total bound."""
        service = ScriptedModelService([ScriptedTurn(text=str(i), delay=0.04) for i in range(10)])
        session = open_bounded_session(
            service, _request(max_execution_millis=100, chunk_timeout_millis=1_000)
        )

        with pytest.raises(InvocationTimeoutError) as exc_info:
            await _drain(session)
        assert exc_info.value.bound == "total"
        assert session.rounds >= 1

    @pytest.mark.asyncio
    async def test_timeout_is_invocation_error(self):
        """Timeouts are a kind of invocation error."""
        assert issubclass(InvocationTimeoutError, InvocationError)


class TestErrorWrapping:
    """Tests for service error wrapping."""

    @pytest.mark.asyncio
    async def test_service_error_wrapped(self):
        """Arbitrary service errors become InvocationError."""
        service = ScriptedModelService([ScriptedTurn(error=ConnectionError("reset"))])
        with pytest.raises(InvocationError, match="reset"):
            await _drain(open_bounded_session(service, _request()))

    @pytest.mark.asyncio
    async def test_invocation_error_passthrough(self):
        """InvocationErrors propagate unchanged."""
        original = InvocationError("protocol error")
        service = ScriptedModelService([ScriptedTurn(error=original)])
        with pytest.raises(InvocationError) as exc_info:
            await _drain(open_bounded_session(service, _request()))
        assert exc_info.value is original

    def test_open_failure_wrapped(self):
        """Errors opening a session become InvocationError."""
        class Unreachable:
            model_identifier = "down"

            def open_session(self, request):
                raise OSError("no route")

        with pytest.raises(InvocationError, match="no route"):
            open_bounded_session(Unreachable(), _request())
