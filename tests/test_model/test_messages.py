"""Tests for model messages."""

import pytest
from pydantic import ValidationError

from taskrun.model import (
    CapabilityCall,
    CapabilityOutcome,
    InvocationRequest,
    ModelEvent,
    ModelUsage,
)


class TestModelEvent:
    """Tests for ModelEvent."""

    def test_result_for(self):
        """Outcomes are matched by call id."""
        event = ModelEvent(
            capability_calls=[CapabilityCall(call_id="c1", name="echo", input={})],
            capability_results=[CapabilityOutcome(call_id="c1", output="hi")],
        )
        assert event.result_for("c1").output == "hi"
        assert event.result_for("c2") is None

    def test_text_only(self):
        """Events default to no calls."""
        event = ModelEvent(text="hello")
        assert event.capability_calls == []


class TestModelUsage:
    """Tests for ModelUsage."""

    def test_addition(self):
        """Usage adds field-wise."""
        total = ModelUsage(input_units=1, output_units=2, total_units=3) + ModelUsage(
            input_units=10, output_units=20, total_units=30
        )
        assert total == ModelUsage(input_units=11, output_units=22, total_units=33)


class TestInvocationRequest:
    """Tests for InvocationRequest."""

    def test_bounds_must_be_positive(self):
        """Non-positive bounds are rejected."""
        with pytest.raises(ValidationError):
            InvocationRequest(
                prompt="p",
                seed_message="s",
                max_steps=0,
                max_execution_millis=1000,
                chunk_timeout_millis=1000,
            )
