"""Tests for execution records."""

import pytest

from taskrun.execution import ExecutionRecord, Step, Usage
from taskrun.vocabulary import ExecutionStatus, StepKind, TriggerKind


def _record(**kwargs) -> ExecutionRecord:
    defaults = dict(id="rec-1", task_id="echo", tenant_id="org-1", invoker_id="user-1")
    defaults.update(kwargs)
    return ExecutionRecord(**defaults)


class TestStep:
    """Tests for Step."""

    def test_capability_call(self):
        """Capability-call steps carry name, input and output."""
        step = Step.capability_call(1, "echo", {"msg": "hi"}, "hi")
        data = step.to_dict()

        assert data["kind"] == "capability-call"
        assert data["capability_name"] == "echo"
        assert data["output"] == "hi"
        assert "content" not in data

    def test_text(self):
        """Text steps carry content only."""
        data = Step.text(2, "Done.").to_dict()
        assert data["kind"] == "text"
        assert data["content"] == "Done."
        assert "capability_name" not in data

    def test_from_dict(self):
        """Steps rebuild from their dict form."""
        original = Step.capability_call(3, "search", {"q": "x"}, {"data": []})
        rebuilt = Step.from_dict(original.to_dict())

        assert rebuilt.index == 3
        assert rebuilt.kind == StepKind.CAPABILITY_CALL
        assert rebuilt.input == {"q": "x"}
        assert rebuilt.timestamp == original.timestamp


class TestExecutionRecord:
    """Tests for ExecutionRecord."""

    def test_defaults(self):
        """New records are running with no steps."""
        record = _record()
        assert record.status == ExecutionStatus.RUNNING
        assert record.steps == []
        assert record.completed_at is None
        assert not record.finalised

    def test_apply_converts_serialised_values(self):
        """apply() accepts step dicts and status strings."""
        record = _record()
        record.apply({
            "steps": [Step.text(1, "hello").to_dict()],
            "status": "completed",
            "usage": {"input_units": 3, "output_units": 2, "total_units": 5},
        })

        assert isinstance(record.steps[0], Step)
        assert record.status == ExecutionStatus.COMPLETED
        assert record.usage == Usage(3, 2, 5)

    def test_terminal_status_stamps_completion(self):
        """Reaching a terminal status sets completed_at."""
        record = _record()
        record.apply({"status": ExecutionStatus.FAILED, "output": {"error": "x"}})
        assert record.completed_at is not None
        assert not record.finalised

    def test_final_apply(self):
        """A final update marks the record finalised."""
        record = _record()
        record.apply({"status": ExecutionStatus.COMPLETED}, final=True)
        assert record.finalised

    @pytest.mark.parametrize("key", ["id", "finalised", "bogus"])
    def test_rejects_protected_fields(self, key):
        """id, finalised and unknown keys cannot be patched."""
        with pytest.raises(ValueError):
            _record().apply({key: "x"})

    def test_summary_and_error(self):
        """Convenience accessors read the output."""
        assert _record(output={"summary": "ok"}).summary == "ok"
        assert _record(output={"error": "bad"}).error == "bad"
        assert _record().summary is None

    def test_json_roundtrip(self):
        """Records survive a JSON roundtrip."""
        record = _record(
            trigger_kind=TriggerKind.SCHEDULE,
            input={"msg": "hi"},
            steps=[Step.capability_call(1, "echo", {"msg": "hi"}, "hi"), Step.text(2, "Echoed.")],
            usage=Usage(10, 5, 15),
            model_identifier="scripted-model",
        )
        record.apply({"status": "completed", "output": {"summary": "Echoed."}}, final=True)

        loaded = ExecutionRecord.from_json(record.to_json())
        assert loaded.to_dict() == record.to_dict()
        assert loaded.trigger_kind == TriggerKind.SCHEDULE

    def test_copy_is_detached(self):
        """copy() shares no mutable state."""
        record = _record(steps=[Step.text(1, "a")])
        clone = record.copy()
        clone.steps.append(Step.text(2, "b"))
        assert record.step_count == 1
