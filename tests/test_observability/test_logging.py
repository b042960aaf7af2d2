"""Tests for logging infrastructure."""

import json
import logging
from io import StringIO
from uuid import uuid4

from taskrun.observability import (
    RunTags,
    LogContext,
    configure_logging,
    get_execution_id,
    get_logger,
    get_run_tags,
    set_execution_id,
)


class TestExecutionId:
    """Tests for execution ID management."""

    def setup_method(self):
        """Reset execution ID before each test."""
        set_execution_id(None)

    def test_set_and_get(self):
        """Can set and get execution ID."""
        eid = str(uuid4())
        set_execution_id(eid)
        assert get_execution_id() == eid

    def test_none_when_not_set(self):
        """Returns None when not set."""
        assert get_execution_id() is None

    def test_uuid_converted_to_string(self):
        """UUID is converted to string."""
        eid = uuid4()
        set_execution_id(eid)
        assert get_execution_id() == str(eid)


class TestLogContext:
    """Tests for log context manager."""

    def setup_method(self):
        set_execution_id(None)

    def test_context_restores_previous(self):
        """Context manager restores previous ID."""
        set_execution_id("outer")

        with LogContext("inner"):
            assert get_execution_id() == "inner"

        assert get_execution_id() == "outer"


class TestConfigureLogging:
    """Tests for logging configuration."""

    def setup_method(self):
        set_execution_id(None)

    def test_logger_namespace(self):
        """Component loggers live under taskrun."""
        configure_logging(level=logging.DEBUG)
        assert get_logger("engine").name == "taskrun.engine"

    def test_json_format(self):
        """JSON format produces valid JSON tagged with the run."""
        stream = StringIO()
        configure_logging(json_format=True, stream=stream)

        with LogContext("rec-123"):
            get_logger("json_test").info("Step emitted")

        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "Step emitted"
        assert entry["execution_id"] == "rec-123"
        assert entry["logger"] == "taskrun.json_test"

    def test_readable_format(self):
        """Readable format includes the short execution ID."""
        stream = StringIO()
        configure_logging(json_format=False, stream=stream)

        with LogContext("abcd1234-5678"):
            get_logger("readable_test").warning("Unknown capability")

        output = stream.getvalue()
        assert "[abcd1234]" in output
        assert "Unknown capability" in output

    def test_no_execution_placeholder(self):
        """Lines outside a run show a placeholder."""
        stream = StringIO()
        configure_logging(stream=stream)
        get_logger("idle").info("Idle")
        assert "[-]" in stream.getvalue()

    def test_run_tags_in_json(self):
        """Task and tenant ids ride along inside a run."""
        stream = StringIO()
        configure_logging(json_format=True, stream=stream)

        with LogContext("rec-9", task_id="echo", tenant_id="org-1"):
            get_logger("engine").info("Run started")
        get_logger("engine").info("Idle")

        inside, outside = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert inside["task_id"] == "echo"
        assert inside["tenant_id"] == "org-1"
        assert "task_id" not in outside
        assert outside["execution_id"] == "-"

    def test_readable_shows_task(self):
        """Readable lines name the task next to the logger."""
        stream = StringIO()
        configure_logging(stream=stream)

        with LogContext("abcd1234-5678", task_id="echo"):
            get_logger("engine").info("Run started")

        assert "taskrun.engine (echo): Run started" in stream.getvalue()


class TestRunTags:
    """Tests for run tag propagation."""

    def test_set_execution_id_keeps_task(self):
        """Replacing the execution ID leaves other tags in place."""
        with LogContext("rec-1", task_id="echo"):
            set_execution_id("rec-2")
            assert get_run_tags() == RunTags("rec-2", "echo", None)
        assert get_run_tags().task_id is None
