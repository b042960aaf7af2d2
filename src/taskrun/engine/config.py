"""
Engine Configuration — Tunables for the execution engine.
"""

import os
from dataclasses import dataclass


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    """Configuration for ExecutionEngine."""
    strict_capabilities: bool = False  # Fail runs on unknown capability names
    chunk_timeout_millis: int = 30_000  # Max stall between two model events
    default_summary: str = "Task execution completed."
    writer_drain_timeout_seconds: float = 5.0

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """
        Build config from TASKRUN_* environment variables.

        Unset variables keep their defaults.
        """
        config = cls()
        if "TASKRUN_STRICT_CAPABILITIES" in os.environ:
            config.strict_capabilities = _env_bool(os.environ["TASKRUN_STRICT_CAPABILITIES"])
        if "TASKRUN_CHUNK_TIMEOUT_MS" in os.environ:
            config.chunk_timeout_millis = int(os.environ["TASKRUN_CHUNK_TIMEOUT_MS"])
        if "TASKRUN_DEFAULT_SUMMARY" in os.environ:
            config.default_summary = os.environ["TASKRUN_DEFAULT_SUMMARY"]
        if "TASKRUN_WRITER_DRAIN_TIMEOUT" in os.environ:
            config.writer_drain_timeout_seconds = float(os.environ["TASKRUN_WRITER_DRAIN_TIMEOUT"])
        return config
