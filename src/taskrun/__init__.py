"""
taskrun — Autonomous task-execution engine.

Turns a static task definition plus invocation input into a bounded,
observable, auditable sequence of model-invocation steps.
"""

__version__ = "0.1.0"
