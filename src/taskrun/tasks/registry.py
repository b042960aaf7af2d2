"""
Task Registry — Lookup of task definitions by id.

Definitions are static configuration; the registry is filled at
process start and read by callers that resolve a task before
handing it to the engine.
"""

from dataclasses import dataclass, field
from typing import Any

from taskrun.tasks.definition import TaskDefinition


@dataclass
class TaskRegistry:
    """
    Registry of available task definitions.
    """
    _tasks: dict[str, TaskDefinition] = field(default_factory=dict)

    def register(self, task: TaskDefinition) -> None:
        """Register a task. Ids must be unique."""
        if task.id in self._tasks:
            raise ValueError(f"Task already registered: {task.id}")
        self._tasks[task.id] = task

    def get(self, task_id: str) -> TaskDefinition | None:
        return self._tasks.get(task_id)

    def list_tasks(self) -> list[TaskDefinition]:
        return list(self._tasks.values())

    def describe_all(self) -> list[dict[str, Any]]:
        """Serialisable view of every registered task."""
        return [task.describe() for task in self._tasks.values()]

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)


def create_task_registry(*tasks: TaskDefinition) -> TaskRegistry:
    """Factory for a task registry pre-filled with definitions."""
    registry = TaskRegistry()
    for task in tasks:
        registry.register(task)
    return registry
