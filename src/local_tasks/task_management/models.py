"""Data models for task management functionality."""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class TaskPriority(str, Enum):
    """Task priority enumeration."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# Weights used when ordering by priority (higher is more urgent)
PRIORITY_ORDER: dict[str, int] = {
    TaskPriority.HIGH.value: 3,
    TaskPriority.MEDIUM.value: 2,
    TaskPriority.LOW.value: 1,
}


class SortKey(str, Enum):
    """Fields a task view can be ordered by."""

    CREATED = "created"
    PRIORITY = "priority"
    PROGRESS = "progress"
    TITLE = "title"


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


@dataclass
class Task:
    """Represents a task record.

    The wire form (``to_dict``) uses ``createdAt`` for the creation
    timestamp so persisted slots and backup files stay interchangeable.
    """

    id: str
    title: str
    priority: TaskPriority
    created_at: str
    description: str = ""
    completed: bool = False

    @property
    def priority_value(self) -> Any:
        """Wire value of the priority (plain strings pass through unchanged)."""
        return getattr(self.priority, "value", self.priority)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted field layout."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority_value,
            "completed": self.completed,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Task":
        """
        Build a task from its wire form.

        Args:
            data: Mapping with wire field names (``created_at`` is accepted too)

        Returns:
            Task instance

        Raises:
            ValueError: If a required field is missing or has the wrong type
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Task data must be a mapping, got {type(data).__name__}")

        created_at = data.get("createdAt", data.get("created_at"))
        task_id = data.get("id")
        title = data.get("title")
        description = data.get("description") or ""
        completed = data.get("completed", False)

        if not isinstance(task_id, str) or not task_id:
            raise ValueError("Task id must be a non-empty string")
        if not isinstance(title, str):
            raise ValueError("Task title must be a string")
        if not isinstance(created_at, str):
            raise ValueError("Task createdAt must be a string")
        if not isinstance(description, str):
            raise ValueError("Task description must be a string")
        if not isinstance(completed, bool):
            raise ValueError("Task completed must be a boolean")

        return cls(
            id=task_id,
            title=title,
            description=description,
            priority=TaskPriority(data.get("priority")),
            completed=completed,
            created_at=created_at,
        )


@dataclass
class TaskStats:
    """Aggregate statistics over a task collection."""

    total: int = 0
    completed: int = 0
    pending: int = 0
    high_priority: int = 0
    medium_priority: int = 0
    low_priority: int = 0
    completion_rate: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class OperationResult:
    """Outcome of a Task Manager operation."""

    success: bool
    task: Task | None = None
    error: str | None = None
    errors: dict[str, str] = field(default_factory=dict)
    not_found: bool = False
    saved: bool | None = None


@dataclass
class StorageInfo:
    """Usage information about the persistence slot."""

    task_count: int = 0
    storage_size: int = 0
    is_available: bool = False
    error: str | None = None
