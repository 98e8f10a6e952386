"""Task management module: validation, queries, persistence and the task manager."""

from .kv_store import InMemoryKeyValueStore, SQLiteKeyValueStore
from .models import (
    OperationResult,
    SortKey,
    SortOrder,
    StorageInfo,
    Task,
    TaskPriority,
    TaskStats,
)
from .query import filter_tasks, get_task_stats, sort_tasks
from .storage import TaskStorage
from .task_manager import TaskManager
from .validation import validate_task

__all__ = [
    "Task",
    "TaskPriority",
    "TaskStats",
    "SortKey",
    "SortOrder",
    "OperationResult",
    "StorageInfo",
    "InMemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "TaskStorage",
    "TaskManager",
    "validate_task",
    "sort_tasks",
    "filter_tasks",
    "get_task_stats",
]
