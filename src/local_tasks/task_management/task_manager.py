"""Task Manager owning the in-memory task collection."""

import logging
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_AUTO_SAVE, DEFAULT_SORT_BY, DEFAULT_SORT_ORDER
from .exceptions import RestoreError, TaskNotFoundError
from .models import OperationResult, Task, TaskPriority, TaskStats
from .query import (
    filter_by_priority,
    filter_by_status,
    filter_tasks,
    get_task_stats,
    sort_tasks,
)
from .storage import TaskStorage
from .validation import format_errors, validate_task

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"title", "description", "priority", "completed"})
IMMUTABLE_FIELDS = {"id": "id", "created_at": "created_at", "createdAt": "created_at"}

Patch = Mapping[str, Any] | Callable[[Task], Mapping[str, Any]]


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskManager:
    """
    Manages the task collection with validation and persistence.

    The in-memory collection is the source of truth for the session; the
    storage slot mirrors it after every successful mutation. A failed save
    never undoes the mutation, it is reported through ``persistence_error``
    and ``OperationResult.saved``.
    """

    def __init__(
        self,
        storage: TaskStorage,
        auto_save: bool = DEFAULT_AUTO_SAVE,
        default_sort_by: str = DEFAULT_SORT_BY,
        default_sort_order: str = DEFAULT_SORT_ORDER,
    ) -> None:
        """
        Initialize Task Manager.

        Args:
            storage: Persistence adapter for the task slot
            auto_save: Save after every successful mutation
            default_sort_by: Initial sort key for the ``tasks`` view
            default_sort_order: Initial sort direction for the ``tasks`` view
        """
        self._storage = storage
        self._tasks: list[Task] = []
        self.auto_save = auto_save
        self.sort_by = default_sort_by
        self.sort_order = default_sort_order
        self.loading = True
        self.error: str | None = None
        self.persistence_error: str | None = None

    def initialize(self) -> None:
        """
        Load the stored collection.

        Any failure leaves the manager with an empty collection.
        """
        logger.info("Initializing Task Manager")
        try:
            self._tasks = list(self._storage.load())
            self.error = None
        except Exception as e:
            logger.error(f"Error loading tasks: {e}")
            self._tasks = []
            self.error = "Failed to load tasks"
        finally:
            self.loading = False

        logger.info(f"Task Manager initialized with {len(self._tasks)} tasks")

    # ---- persistence ----

    def save(self) -> bool:
        """
        Write the current collection to storage.

        Returns:
            True if the collection was persisted
        """
        saved = self._storage.save(self._tasks)
        if saved:
            self.persistence_error = None
        else:
            self.persistence_error = "Failed to save tasks; changes are kept in memory only"
            logger.warning(self.persistence_error)
        return saved

    def _after_mutation(self, task: Task | None = None) -> OperationResult:
        self.error = None
        saved = self.save() if self.auto_save else None
        return OperationResult(success=True, task=task, saved=saved)

    def _fail(
        self,
        message: str,
        errors: dict[str, str] | None = None,
        not_found: bool = False,
    ) -> OperationResult:
        self.error = message
        return OperationResult(
            success=False, error=message, errors=errors or {}, not_found=not_found
        )

    # ---- lookups ----

    def _index_of(self, task_id: str) -> int:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        raise TaskNotFoundError(f"Task with ID {task_id} not found")

    def _new_id(self) -> str:
        existing = {task.id for task in self._tasks}
        task_id = str(uuid.uuid4())
        while task_id in existing:
            task_id = str(uuid.uuid4())
        return task_id

    # ---- operations ----

    def add_task(self, draft: Mapping[str, Any] | None) -> OperationResult:
        """
        Create a task from a draft.

        ``id`` and ``created_at`` are always assigned here; values for them
        in the draft are ignored.

        Args:
            draft: Caller fields (title, description, priority, completed)

        Returns:
            OperationResult with the created task, or the validation errors
        """
        if not isinstance(draft, Mapping):
            draft = {}

        fields: dict[str, Any] = {"description": "", "completed": False}
        unknown: dict[str, str] = {}
        for name, value in draft.items():
            if name in IMMUTABLE_FIELDS:
                continue
            if name not in EDITABLE_FIELDS:
                unknown[name] = f"Unknown field: {name}"
                continue
            fields[name] = value

        candidate = {**fields, "id": self._new_id(), "createdAt": _utc_timestamp()}
        if candidate["description"] is None:
            candidate["description"] = ""

        errors = {**validate_task(candidate), **unknown}
        if errors:
            logger.debug(f"Rejected new task: {format_errors(errors)}")
            return self._fail(format_errors(errors), errors)

        task = Task.from_dict(candidate)
        self._tasks.append(task)
        logger.info(f"Added task {task.id}: {task.title}")
        return self._after_mutation(task)

    def update_task(self, task_id: str, patch: Patch) -> OperationResult:
        """
        Apply a partial update to a task.

        Args:
            task_id: Task ID
            patch: Field overrides, or a callable receiving the current task
                and returning the overrides

        Returns:
            OperationResult with the updated task, or a not-found/validation failure
        """
        try:
            index = self._index_of(task_id)
        except TaskNotFoundError as e:
            logger.warning(f"Task not found: {e}")
            return self._fail("Task not found", not_found=True)

        current = self._tasks[index]
        changes = patch(current) if callable(patch) else patch
        if not isinstance(changes, Mapping):
            return self._fail(
                "Update must be a mapping of fields",
                {"task": "Update must be a mapping of fields"},
            )

        merged = current.to_dict()
        errors: dict[str, str] = {}
        for name, value in changes.items():
            if name in IMMUTABLE_FIELDS:
                field = IMMUTABLE_FIELDS[name]
                if value != getattr(current, field):
                    errors[field] = f"{field} cannot be changed"
                continue
            if name not in EDITABLE_FIELDS:
                errors[name] = f"Unknown field: {name}"
                continue
            merged[name] = "" if name == "description" and value is None else value

        errors = {**validate_task(merged), **errors}
        if errors:
            logger.debug(f"Rejected update of {task_id}: {format_errors(errors)}")
            return self._fail(format_errors(errors), errors)

        updated = Task.from_dict(merged)
        self._tasks[index] = updated
        logger.info(f"Updated task {task_id} fields: {list(changes.keys())}")
        return self._after_mutation(updated)

    def toggle_task(self, task_id: str) -> OperationResult:
        """Flip the completion flag of a task."""
        return self.update_task(task_id, lambda task: {"completed": not task.completed})

    def delete_task(self, task_id: str) -> OperationResult:
        """
        Delete a task.

        Args:
            task_id: Task ID

        Returns:
            OperationResult carrying the removed task, or a not-found failure
        """
        try:
            index = self._index_of(task_id)
        except TaskNotFoundError as e:
            logger.warning(f"Task not found: {e}")
            return self._fail("Task not found", not_found=True)

        removed = self._tasks.pop(index)
        logger.info(f"Deleted task {task_id}")
        return self._after_mutation(removed)

    def clear_all_tasks(self) -> OperationResult:
        """Remove every task."""
        count = len(self._tasks)
        self._tasks = []
        logger.info(f"Cleared {count} tasks")
        return self._after_mutation()

    # ---- backup / restore ----

    def backup(self) -> str | None:
        """Return a pretty-printed JSON backup of the collection."""
        return self._storage.backup(self._tasks)

    def write_backup(self, path: str | Path) -> Path | None:
        """Write a backup file (see ``TaskStorage.write_backup``)."""
        return self._storage.write_backup(self._tasks, path)

    async def restore(self, source: Any) -> OperationResult:
        """
        Replace the collection with the contents of a backup.

        Args:
            source: Anything accepted by ``TaskStorage.restore``

        Returns:
            OperationResult; on failure the collection is left untouched
        """
        try:
            restored = await self._storage.restore(source)
        except RestoreError as e:
            logger.error(f"Error restoring backup: {e}")
            return self._fail(str(e))

        ids = [task.id for task in restored]
        if len(ids) != len(set(ids)):
            return self._fail("Backup contains duplicate task ids")

        self._tasks = restored
        logger.info(f"Restored {len(restored)} tasks")
        return self._after_mutation()

    # ---- derived reads ----

    def update_sort(self, sort_by: str, sort_order: str) -> None:
        """Set the sort configuration of the ``tasks`` view."""
        self.sort_by = sort_by
        self.sort_order = sort_order

    @property
    def tasks(self) -> list[Task]:
        """Tasks ordered by the current sort configuration."""
        return sort_tasks(self._tasks, self.sort_by, self.sort_order)

    def search(self, search_term: str | None) -> list[Task]:
        """Sorted view restricted to tasks matching ``search_term``."""
        return list(filter_tasks(self.tasks, search_term))

    def get_task_by_id(self, task_id: str) -> Task | None:
        try:
            return self._tasks[self._index_of(task_id)]
        except TaskNotFoundError:
            return None

    def get_tasks_by_status(self, completed: bool) -> list[Task]:
        return filter_by_status(self._tasks, completed)

    def get_tasks_by_priority(self, priority: TaskPriority | str) -> list[Task]:
        return filter_by_priority(self._tasks, priority)

    def get_statistics(self) -> TaskStats:
        """Aggregate statistics over the current collection."""
        return get_task_stats(self._tasks)

    @property
    def total_tasks(self) -> int:
        return len(self._tasks)

    @property
    def completed_tasks(self) -> int:
        return len(filter_by_status(self._tasks, True))

    @property
    def pending_tasks(self) -> int:
        return len(filter_by_status(self._tasks, False))
