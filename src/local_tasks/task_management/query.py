"""Sorting, filtering and statistics over task sequences.

All functions are pure: the input sequence is never modified and a new list
(or derived value) is returned.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Any

from .config import DEFAULT_SORT_BY, DEFAULT_SORT_ORDER
from .models import PRIORITY_ORDER, SortKey, SortOrder, Task, TaskPriority, TaskStats
from .validation import parse_timestamp

logger = logging.getLogger(__name__)

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def _created_key(task: Task) -> datetime:
    parsed = parse_timestamp(task.created_at)
    if parsed is None:
        return _EARLIEST
    if parsed.tzinfo is None:
        # Naive timestamps are treated as UTC
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _priority_key(task: Task) -> int:
    return PRIORITY_ORDER.get(task.priority_value, 0)


def _progress_key(task: Task) -> int:
    return 1 if task.completed else 0


def _title_key(task: Task) -> str:
    return task.title.casefold()


_SORT_KEYS: dict[str, Callable[[Task], Any]] = {
    SortKey.CREATED.value: _created_key,
    SortKey.PRIORITY.value: _priority_key,
    SortKey.PROGRESS.value: _progress_key,
    SortKey.TITLE.value: _title_key,
}


def _is_task_sequence(tasks: Any) -> bool:
    return isinstance(tasks, Sequence) and not isinstance(tasks, (str, bytes))


def sort_tasks(
    tasks: Sequence[Task],
    sort_by: str = DEFAULT_SORT_BY,
    sort_order: str = DEFAULT_SORT_ORDER,
) -> list[Task]:
    """
    Sort tasks by the given key and direction.

    The sort is stable in both directions: tasks that compare equal keep
    their input order. An unknown key returns the tasks in input order.

    Args:
        tasks: Sequence of tasks
        sort_by: One of created, priority, progress, title
        sort_order: asc or desc

    Returns:
        New sorted list (empty list for non-sequence input)
    """
    if not _is_task_sequence(tasks):
        logger.debug(f"sort_tasks received {type(tasks).__name__}, returning []")
        return []

    key = _SORT_KEYS.get(getattr(sort_by, "value", sort_by))
    if key is None:
        return list(tasks)

    descending = getattr(sort_order, "value", sort_order) != SortOrder.ASC.value
    return sorted(tasks, key=key, reverse=descending)


def filter_tasks(tasks: Sequence[Task], search_term: str | None) -> Sequence[Task]:
    """
    Filter tasks by a case-insensitive substring of title or description.

    Args:
        tasks: Sequence of tasks
        search_term: Text to look for

    Returns:
        Matching tasks, or the input unchanged when the term is empty or
        the input is not a sequence
    """
    if not search_term or not isinstance(search_term, str):
        return tasks
    if not _is_task_sequence(tasks):
        return tasks

    term = search_term.strip().casefold()
    return [
        task
        for task in tasks
        if term in task.title.casefold()
        or (task.description and term in task.description.casefold())
    ]


def filter_by_status(tasks: Sequence[Task], completed: bool) -> list[Task]:
    """Return tasks whose completion flag equals ``completed``."""
    return [task for task in tasks if task.completed is completed]


def filter_by_priority(tasks: Sequence[Task], priority: TaskPriority | str) -> list[Task]:
    """Return tasks with the given priority."""
    wanted = getattr(priority, "value", priority)
    return [task for task in tasks if task.priority_value == wanted]


def get_task_stats(tasks: Sequence[Task]) -> TaskStats:
    """
    Compute aggregate statistics.

    Returns:
        TaskStats with totals, per-priority counts and completion rate
        (0 for an empty collection)
    """
    stats = TaskStats()
    if not _is_task_sequence(tasks):
        return stats

    for task in tasks:
        stats.total += 1
        if task.completed:
            stats.completed += 1
        else:
            stats.pending += 1

        priority = task.priority_value
        if priority == TaskPriority.HIGH.value:
            stats.high_priority += 1
        elif priority == TaskPriority.MEDIUM.value:
            stats.medium_priority += 1
        elif priority == TaskPriority.LOW.value:
            stats.low_priority += 1

    if stats.total > 0:
        stats.completion_rate = stats.completed / stats.total * 100
    return stats
