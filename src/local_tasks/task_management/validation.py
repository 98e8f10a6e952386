"""Field validation for task records."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from .config import MAX_DESCRIPTION_LENGTH, MAX_TITLE_LENGTH
from .models import Task, TaskPriority

VALID_PRIORITIES = frozenset(priority.value for priority in TaskPriority)


def parse_timestamp(value: str) -> datetime | None:
    """
    Parse an ISO-8601 timestamp.

    Accepts the trailing ``Z`` form written by other clients.

    Args:
        value: Timestamp text

    Returns:
        Parsed datetime, or None if the text is not a valid timestamp
    """
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def validate_task(record: Task | Mapping[str, Any] | None) -> dict[str, str]:
    """
    Validate a candidate task record.

    Every rule is checked independently so all problems are reported at once.
    ``completed`` is never coerced: anything other than a bool is rejected.

    Args:
        record: Task, wire/draft mapping, or None

    Returns:
        Mapping of field name to error message (empty when valid)
    """
    if isinstance(record, Task):
        data: Mapping[str, Any] = record.to_dict()
    elif isinstance(record, Mapping):
        data = record
    else:
        data = {}

    errors: dict[str, str] = {}

    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        errors["title"] = "Title is required and must be a non-empty string"
    elif len(title.strip()) > MAX_TITLE_LENGTH:
        errors["title"] = f"Title must be {MAX_TITLE_LENGTH} characters or less"

    description = data.get("description")
    if description is not None:
        if not isinstance(description, str):
            errors["description"] = "Description must be a string"
        elif len(description) > MAX_DESCRIPTION_LENGTH:
            errors["description"] = (
                f"Description must be {MAX_DESCRIPTION_LENGTH} characters or less"
            )

    priority = data.get("priority")
    if isinstance(priority, TaskPriority):
        priority = priority.value
    if not isinstance(priority, str) or priority not in VALID_PRIORITIES:
        errors["priority"] = "Priority must be High, Medium, or Low"

    if "completed" in data and not isinstance(data["completed"], bool):
        errors["completed"] = "Completed must be a boolean value"

    created_at = data.get("createdAt", data.get("created_at"))
    if created_at is not None and parse_timestamp(created_at) is None:
        errors["created_at"] = "CreatedAt must be a valid date"

    if "id" in data and (not isinstance(data["id"], str) or not data["id"]):
        errors["id"] = "Id must be a non-empty string"

    return errors


def is_valid_task(record: Task | Mapping[str, Any] | None) -> bool:
    """Return True if the record passes validation."""
    return not validate_task(record)


def format_errors(errors: Mapping[str, str]) -> str:
    """Join validation messages into a single display string."""
    return ", ".join(errors.values())
