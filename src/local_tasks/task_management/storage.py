"""Persistence of the task collection in a key-value store slot."""

import asyncio
import inspect
import json
import os
from collections.abc import Mapping, Sequence
from datetime import date
from pathlib import Path
from typing import Any

from ..logging_utils import get_logger
from .config import (
    AVAILABILITY_PROBE_KEY,
    BACKUP_FILENAME_TEMPLATE,
    BACKUP_INDENT,
    STORAGE_KEY,
)
from .exceptions import RestoreFormatError, RestoreParseError, RestoreReadError
from .interfaces import KeyValueStore
from .models import StorageInfo, Task
from .validation import format_errors, validate_task

logger = get_logger(__name__)


def _to_wire(tasks: Sequence[Task | Mapping[str, Any]]) -> list[Any]:
    return [task.to_dict() if isinstance(task, Task) else task for task in tasks]


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def backup_filename(today: date | None = None) -> str:
    """Return the default backup file name for the given day."""
    return BACKUP_FILENAME_TEMPLATE.format(date=(today or date.today()).isoformat())


class TaskStorage:
    """
    Stateless adapter between the task collection and one store slot.

    Every operation reports failure through its return value instead of
    raising, except ``restore`` which raises a classified ``RestoreError``.
    """

    def __init__(self, store: KeyValueStore, key: str = STORAGE_KEY) -> None:
        """
        Initialize the adapter.

        Args:
            store: Backing key-value store
            key: Slot name holding the serialized collection
        """
        self._store = store
        self.key = key

    def save(self, tasks: Sequence[Task]) -> bool:
        """
        Serialize and write the collection to the slot.

        Args:
            tasks: Tasks to persist

        Returns:
            True on success, False on any serialization or store failure
        """
        if not _is_sequence(tasks):
            logger.error(f"save: tasks must be a sequence, got {type(tasks).__name__}")
            return False

        try:
            payload = json.dumps(_to_wire(tasks))
            self._store.set_item(self.key, payload)
        except Exception as e:
            logger.error(f"Error saving tasks to store: {e}")
            return False

        logger.trace(f"Saved {len(tasks)} tasks ({len(payload)} chars) to '{self.key}'")
        return True

    def load(self) -> list[Task]:
        """
        Read the collection from the slot.

        Entries that are not valid task records, or that repeat an id seen
        earlier in the slot, are skipped.

        Returns:
            Stored tasks, or an empty list if the slot is absent or unreadable
        """
        try:
            payload = self._store.get_item(self.key)
        except Exception as e:
            logger.error(f"Error loading tasks from store: {e}")
            return []

        if not payload:
            return []

        try:
            data = json.loads(payload)
        except (ValueError, RecursionError) as e:
            logger.error(f"Error parsing stored tasks: {e}")
            return []

        if not isinstance(data, list):
            logger.warning("load: stored data is not a list, returning empty list")
            return []

        tasks: list[Task] = []
        seen_ids: set[str] = set()
        for index, entry in enumerate(data):
            errors = validate_task(entry)
            if errors:
                logger.warning(f"Skipping stored task #{index}: {format_errors(errors)}")
                continue
            try:
                task = Task.from_dict(entry)
            except ValueError as e:
                logger.warning(f"Skipping stored task #{index}: {e}")
                continue
            if task.id in seen_ids:
                logger.warning(f"Skipping stored task #{index}: duplicate id {task.id}")
                continue
            seen_ids.add(task.id)
            tasks.append(task)

        logger.trace(f"Loaded {len(tasks)} tasks from '{self.key}'")
        return tasks

    def clear(self) -> bool:
        """
        Remove the slot.

        Returns:
            True on success, False if the store failed
        """
        try:
            self._store.remove_item(self.key)
            return True
        except Exception as e:
            logger.error(f"Error clearing tasks from store: {e}")
            return False

    def is_available(self) -> bool:
        """Probe the store with a throwaway write/remove cycle."""
        try:
            self._store.set_item(AVAILABILITY_PROBE_KEY, "test")
            self._store.remove_item(AVAILABILITY_PROBE_KEY)
            return True
        except Exception as e:
            logger.debug(f"Store availability probe failed: {e}")
            return False

    def get_storage_info(self) -> StorageInfo:
        """Report task count, serialized size and availability of the slot."""
        try:
            tasks = self.load()
            size = len(json.dumps(_to_wire(tasks)).encode("utf-8"))
            return StorageInfo(
                task_count=len(tasks),
                storage_size=size,
                is_available=self.is_available(),
            )
        except Exception as e:
            return StorageInfo(error=str(e))

    def backup(self, tasks: Sequence[Task]) -> str | None:
        """
        Produce a pretty-printed JSON backup of the collection.

        Returns:
            Backup text, or None if serialization failed
        """
        try:
            return json.dumps(_to_wire(tasks), indent=BACKUP_INDENT)
        except Exception as e:
            logger.error(f"Error creating backup: {e}")
            return None

    def write_backup(self, tasks: Sequence[Task], path: str | Path) -> Path | None:
        """
        Write a backup file.

        Args:
            tasks: Tasks to back up
            path: Target file, or a directory to place ``backup_filename()`` in

        Returns:
            Path written, or None on failure
        """
        content = self.backup(tasks)
        if content is None:
            return None

        target = Path(path)
        if target.is_dir():
            target = target / backup_filename()
        try:
            target.write_text(content + "\n", encoding="utf-8")
        except OSError as e:
            logger.error(f"Error writing backup to {target}: {e}")
            return None

        logger.info(f"Wrote backup of {len(tasks)} tasks to {target}")
        return target

    async def restore(self, source: Any) -> list[Task]:
        """
        Read and parse a backup.

        Args:
            source: File path (str or PathLike), raw bytes, or a readable
                object whose ``read()`` returns text or bytes (sync or async)

        Returns:
            Tasks contained in the backup

        Raises:
            RestoreReadError: If the source cannot be read
            RestoreParseError: If the content is not valid JSON
            RestoreFormatError: If the content is not a list of task records
        """
        raw = await self._read_source(source)

        try:
            text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
            data = json.loads(text)
        except (UnicodeDecodeError, ValueError, TypeError, RecursionError) as e:
            raise RestoreParseError("Failed to parse backup file") from e

        if not isinstance(data, list):
            raise RestoreFormatError("Invalid backup file format")

        tasks: list[Task] = []
        for index, entry in enumerate(data):
            errors = validate_task(entry)
            if errors:
                raise RestoreFormatError(
                    f"Invalid task at index {index}: {format_errors(errors)}"
                )
            try:
                tasks.append(Task.from_dict(entry))
            except ValueError as e:
                raise RestoreFormatError(f"Invalid task at index {index}: {e}") from e

        logger.info(f"Restored {len(tasks)} tasks from backup")
        return tasks

    @staticmethod
    async def _read_source(source: Any) -> str | bytes:
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)

        if isinstance(source, (str, os.PathLike)):
            try:
                return await asyncio.to_thread(Path(source).read_bytes)
            except OSError as e:
                raise RestoreReadError("Failed to read backup file") from e

        read = getattr(source, "read", None)
        if read is None:
            raise RestoreReadError(
                f"Unsupported backup source: {type(source).__name__}"
            )

        try:
            if inspect.iscoroutinefunction(read):
                return await read()
            result = await asyncio.to_thread(read)
            if inspect.isawaitable(result):
                result = await result
            return result
        except (OSError, ValueError) as e:
            raise RestoreReadError("Failed to read backup file") from e
