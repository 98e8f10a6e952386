"""Custom exceptions for task management functionality."""


class TaskManagementError(Exception):
    """Base exception for task management errors."""

    pass


class TaskNotFoundError(TaskManagementError):
    """Exception raised when a task is not found."""

    pass


class StorageError(TaskManagementError):
    """Exception raised for key-value store related errors."""

    pass


class StorageUnavailableError(StorageError):
    """Exception raised when the backing store cannot be used at all."""

    pass


class QuotaExceededError(StorageError):
    """Exception raised when a write would exceed the store quota."""

    pass


class RestoreError(StorageError):
    """Exception raised when a backup cannot be restored."""

    pass


class RestoreReadError(RestoreError):
    """Exception raised when the backup source cannot be read."""

    pass


class RestoreParseError(RestoreError):
    """Exception raised when the backup content is not valid JSON."""

    pass


class RestoreFormatError(RestoreError):
    """Exception raised when the backup content is not a list of tasks."""

    pass
