"""Abstract interfaces for task management system."""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Abstract interface for a string key-value backing store."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """
        Read the value stored under a key.

        Args:
            key: Slot name

        Returns:
            Stored text, or None if the key is absent

        Raises:
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store a value under a key, replacing any previous value.

        Args:
            key: Slot name
            value: Text to store

        Raises:
            QuotaExceededError: If the write does not fit in the store
            StorageError: If the store cannot be written
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.

        Args:
            key: Slot name

        Raises:
            StorageError: If the store cannot be written
        """
        pass
