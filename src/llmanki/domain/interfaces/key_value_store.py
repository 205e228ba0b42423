"""Interface for the persistent key-value store behind caches and deck state."""

from abc import ABC, abstractmethod


class IKeyValueStore(ABC):
    """String key to string value storage.

    Values are serialized JSON documents; callers read, modify and write
    whole documents.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Get a stored value.

        Args:
            key: Storage key

        Returns:
            Stored value, or None when the key is absent
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one.

        Args:
            key: Storage key
            value: Serialized value
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Removing an absent key is not an error.

        Args:
            key: Storage key
        """

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``."""

    def close(self) -> None:
        """Release underlying resources."""
