"""Abstract base class for link store implementations."""

from abc import ABC, abstractmethod
from typing import Optional, List, Tuple


class LinkStoreBase(ABC):
    """Abstract durable key/value store for encoded link records.

    Keys and values are raw bytes. Implementations must be safe to share between
    concurrently running tasks and must not block the event loop.
    """

    def __init__(self, location: str):
        """Initialize store.

        Args:
            location: Filesystem directory holding the store
        """
        self.location = location

    @abstractmethod
    async def insert(self, key: bytes, value: bytes) -> None:
        """Insert or overwrite a value.

        Args:
            key: Storage key
            value: Value to store
        """
        pass

    @abstractmethod
    async def insert_if_absent(self, key: bytes, value: bytes) -> bool:
        """Insert a value only if the key is not present yet.

        Args:
            key: Storage key
            value: Value to store

        Returns:
            True if inserted, False if the key already existed
        """
        pass

    @abstractmethod
    async def get(self, key: bytes) -> Optional[bytes]:
        """Get the value stored under a key.

        Args:
            key: Storage key

        Returns:
            The value if found, None otherwise
        """
        pass

    @abstractmethod
    async def contains(self, key: bytes) -> bool:
        """Check if a key is present.

        Args:
            key: Storage key

        Returns:
            True if present
        """
        pass

    @abstractmethod
    async def count(self) -> int:
        """Count stored keys.

        Returns:
            Number of keys
        """
        pass

    @abstractmethod
    async def scan(
        self,
        limit: int = 100,
        start_after: Optional[bytes] = None,
    ) -> List[Tuple[bytes, bytes]]:
        """List entries in key order.

        Args:
            limit: Maximum number of entries to return
            start_after: Only return keys strictly greater than this one

        Returns:
            List of (key, value) pairs
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the store."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is usable.

        Returns:
            True if healthy, False otherwise
        """
        pass
