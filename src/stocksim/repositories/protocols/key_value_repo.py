"""Key-value store protocol used for per-user portfolio persistence."""

from typing import Protocol, Optional


class KeyValueStore(Protocol):
    """
    Interface for a namespaced string/double key-value store.

    Implementations raise PersistenceError when the backing store cannot be
    read or written.
    """

    def get_string(self, key: str) -> Optional[str]:
        """Return the string stored under key, or None."""
        ...

    def set_string(self, key: str, value: str) -> None:
        """Store a string under key, replacing any previous value."""
        ...

    def get_double(self, key: str) -> Optional[float]:
        """Return the float stored under key, or None."""
        ...

    def set_double(self, key: str, value: float) -> None:
        """Store a float under key, replacing any previous value."""
        ...

    def remove(self, key: str) -> None:
        """Delete key if present."""
        ...
