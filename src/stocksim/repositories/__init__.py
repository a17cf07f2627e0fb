"""Repository layer - data access abstractions and implementations."""

from stocksim.repositories.protocols import KeyValueStore

__all__ = [
    "KeyValueStore",
]
