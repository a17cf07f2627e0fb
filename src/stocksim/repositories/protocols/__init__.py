"""Repository protocol definitions (interfaces)."""

from stocksim.repositories.protocols.key_value_repo import KeyValueStore

__all__ = [
    "KeyValueStore",
]
