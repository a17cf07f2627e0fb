"""Per-key request coalescing for blocking fetches."""

import threading
from concurrent.futures import Future
from typing import Callable, Generic, Hashable, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """
    Run at most one call per key at a time.

    The first caller for a key executes ``fn``; callers arriving while it is
    still running block on the same Future and receive its result (or its
    exception). Calls for different keys never wait on each other. Nothing is
    remembered once a call completes, so the next call for the key runs again.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._in_flight: dict[Hashable, Future] = {}

    def do(self, key: Hashable, fn: Callable[[], T]) -> T:
        with self._lock:
            future = self._in_flight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._in_flight[key] = future

        if not leader:
            return future.result()

        try:
            result = fn()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._in_flight.pop(key, None)

    def in_flight(self, key: Hashable) -> bool:
        """Return True while a call for key is running."""
        with self._lock:
            return key in self._in_flight
