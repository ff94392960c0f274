"""Per-key collapsing of concurrent calls."""

import threading
from concurrent.futures import Future
from typing import Callable, Dict, TypeVar

T = TypeVar("T")


class SingleFlight:
    """At most one call per key runs at a time.

    Callers arriving while a call for the same key is in flight wait for it
    and receive its result (or its exception). The key is released once the
    call finishes, so a later caller starts a fresh call.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._calls: Dict[str, Future] = {}

    def do(self, key: str, fn: Callable[[], T]) -> T:
        with self._lock:
            future = self._calls.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._calls[key] = future

        if not leader:
            return future.result()

        try:
            result = fn()
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._calls.pop(key, None)

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._calls
