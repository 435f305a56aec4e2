"""Queue of calls that must run on the main thread."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Callable, TypeVar

T = TypeVar("T")


class SyncedSyscallQueue:
    """Lets other threads hand calls to the thread that runs ``finalize_calls``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._queued: list[tuple[Callable[[], object], Future]] = []

    def make_sync_call(self, func: Callable[[], T]) -> T:
        """Queue ``func`` and block until it has run; return its result."""
        future: Future = Future()
        with self._lock:
            self._queued.append((func, future))
        return future.result()

    def finalize_calls(self) -> None:
        """Run every queued call, in order, handing results to the callers."""
        with self._lock:
            for func, future in self._queued:
                try:
                    future.set_result(func())
                except BaseException as exc:  # handed back to the waiting caller
                    future.set_exception(exc)
            self._queued.clear()