"""Timers driven by simulated time, fired by a manager once per frame."""

from __future__ import annotations

import itertools
import math
import threading
import weakref
from dataclasses import dataclass
from typing import Any, Callable

__all__ = ["TimerContext", "Timer", "TimersManager"]


@dataclass(frozen=True)
class TimerContext:
    """What a timer callback is told: the interval that elapsed and the scene."""

    interval: float
    scene: Any = None


TimerCallback = Callable[[TimerContext], "float | None"]


class _TimerState:
    __slots__ = ("id", "callback", "is_running", "__weakref__")

    def __init__(self, callback: TimerCallback) -> None:
        self.id = 0
        self.callback = callback
        self.is_running = False


@dataclass
class _Invocation:
    invocation_id: int
    interval: float
    triggered_at: float
    state: weakref.ref

    @property
    def fire_at(self) -> float:
        return self.triggered_at + self.interval


class Timer:
    """Calls ``callback`` after an interval; the callback returns the next interval.

    A callback result that is not greater than zero stops the timer.
    """

    def __init__(self, callback: TimerCallback) -> None:
        self._state = _TimerState(callback)

    def start(self, interval: float, scene: Any) -> None:
        """Start on ``scene``'s timers (or directly on a ``TimersManager``)."""
        manager = scene if isinstance(scene, TimersManager) else scene.timers
        if not interval > 0:
            raise ValueError("Timer interval must be greater than zero.")
        if math.isinf(interval):
            raise ValueError("Timer interval cannot be infinity.")
        if self.is_running():
            self.stop()
        manager.start(interval, self)

    def is_running(self) -> bool:
        return self._state.is_running

    def stop(self) -> None:
        self._state.is_running = False


class TimersManager:
    """Keeps started timers and fires those that are due as time advances."""

    def __init__(self, scene: Any = None) -> None:
        self._scene = scene
        self._lock = threading.Lock()
        self._ids = itertools.count()
        self._awaiting: list[tuple[int, float, weakref.ref]] = []
        self._queue: list[_Invocation] = []
        self._queue_dirty = False
        self._elapsed = 0.0

    def start(self, interval: float, timer: Timer) -> None:
        """Schedule ``timer``; it is picked up on the next ``process`` call."""
        with self._lock:
            state = timer._state
            invocation_id = next(self._ids)
            state.id = invocation_id
            state.is_running = True
            self._awaiting.append((invocation_id, interval, weakref.ref(state)))

    def time_point(self) -> float:
        """Total time processed so far, in seconds."""
        return self._elapsed

    def process(self, dt: float) -> None:
        """Advance time by ``dt`` and run every callback that is due."""
        with self._lock:
            awaiting, self._awaiting = self._awaiting, []
        if awaiting:
            now = self.time_point()
            self._queue.extend(
                _Invocation(invocation_id, interval, now, state)
                for invocation_id, interval, state in awaiting
            )
            self._queue_dirty = True

        self._elapsed += dt

        if self._queue_dirty:
            self._queue.sort(key=lambda inv: inv.fire_at)
            self._queue_dirty = False

        now = self.time_point()
        pending = self._queue
        self._queue = []
        for position, invocation in enumerate(pending):
            if invocation.fire_at > now:
                self._queue.extend(pending[position:])
                break

            state = invocation.state()
            if state is None:
                continue  # timer was deleted
            if not state.is_running or state.id != invocation.invocation_id:
                continue  # timer stopped or restarted

            next_interval = state.callback(TimerContext(invocation.interval, self._scene))
            if not (next_interval is not None and next_interval > 0):
                state.is_running = False
                continue

            invocation.triggered_at = now
            invocation.interval = next_interval
            self._queue.append(invocation)
            self._queue_dirty = True