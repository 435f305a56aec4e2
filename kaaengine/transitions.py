"""Node transitions: timed effects, their sequencing, looping and management."""

from __future__ import annotations

import dataclasses
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from kaaengine.resources import EngineError

logger = logging.getLogger(__name__)

Easing = Callable[[float], float]
NodeTransitionCallbackFunc = Callable[[Any], None]


def _is_marked_to_delete(node: Any) -> bool:
    marked = getattr(node, "is_marked_to_delete", False)
    return bool(marked() if callable(marked) else marked)


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


@dataclass(frozen=True)
class TransitionTimePoint:
    """A moment in a transition's life: time, direction and loop number."""

    abs_t: float = 0.0
    is_backing: bool = False
    cycle_index: int = 0


@dataclass
class TransitionWarping:
    """How a transition repeats: ``loops`` times (0 = forever), optionally back and forth."""

    loops: int = 1
    back_and_forth: bool = False

    def __post_init__(self) -> None:
        if self.loops < 0:
            raise ValueError("Number of loop must be greater or equal to zero.")

    def duration_factor(self) -> float:
        """How many internal durations the whole warped transition lasts."""
        if self.loops == 0:
            return math.inf
        return float(self.loops) * (1 + int(self.back_and_forth))

    def warp_time(
        self, tp: TransitionTimePoint, internal_duration: float
    ) -> TransitionTimePoint:
        """Map absolute time onto time within a single pass of the transition."""
        period = internal_duration * (1 + int(self.back_and_forth))
        if period > 0:
            warped_abs_t = tp.abs_t % period
            cycle_index = int(tp.abs_t / period)
        else:
            warped_abs_t = 0.0
            cycle_index = self.loops

        # prevent floating errors from resetting cycle
        if self.loops > 0 and cycle_index >= self.loops:
            warped_abs_t = period
            cycle_index -= 1

        if self.back_and_forth and warped_abs_t > internal_duration:
            warped_abs_t = abs(2 * internal_duration - warped_abs_t)
            return TransitionTimePoint(warped_abs_t, not tp.is_backing, cycle_index)
        return TransitionTimePoint(warped_abs_t, tp.is_backing, cycle_index)


class NodeTransitionBase(ABC):
    """A transition that can be applied to a node over time."""

    def __init__(
        self, duration: float = math.nan, warping: TransitionWarping | None = None
    ) -> None:
        self.warping = warping if warping is not None else TransitionWarping()
        self.internal_duration = float(duration)
        self.duration = self.internal_duration * self.warping.duration_factor()

    def prepare_state(self, node: Any) -> Any:
        """Create per-node state for this transition; none by default."""
        return None

    @abstractmethod
    def process_time_point(
        self, state: Any, node: Any, tp: TransitionTimePoint
    ) -> None:
        """Apply the transition to ``node`` at time point ``tp``."""


class NodeTransitionCustomizable(NodeTransitionBase):
    """A transition with warping and easing that evaluates a progress value."""

    def __init__(
        self,
        duration: float,
        warping: TransitionWarping | None = None,
        easing: Easing | None = None,
    ) -> None:
        super().__init__(duration, warping)
        self._easing = easing

    def process_time_point(
        self, state: Any, node: Any, tp: TransitionTimePoint
    ) -> None:
        if not self.duration >= 0:
            raise ValueError("Duration must be greater than zero.")
        local_tp = self.warping.warp_time(tp, self.internal_duration)
        logger.debug(
            "Customizable transition: abs_t=%s local_abs_t=%s internal_duration=%s",
            tp.abs_t,
            local_tp.abs_t,
            self.internal_duration,
        )
        if self.duration > 0:
            warped_t = local_tp.abs_t / self.internal_duration
            if self._easing is not None:
                warped_t = self._easing(warped_t)
            self.evaluate(state, node, warped_t)
        else:
            self.evaluate(state, node, 0.0 if tp.is_backing else 1.0)

    @abstractmethod
    def evaluate(self, state: Any, node: Any, t: float) -> None:
        """Apply eased progress ``t`` (0 at start, 1 at end) to ``node``."""


@dataclass
class _SubTransition:
    handle: NodeTransitionBase
    starting_time: float
    ending_time: float


@dataclass
class _GroupSubState:
    handle: NodeTransitionBase
    starting_abs_t: float
    ending_abs_t: float
    state: Any = None
    state_prepared: bool = False
    sleeping: bool = False

    def prepare(self, node: Any) -> None:
        if not self.state_prepared:
            self.state = self.handle.prepare_state(node)
            self.state_prepared = True


@dataclass
class _GroupState:
    sub_states: list[_GroupSubState]
    prev_tp: TransitionTimePoint = field(default_factory=TransitionTimePoint)
    position: int = 0


def _check_sub_duration(transition: NodeTransitionBase) -> None:
    if not transition.duration >= 0:
        raise EngineError("Duration must be greater than zero.")


class _NodeTransitionsGroup(NodeTransitionBase):
    """Shared parts of transitions built from several sub-transitions."""

    def __init__(self, transitions: Sequence[NodeTransitionBase]) -> None:
        if not transitions:
            raise ValueError("At least one transition is required.")
        super().__init__()
        self._sub_transitions: list[_SubTransition] = []
        self.has_infinite_sub_transitions = False

    def _finish_setup(
        self, internal_duration: float, warping: TransitionWarping | None
    ) -> None:
        warping = warping if warping is not None else TransitionWarping()
        if self.has_infinite_sub_transitions:
            warping = dataclasses.replace(warping, loops=0, back_and_forth=False)
        else:
            warping = dataclasses.replace(warping)
        self.warping = warping
        self.internal_duration = internal_duration
        self.duration = internal_duration * warping.duration_factor()

    def prepare_state(self, node: Any) -> _GroupState:
        return _GroupState(
            [
                _GroupSubState(sub.handle, sub.starting_time, sub.ending_time)
                for sub in self._sub_transitions
            ]
        )

    def _warped(self, tp: TransitionTimePoint) -> TransitionTimePoint:
        if self.has_infinite_sub_transitions:
            return tp
        return self.warping.warp_time(tp, self.internal_duration)


class NodeTransitionsSequence(_NodeTransitionsGroup):
    """Runs sub-transitions one after another."""

    def __init__(
        self,
        transitions: Sequence[NodeTransitionBase],
        warping: TransitionWarping | None = None,
    ) -> None:
        super().__init__(transitions)
        total_duration = 0.0
        has_infinite_subs = False
        for transition in transitions:
            _check_sub_duration(transition)
            if has_infinite_subs:
                raise EngineError(
                    "NodeTransitionsSequence has infinite "
                    "subtransition on non last position"
                )
            if math.isinf(transition.duration):
                sub_duration = transition.internal_duration
                has_infinite_subs = True
            else:
                sub_duration = transition.duration
            self._sub_transitions.append(
                _SubTransition(
                    transition, total_duration, total_duration + transition.duration
                )
            )
            total_duration += sub_duration
        self.has_infinite_sub_transitions = has_infinite_subs
        self._finish_setup(total_duration, warping)
        logger.debug(
            "NodeTransitionsSequence constructed - duration: %s, internal_duration: %s",
            self.duration,
            self.internal_duration,
        )

    def prepare_state(self, node: Any) -> _GroupState:
        return super().prepare_state(node)

    def process_time_point(
        self, state: _GroupState, node: Any, tp: TransitionTimePoint
    ) -> None:
        warped_tp = self._warped(tp)
        subs = state.sub_states
        position = state.position
        cur_cycle_index = state.prev_tp.cycle_index
        is_backing = state.prev_tp.is_backing

        while cur_cycle_index <= warped_tp.cycle_index:
            sub = subs[position]
            sub.prepare(node)
            sub_abs_t = _clamp(
                warped_tp.abs_t - sub.starting_abs_t, 0.0, sub.handle.duration
            )
            sub.handle.process_time_point(
                sub.state, node, TransitionTimePoint(sub_abs_t, is_backing)
            )
            if _is_marked_to_delete(node):
                return

            if (
                cur_cycle_index == warped_tp.cycle_index
                and is_backing == warped_tp.is_backing
                and sub.starting_abs_t <= warped_tp.abs_t < sub.ending_abs_t
            ):
                break

            if not is_backing:
                position += 1
                if position == len(subs):
                    if self.warping.back_and_forth or tp.is_backing:
                        is_backing = True
                        position -= 1
                    else:
                        position = 0
                        cur_cycle_index += 1
            elif position == 0:
                is_backing = False
                cur_cycle_index += 1
            else:
                position -= 1

        state.prev_tp = warped_tp
        state.position = position


class NodeTransitionsParallel(_NodeTransitionsGroup):
    """Runs sub-transitions at the same time."""

    def __init__(
        self,
        transitions: Sequence[NodeTransitionBase],
        warping: TransitionWarping | None = None,
    ) -> None:
        super().__init__(transitions)
        max_sub_duration = 0.0
        has_infinite_subs = False
        for transition in transitions:
            _check_sub_duration(transition)
            if math.isinf(transition.duration):
                sub_duration = transition.internal_duration
                has_infinite_subs = True
            else:
                sub_duration = transition.duration
            max_sub_duration = max(max_sub_duration, sub_duration)
            self._sub_transitions.append(
                _SubTransition(transition, 0.0, transition.duration)
            )
        self.has_infinite_sub_transitions = has_infinite_subs
        self._finish_setup(max_sub_duration, warping)
        logger.debug(
            "NodeTransitionsParallel constructed - duration: %s, internal_duration: %s",
            self.duration,
            self.internal_duration,
        )

    def prepare_state(self, node: Any) -> _GroupState:
        return super().prepare_state(node)

    def process_time_point(
        self, state: _GroupState, node: Any, tp: TransitionTimePoint
    ) -> None:
        warped_tp = self._warped(tp)
        cur_cycle_index = state.prev_tp.cycle_index
        is_backing = state.prev_tp.is_backing

        while cur_cycle_index <= warped_tp.cycle_index:
            for sub in state.sub_states:
                sub.prepare(node)
                if cur_cycle_index < state.prev_tp.cycle_index:
                    sub_abs_t = 0.0 if is_backing else sub.handle.duration
                    sub_fits = True
                else:
                    sub_abs_t = _clamp(
                        warped_tp.abs_t - sub.starting_abs_t, 0.0, sub.handle.duration
                    )
                    sub_fits = sub.starting_abs_t < warped_tp.abs_t < sub.ending_abs_t
                sub_tp = TransitionTimePoint(sub_abs_t, is_backing)

                if not sub.sleeping:
                    sub.handle.process_time_point(sub.state, node, sub_tp)
                    if not sub_fits:
                        sub.sleeping = True
                elif sub_fits:
                    sub.handle.process_time_point(sub.state, node, sub_tp)
                    sub.sleeping = False

                if _is_marked_to_delete(node):
                    return

            if self.warping.back_and_forth:
                if is_backing:
                    cur_cycle_index += 1
                is_backing = not is_backing
                if not warped_tp.is_backing and is_backing:
                    break
            else:
                cur_cycle_index += 1

        state.prev_tp = warped_tp


class NodeTransitionDelay(NodeTransitionBase):
    """A transition that only takes time."""

    def __init__(self, duration: float) -> None:
        super().__init__(duration)

    def process_time_point(
        self, state: Any, node: Any, tp: TransitionTimePoint
    ) -> None:
        """Do nothing; the delay only occupies time."""


class NodeTransitionCallback(NodeTransitionBase):
    """A zero-length transition that calls a function with the node."""

    def __init__(self, func: NodeTransitionCallbackFunc) -> None:
        super().__init__(0.0)
        self.callback_func = func

    def process_time_point(
        self, state: Any, node: Any, tp: TransitionTimePoint
    ) -> None:
        if self.callback_func is None:
            raise EngineError("No callback set.")
        self.callback_func(node)


class NodeTransitionRunner:
    """Drives one transition on one node as time advances."""

    def __init__(self, transition: NodeTransitionBase | None = None) -> None:
        self.setup(transition)

    def setup(self, transition: NodeTransitionBase | None) -> None:
        """Replace the transition and start again from time zero."""
        self.transition_handle = transition
        self.transition_state: Any = None
        self.transition_state_prepared = False
        self.current_time = 0.0

    def step(self, node: Any, dt: float) -> bool:
        """Advance by ``dt``; return True once the transition has finished."""
        if self.transition_handle is None:
            raise EngineError("Invalid internal state of transition runner.")
        if not self.transition_state_prepared:
            self.transition_state = self.transition_handle.prepare_state(node)
            self.transition_state_prepared = True
        self.current_time += dt
        self.transition_handle.process_time_point(
            self.transition_state, node, TransitionTimePoint(self.current_time)
        )
        return self.current_time >= self.transition_handle.duration

    def __bool__(self) -> bool:
        return self.transition_handle is not None


class NodeTransitionsManager:
    """Named transitions of one node, stepped together."""

    def __init__(self) -> None:
        self._transitions_map: dict[str, NodeTransitionRunner] = {}
        self._enqueued_updates: list[tuple[str, NodeTransitionBase | None]] = []
        self._is_processing = False

    def get(self, name: str) -> NodeTransitionBase | None:
        """Return the transition under ``name``, including pending changes."""
        for queued_name, transition in reversed(self._enqueued_updates):
            if queued_name == name:
                return transition
        runner = self._transitions_map.get(name)
        return runner.transition_handle if runner is not None else None

    def set(self, name: str, transition: NodeTransitionBase | None) -> None:
        """Set or, with None, remove the transition under ``name``."""
        if self._is_processing:
            self._enqueued_updates.append((name, transition))
        else:
            self._apply(name, transition)

    def _apply(self, name: str, transition: NodeTransitionBase | None) -> None:
        if transition is not None:
            self._transitions_map[name] = NodeTransitionRunner(transition)
        else:
            self._transitions_map.pop(name, None)

    def step(self, node: Any, dt: float) -> None:
        """Advance every transition by ``dt``, dropping those that finished."""
        if _is_marked_to_delete(node):
            raise EngineError("Node is marked for deletion.")
        if self._is_processing:
            raise EngineError("Invalid internal state of transition manager.")
        self._is_processing = True
        try:
            for name, runner in self._transitions_map.items():
                finished = runner.step(node, dt)
                if _is_marked_to_delete(node):
                    return
                if finished:
                    self._enqueued_updates.insert(0, (name, None))

            for name, transition in self._enqueued_updates:
                self._apply(name, transition)
            self._enqueued_updates.clear()
        finally:
            self._is_processing = False

    def __bool__(self) -> bool:
        return bool(self._transitions_map or self._enqueued_updates)