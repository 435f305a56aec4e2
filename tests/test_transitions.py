import math

import pytest

from kaaengine.resources import EngineError
from kaaengine.transitions import (
    NodeTransitionCallback,
    NodeTransitionCustomizable,
    NodeTransitionDelay,
    NodeTransitionRunner,
    NodeTransitionsManager,
    NodeTransitionsParallel,
    NodeTransitionsSequence,
    TransitionTimePoint,
    TransitionWarping,
)


class FakeNode:
    def __init__(self):
        self.marked = False

    def is_marked_to_delete(self):
        return self.marked


class Recorder(NodeTransitionCustomizable):
    def __init__(self, duration, warping=None, easing=None):
        super().__init__(duration, warping, easing)
        self.values = []

    def evaluate(self, state, node, t):
        self.values.append(t)


def test_duration_factor_infinite_for_zero_loops():
    assert TransitionWarping(0).duration_factor() == math.inf


def test_duration_factor_back_and_forth_doubles():
    assert TransitionWarping(3).duration_factor() == 3
    assert TransitionWarping(3, True).duration_factor() == 2 * TransitionWarping(
        3
    ).duration_factor()


def test_negative_loops_rejected():
    with pytest.raises(ValueError):
        TransitionWarping(-1)


def test_warp_time_wraps_into_cycle():
    tp = TransitionWarping(3).warp_time(TransitionTimePoint(1.25), 1.0)
    assert tp.abs_t == pytest.approx(0.25)
    assert tp.cycle_index == 1
    assert tp.is_backing is False


def test_warp_time_clamps_after_last_loop():
    tp = TransitionWarping(2).warp_time(TransitionTimePoint(5.0), 1.0)
    assert tp.abs_t == pytest.approx(1.0)
    assert tp.cycle_index == 2 - 1


def test_warp_time_back_and_forth_reflects():
    warping = TransitionWarping(1, True)
    forward = warping.warp_time(TransitionTimePoint(0.5), 1.0)
    backward = warping.warp_time(TransitionTimePoint(1.5), 1.0)
    assert forward.is_backing is False
    assert backward.is_backing is True
    assert backward.abs_t == pytest.approx(forward.abs_t)


def test_customizable_duration_uses_warping():
    assert Recorder(2.0, TransitionWarping(0)).duration == math.inf
    assert Recorder(2.0, TransitionWarping(3)).internal_duration == 2.0


def test_runner_reports_progress_and_finish():
    recorder = Recorder(1.0)
    runner = NodeTransitionRunner(recorder)
    node = FakeNode()
    assert runner.step(node, 0.5) is False
    assert recorder.values == [pytest.approx(0.5)]
    assert runner.step(node, 0.5) is True
    assert recorder.values[-1] == pytest.approx(1.0)


def test_easing_is_applied():
    recorder = Recorder(1.0, easing=lambda t: -t)
    NodeTransitionRunner(recorder).step(FakeNode(), 0.5)
    assert recorder.values == [pytest.approx(-0.5)]


def test_zero_duration_customizable_evaluates_end():
    recorder = Recorder(0.0)
    assert NodeTransitionRunner(recorder).step(FakeNode(), 0.1) is True
    assert recorder.values == [1.0]


def test_runner_without_transition_raises():
    runner = NodeTransitionRunner()
    assert not runner
    with pytest.raises(EngineError):
        runner.step(FakeNode(), 0.1)


def test_callback_transition_calls_with_node():
    seen = []
    callback = NodeTransitionCallback(seen.append)
    node = FakeNode()
    assert NodeTransitionRunner(callback).step(node, 0.0) is True
    assert seen == [node]
    assert callback.duration == 0.0


def test_sequence_runs_subtransitions_in_order():
    first, second = Recorder(1.0), Recorder(1.0)
    sequence = NodeTransitionsSequence([first, second])
    assert sequence.duration == pytest.approx(2.0)
    runner = NodeTransitionRunner(sequence)
    node = FakeNode()

    assert runner.step(node, 0.5) is False
    assert first.values == [pytest.approx(0.5)]
    assert second.values == []

    assert runner.step(node, 1.0) is False
    assert first.values[-1] == pytest.approx(1.0)
    assert second.values == [pytest.approx(0.5)]

    assert runner.step(node, 0.5) is True
    assert second.values[-1] == pytest.approx(1.0)


def test_sequence_fires_middle_callback_once():
    calls = []
    sequence = NodeTransitionsSequence(
        [
            NodeTransitionDelay(1.0),
            NodeTransitionCallback(calls.append),
            NodeTransitionDelay(1.0),
        ]
    )
    runner = NodeTransitionRunner(sequence)
    node = FakeNode()
    runner.step(node, 0.5)
    assert calls == []
    runner.step(node, 1.0)
    assert calls == [node]
    runner.step(node, 1.0)
    assert calls == [node]


def test_sequence_stops_when_node_marked():
    later = []

    def mark(node):
        node.marked = True

    sequence = NodeTransitionsSequence(
        [NodeTransitionCallback(mark), NodeTransitionCallback(later.append)]
    )
    node = FakeNode()
    NodeTransitionRunner(sequence).step(node, 0.1)
    assert node.marked is True
    assert later == []


def test_sequence_infinite_subtransition_not_last_rejected():
    with pytest.raises(EngineError):
        NodeTransitionsSequence(
            [Recorder(1.0, TransitionWarping(0)), NodeTransitionDelay(1.0)]
        )


def test_sequence_infinite_last_subtransition_loops_forever():
    sequence = NodeTransitionsSequence(
        [NodeTransitionDelay(1.0), Recorder(1.0, TransitionWarping(0))],
        TransitionWarping(3, True),
    )
    assert sequence.duration == math.inf
    assert sequence.warping.loops == 0
    assert sequence.warping.back_and_forth is False


def test_groups_reject_empty_and_negative():
    with pytest.raises(ValueError):
        NodeTransitionsSequence([])
    with pytest.raises(ValueError):
        NodeTransitionsParallel([])
    with pytest.raises(EngineError):
        NodeTransitionsParallel([NodeTransitionDelay(-1.0)])


def test_parallel_runs_together_and_sleeps_finished():
    short, long_ = Recorder(1.0), Recorder(2.0)
    parallel = NodeTransitionsParallel([short, long_])
    assert parallel.duration == pytest.approx(2.0)
    runner = NodeTransitionRunner(parallel)
    node = FakeNode()

    runner.step(node, 0.5)
    assert short.values == [pytest.approx(0.5)]
    assert len(long_.values) == 1

    runner.step(node, 1.0)
    assert short.values[-1] == pytest.approx(1.0)
    short_count = len(short.values)

    runner.step(node, 0.3)
    assert len(short.values) == short_count
    assert len(long_.values) == 3


def test_manager_set_get_and_remove():
    manager = NodeTransitionsManager()
    delay = NodeTransitionDelay(1.0)
    assert not manager
    manager.set("move", delay)
    assert manager.get("move") is delay
    assert manager.get("missing") is None
    manager.set("move", None)
    assert manager.get("move") is None
    assert not manager


def test_manager_drops_finished_transitions():
    manager = NodeTransitionsManager()
    manager.set("wait", NodeTransitionDelay(1.0))
    node = FakeNode()
    manager.step(node, 0.5)
    assert manager.get("wait") is not None and bool(manager)
    manager.step(node, 0.5)
    assert manager.get("wait") is None
    assert not manager


def test_manager_enqueues_changes_made_while_stepping():
    manager = NodeTransitionsManager()
    other = NodeTransitionDelay(5.0)
    seen_during = []

    def install(node):
        manager.set("other", other)
        seen_during.append(manager.get("other"))

    manager.set("install", NodeTransitionCallback(install))
    manager.step(FakeNode(), 0.1)
    assert seen_during == [other]
    assert manager.get("other") is other
    assert manager.get("install") is None


def test_manager_step_on_marked_node_raises():
    manager = NodeTransitionsManager()
    node = FakeNode()
    node.marked = True
    with pytest.raises(EngineError):
        manager.step(node, 0.1)