"""
Tests for GraphSession: snapshot identity, replay, capture and teardown.
"""

from neuroviz_core.config import AnimationConfig
from neuroviz_core.enums import AnimationPhase
from neuroviz_core.graph import Edge, ExplainTrace, Node, Stage
from neuroviz_anim import GraphSession, ManualFrameScheduler


def make_trace():
    return ExplainTrace(
        stages=(Stage("s1"), Stage("s2")),
        nodes=(
            Node("a1", stage_id="s1"),
            Node("a2", stage_id="s1"),
            Node("b1", stage_id="s2"),
            Node("b2", stage_id="s2"),
        ),
        edges=(Edge("a1", "b1"), Edge("a2", "b2")),
    )


class Captures:
    def __init__(self):
        self.calls = []

    def __call__(self, trace, layout):
        self.calls.append((trace, layout))


def make_session(**kwargs):
    scheduler = ManualFrameScheduler()
    return scheduler, GraphSession(scheduler, **kwargs)


class TestShow:
    def test_show_computes_layout_and_starts(self):
        _, session = make_session()
        trace = make_trace()
        layout = session.show(trace, now=0.0)

        assert set(layout) == {"a1", "a2", "b1", "b2"}
        assert session.trace is trace
        assert session.layout is layout
        assert session.driver.phase is AnimationPhase.RUNNING

    def test_same_snapshot_is_noop(self):
        _, session = make_session()
        trace = make_trace()
        first = session.show(trace, now=0.0)
        session.frame(600.0)
        progress = session.driver.progress

        assert session.show(trace, now=700.0) is first
        assert session.driver.progress == progress

    def test_new_snapshot_identity_recomputes(self):
        _, session = make_session()
        first = session.show(make_trace(), now=0.0)
        session.frame(1500.0)
        second = session.show(make_trace(), now=2000.0)

        assert second is not first
        assert second == first
        assert session.driver.phase is AnimationPhase.RUNNING
        assert session.frame(2000.0)[1] == 0.0

    def test_empty_snapshot(self):
        _, session = make_session()

        assert session.show(ExplainTrace(), now=0.0) == {}
        assert session.frame(0.0) == ({}, 0.0)


class TestReplay:
    def test_replay_recomputes_same_layout(self):
        _, session = make_session(seed=4)
        trace = make_trace()
        first = session.show(trace, now=0.0)
        session.frame(1500.0)
        assert session.driver.phase is AnimationPhase.COMPLETE

        replayed = session.replay(now=3000.0)
        assert session.replay_token == 1
        assert replayed is not first
        assert replayed == first
        assert session.frame(3000.0)[1] == 0.0

    def test_show_after_replay_is_noop(self):
        _, session = make_session()
        trace = make_trace()
        session.show(trace, now=0.0)
        replayed = session.replay(now=100.0)

        assert session.show(trace, now=200.0) is replayed

    def test_replay_without_snapshot(self):
        _, session = make_session()

        assert session.replay() == {}
        assert session.replay_token == 1


class TestCapture:
    """The capture hook fires once per computed layout after the settling delay."""

    def test_capture_once_after_delay(self):
        captures = Captures()
        _, session = make_session(on_capture=captures)
        trace = make_trace()
        session.show(trace, now=0.0)

        session.frame(500.0)
        assert captures.calls == []
        session.frame(800.0)
        assert len(captures.calls) == 1
        session.frame(2000.0)
        assert len(captures.calls) == 1

        captured_trace, captured_layout = captures.calls[0]
        assert captured_trace is trace
        assert captured_layout is session.layout

    def test_capture_from_scheduled_frames(self):
        captures = Captures()
        scheduler, session = make_session(on_capture=captures)
        session.show(make_trace(), now=0.0)
        t = 0.0
        while scheduler.pending():
            t += 16.0
            scheduler.advance(t)

        assert len(captures.calls) == 1

    def test_capture_again_after_replay(self):
        captures = Captures()
        _, session = make_session(on_capture=captures)
        session.show(make_trace(), now=0.0)
        session.frame(900.0)
        session.replay(now=1000.0)
        session.frame(1500.0)
        session.frame(1800.0)

        assert len(captures.calls) == 2

    def test_capture_skipped_for_empty_layout(self):
        captures = Captures()
        _, session = make_session(on_capture=captures)
        session.show(ExplainTrace(), now=0.0)
        session.frame(5000.0)

        assert captures.calls == []

    def test_custom_capture_delay(self):
        captures = Captures()
        _, session = make_session(
            on_capture=captures, animation_config=AnimationConfig(capture_delay_ms=100)
        )
        session.show(make_trace(), now=0.0)
        session.frame(100.0)

        assert len(captures.calls) == 1


class TestClose:
    def test_close_stops_frames(self):
        ticks = []
        scheduler, session = make_session(on_tick=ticks.append)
        session.show(make_trace(), now=0.0)
        scheduler.advance(16.0)
        session.close()

        assert scheduler.pending() == 0
        assert scheduler.advance(32.0) == 0
        assert len(ticks) == 1
        assert session.trace is None
        assert session.layout == {}
        assert session.driver.phase is AnimationPhase.IDLE

    def test_show_after_close(self):
        _, session = make_session()
        trace = make_trace()
        session.show(trace, now=0.0)
        session.close()

        assert set(session.show(trace, now=10.0)) == {"a1", "a2", "b1", "b2"}
