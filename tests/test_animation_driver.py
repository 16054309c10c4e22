"""
Tests for the entrance animation driver and the manual frame scheduler.

Time is given explicitly in milliseconds so every test is deterministic.
"""

import pytest

from neuroviz_core.config import AnimationConfig
from neuroviz_core.enums import AnimationPhase
from neuroviz_anim import AnimationDriver, AnimationState, ManualFrameScheduler
from neuroviz_anim.adapters.base import FrameScheduler
from neuroviz_anim.utils.easing import ease_cubic_out, linear


class LeakyScheduler(FrameScheduler):
    """Scheduler that ignores cancellation, like a host that fires late."""

    def __init__(self):
        self.callbacks = []

    def request_frame(self, callback):
        self.callbacks.append(callback)
        return len(self.callbacks)

    def cancel_frame(self, handle):
        pass


def make_driver(**kwargs):
    scheduler = ManualFrameScheduler()
    return scheduler, AnimationDriver(scheduler, AnimationConfig(**kwargs))


class TestEasing:
    def test_endpoints(self):
        assert ease_cubic_out(0.0) == 0.0
        assert ease_cubic_out(1.0) == 1.0

    def test_midpoint(self):
        assert ease_cubic_out(0.5) == pytest.approx(0.875)

    def test_clamped(self):
        assert ease_cubic_out(-2.0) == 0.0
        assert ease_cubic_out(3.0) == 1.0
        assert linear(1.5) == 1.0

    def test_monotonic(self):
        values = [ease_cubic_out(i / 100) for i in range(101)]
        assert values == sorted(values)


class TestDriverLifecycle:
    """IDLE -> RUNNING -> COMPLETE, and back to IDLE on reset."""

    def test_idle_reads_zero(self):
        scheduler, driver = make_driver()

        assert driver.phase is AnimationPhase.IDLE
        assert driver.tick(1000.0) == 0.0
        assert scheduler.pending() == 0

    def test_start_tick_is_zero(self):
        _, driver = make_driver()
        driver.start(now=100.0)

        assert driver.phase is AnimationPhase.RUNNING
        assert driver.tick(100.0) == 0.0

    def test_full_duration_completes(self):
        _, driver = make_driver()
        driver.start(now=100.0)

        assert driver.tick(1600.0) == 1.0
        assert driver.phase is AnimationPhase.COMPLETE
        assert driver.tick(5000.0) == 1.0

    def test_midway_is_eased(self):
        _, driver = make_driver()
        driver.start(now=0.0)

        assert driver.tick(750.0) == pytest.approx(0.875)

    def test_custom_easing(self):
        scheduler = ManualFrameScheduler()
        driver = AnimationDriver(scheduler, AnimationConfig(duration_ms=1000), easing=linear)
        driver.start(now=0.0)

        assert driver.tick(250.0) == pytest.approx(0.25)

    def test_start_from_first_tick(self):
        _, driver = make_driver()
        driver.start()

        assert driver.tick(10_000.0) == 0.0
        assert driver.tick(11_500.0) == 1.0

    def test_reset_then_restart(self):
        _, driver = make_driver()
        driver.start(now=0.0)
        driver.tick(1500.0)
        driver.reset()

        assert driver.phase is AnimationPhase.IDLE
        assert driver.progress == 0.0

        driver.start(now=2000.0)
        assert driver.tick(2000.0) == 0.0

    def test_start_while_running_restarts(self):
        _, driver = make_driver()
        driver.start(now=0.0)
        driver.tick(1000.0)
        driver.start(now=1000.0)

        assert driver.tick(1000.0) == 0.0

    def test_zero_duration_completes_immediately(self):
        _, driver = make_driver(duration_ms=0)
        driver.start(now=0.0)

        assert driver.tick(0.0) == 1.0
        assert driver.phase is AnimationPhase.COMPLETE


class TestProgressInvariants:
    def test_idempotent_tick(self):
        _, driver = make_driver()
        driver.start(now=0.0)

        assert driver.tick(400.0) == driver.tick(400.0)

    def test_monotonic_when_time_goes_backwards(self):
        _, driver = make_driver()
        driver.start(now=0.0)
        later = driver.tick(1000.0)

        assert driver.tick(200.0) == later
        assert driver.tick(-50.0) == later

    def test_progress_in_unit_interval(self):
        _, driver = make_driver()
        driver.start(now=0.0)
        seen = [driver.tick(float(t)) for t in range(0, 2000, 37)]

        assert all(0.0 <= p <= 1.0 for p in seen)
        assert seen == sorted(seen)

    def test_non_finite_timestamp_ignored(self):
        _, driver = make_driver()
        driver.start(now=0.0)
        p = driver.tick(300.0)

        assert driver.tick(float("nan")) == p
        assert driver.tick(float("inf")) == p
        assert driver.phase is AnimationPhase.RUNNING

    def test_on_tick_receives_progress(self):
        scheduler, driver = make_driver()
        seen = []
        driver.start(on_tick=seen.append, now=0.0)
        for t in (0.0, 500.0, 1500.0):
            scheduler.advance(t)

        assert seen[0] == 0.0
        assert seen[-1] == 1.0
        assert len(seen) == 3


class TestScheduling:
    """Exactly one pending frame while running, none otherwise."""

    def test_one_pending_frame_while_running(self):
        scheduler, driver = make_driver()
        driver.start(now=0.0)
        assert scheduler.pending() == 1

        driver.tick(100.0)
        driver.tick(200.0)
        assert scheduler.pending() == 1

    def test_frames_drive_to_completion(self):
        scheduler, driver = make_driver()
        driver.start(now=0.0)
        frames = 0
        t = 0.0
        while scheduler.pending():
            t += 16.0
            frames += scheduler.advance(t)

        assert driver.phase is AnimationPhase.COMPLETE
        assert driver.progress == 1.0
        assert frames == 94  # ceil(1500 / 16)

    def test_completion_cancels_pending(self):
        scheduler, driver = make_driver()
        driver.start(now=0.0)
        driver.tick(1500.0)

        assert scheduler.pending() == 0

    def test_reset_cancels_pending(self):
        scheduler, driver = make_driver()
        driver.start(now=0.0)
        driver.reset()

        assert scheduler.pending() == 0
        assert scheduler.advance(100.0) == 0

    def test_cancelled_handle_never_runs(self):
        scheduler = ManualFrameScheduler()
        ran = []
        handle = scheduler.request_frame(ran.append)
        scheduler.cancel_frame(handle)

        assert scheduler.advance(1.0) == 0
        assert ran == []

    def test_requests_during_dispatch_run_next_frame(self):
        scheduler = ManualFrameScheduler()
        ran = []

        def first(now):
            ran.append(("first", now))
            scheduler.request_frame(lambda t: ran.append(("second", t)))

        scheduler.request_frame(first)
        assert scheduler.advance(1.0) == 1
        assert scheduler.advance(2.0) == 1
        assert ran == [("first", 1.0), ("second", 2.0)]


class TestTeardown:
    """No callback from an earlier run touches a later one."""

    def test_teardown_mid_animation(self):
        scheduler, driver = make_driver()
        seen = []
        driver.start(on_tick=seen.append, now=0.0)
        scheduler.advance(100.0)
        driver.teardown()

        assert scheduler.pending() == 0
        assert scheduler.advance(200.0) == 0
        assert len(seen) == 1
        assert driver.phase is AnimationPhase.IDLE

    def test_stale_callback_ignored(self):
        scheduler = LeakyScheduler()
        driver = AnimationDriver(scheduler)
        seen = []
        driver.start(on_tick=seen.append, now=0.0)
        stale = scheduler.callbacks[-1]
        driver.teardown()

        stale(700.0)
        assert seen == []
        assert driver.phase is AnimationPhase.IDLE
        assert driver.progress == 0.0

    def test_stale_callback_does_not_advance_new_run(self):
        scheduler = LeakyScheduler()
        driver = AnimationDriver(scheduler)
        driver.start(now=0.0)
        stale = scheduler.callbacks[-1]
        driver.reset()
        driver.start(now=5000.0)

        stale(6500.0)
        assert driver.progress == 0.0
        assert driver.phase is AnimationPhase.RUNNING


class TestAnimationState:
    def test_clone_is_independent(self):
        state = AnimationState(phase=AnimationPhase.RUNNING, progress=0.3)
        copy = state.clone()
        copy.progress = 0.9

        assert state.progress == 0.3

    def test_diff(self):
        before = AnimationState()
        after = AnimationState(phase=AnimationPhase.COMPLETE, progress=1.0)

        assert after.diff(before) == {
            "phase": (AnimationPhase.IDLE, AnimationPhase.COMPLETE),
            "progress": (0.0, 1.0),
        }
        assert before.diff(before.clone()) == {}
