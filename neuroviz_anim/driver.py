"""
Entrance animation driver.

The driver turns wall-clock time into a progress value in [0,1] for the
entrance transition of a freshly computed layout. It is a small state machine:

    IDLE --start--> RUNNING --tick(elapsed >= duration)--> COMPLETE
      ^                |                                      |
      +-----reset------+------------------reset---------------+

While RUNNING the driver asks its `FrameScheduler` for exactly one pending
frame at a time; each frame calls `tick(now)`. Reset and teardown cancel the
pending frame, and every frame callback carries the generation it was
scheduled in, so a callback that outlives a reset never touches the new run.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Hashable, Optional

from neuroviz_core.config import AnimationConfig
from neuroviz_core.enums import AnimationPhase

from .adapters.base import FrameScheduler
from .models.state import AnimationState
from .utils.easing import ease_cubic_out

logger = logging.getLogger(__name__)

TickCallback = Callable[[float], None]


class AnimationDriver:
    """
    Drives a monotonic 0 -> 1 progress ramp from frame timestamps.

    Attributes:
        scheduler: Host frame scheduler
        config: Animation timing
        easing: Monotonic map from raw elapsed fraction to progress
        state: Current `AnimationState`
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        config: AnimationConfig | None = None,
        easing: Callable[[float], float] = ease_cubic_out,
    ):
        self.scheduler = scheduler
        self.config = config or AnimationConfig()
        self.easing = easing
        self.state = AnimationState()
        self._on_tick: Optional[TickCallback] = None
        self._pending: Optional[Hashable] = None
        self._generation = 0

    @property
    def phase(self) -> AnimationPhase:
        return self.state.phase

    @property
    def progress(self) -> float:
        return self.state.progress

    # ----- transitions -----
    def start(self, on_tick: TickCallback | None = None, now: float | None = None) -> None:
        """
        Begin a fresh 0 -> 1 run.

        Starting while RUNNING restarts from 0. When `now` is None the start
        timestamp is taken from the first tick.

        Args:
            on_tick: Called with the new progress after every tick
            now: Start timestamp in milliseconds
        """
        if self.state.phase is AnimationPhase.RUNNING:
            self.reset()
        self._generation += 1
        self._on_tick = on_tick
        self.state = AnimationState(phase=AnimationPhase.RUNNING, start=now)
        logger.debug("Animation started (generation %d)", self._generation)
        self._schedule()

    def tick(self, now: float) -> float:
        """
        Advance to timestamp `now` and return the eased progress.

        IDLE reads as 0 and COMPLETE as 1; neither schedules anything. Ticking
        twice with the same `now` yields the same progress, and progress never
        decreases within a run even if `now` goes backwards.
        """
        st = self.state
        if st.phase is AnimationPhase.IDLE:
            return 0.0
        if st.phase is AnimationPhase.COMPLETE:
            return 1.0
        if now is None or not math.isfinite(now):
            logger.warning("Ignoring non-finite frame timestamp %r", now)
            return st.progress

        before = st.clone()
        if st.start is None:
            st.start = now
        st.last_tick = now

        duration = self.config.duration_ms
        raw = 1.0 if duration <= 0 else min((now - st.start) / duration, 1.0)
        raw = max(0.0, raw)
        st.raw = max(st.raw, raw)
        st.progress = max(st.progress, self.easing(raw))

        if raw >= 1.0:
            st.progress = 1.0
            st.phase = AnimationPhase.COMPLETE
            self._cancel_pending()
        else:
            self._schedule()

        changes = st.diff(before)
        if "phase" in changes:
            old, new = changes["phase"]
            logger.debug("Animation %s -> %s (generation %d)", old.value, new.value, self._generation)

        if self._on_tick is not None:
            self._on_tick(st.progress)
        return st.progress

    def reset(self) -> None:
        """Cancel any pending frame and return to IDLE with progress 0."""
        self._cancel_pending()
        self._generation += 1
        self._on_tick = None
        self.state = AnimationState()

    def teardown(self) -> None:
        """Release the driver; no scheduled frame fires after this."""
        logger.debug("Animation torn down (generation %d)", self._generation)
        self.reset()

    # ----- scheduling -----
    def _schedule(self) -> None:
        if self._pending is not None:
            return
        generation = self._generation
        self._pending = self.scheduler.request_frame(
            lambda now: self._on_frame(generation, now)
        )

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self.scheduler.cancel_frame(self._pending)
            self._pending = None

    def _on_frame(self, generation: int, now: float) -> None:
        if generation != self._generation:
            return
        self._pending = None
        self.tick(now)
