"""
Display session for one reasoning graph.

A `GraphSession` owns the pairing between a trace snapshot, its computed
layout and the entrance animation:

- Showing a different snapshot (by identity) recomputes the layout and restarts
  the animation; showing the same snapshot again is a no-op.
- `replay()` bumps the replay token, recomputes the layout from scratch and
  restarts the animation.
- Once per computed layout, after the settling delay, `on_capture` is called so
  the render layer can export a still image.
- `close()` tears the animation down; no frame fires afterwards.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

from neuroviz_core.config import AnimationConfig, LayoutConfig
from neuroviz_core.graph import ExplainTrace
from neuroviz_core.layout import LayoutResult, compute_layout

from .adapters.base import FrameScheduler
from .driver import AnimationDriver

logger = logging.getLogger(__name__)

CaptureCallback = Callable[[ExplainTrace, LayoutResult], None]


class GraphSession:
    def __init__(
        self,
        scheduler: FrameScheduler,
        layout_config: LayoutConfig | None = None,
        animation_config: AnimationConfig | None = None,
        seed: int = 0,
        on_capture: CaptureCallback | None = None,
        on_tick: Callable[[float], None] | None = None,
    ):
        self.layout_config = layout_config or LayoutConfig()
        self.animation_config = animation_config or AnimationConfig()
        self.seed = seed
        self.on_capture = on_capture
        self.on_tick = on_tick
        self.driver = AnimationDriver(scheduler, self.animation_config)
        self.replay_token = 0

        self._trace: Optional[ExplainTrace] = None
        self._layout: LayoutResult = {}
        self._layout_token: Optional[int] = None
        self._captured = False

    @property
    def trace(self) -> Optional[ExplainTrace]:
        return self._trace

    @property
    def layout(self) -> LayoutResult:
        return self._layout

    def show(self, trace: ExplainTrace, now: float | None = None) -> LayoutResult:
        """Display `trace`, recomputing only when the snapshot identity changed."""
        if trace is self._trace and self._layout_token == self.replay_token:
            return self._layout
        self._trace = trace
        return self._relayout(now)

    def replay(self, now: float | None = None) -> LayoutResult:
        """Recompute the current snapshot's layout and restart the entrance animation."""
        self.replay_token += 1
        if self._trace is None:
            return {}
        return self._relayout(now)

    def frame(self, now: float) -> Tuple[LayoutResult, float]:
        """
        Per-frame read for the render layer.

        Returns the current layout and animation progress at `now`, and fires
        the one-shot capture callback once the settling delay has passed.
        """
        progress = self.driver.tick(now)
        self._maybe_capture(now)
        return self._layout, progress

    def close(self) -> None:
        self.driver.teardown()
        self._trace = None
        self._layout = {}
        self._layout_token = None

    # ----- internals -----
    def _relayout(self, now: float | None) -> LayoutResult:
        self.driver.reset()
        self._layout = compute_layout(self._trace, self.layout_config, self.seed)
        self._layout_token = self.replay_token
        self._captured = False
        logger.info(
            "Computed layout for %d nodes (replay token %d)", len(self._layout), self.replay_token
        )
        self.driver.start(self._handle_tick, now=now)
        return self._layout

    def _handle_tick(self, progress: float) -> None:
        last = self.driver.state.last_tick
        if last is not None:
            self._maybe_capture(last)
        if self.on_tick is not None:
            self.on_tick(progress)

    def _maybe_capture(self, now: float) -> None:
        if self._captured or self.on_capture is None or not self._layout:
            return
        start = self.driver.state.start
        if start is None or now - start < self.animation_config.capture_delay_ms:
            return
        self._captured = True
        self.on_capture(self._trace, self._layout)
