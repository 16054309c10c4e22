from __future__ import annotations

from manim import DEGREES, ThreeDScene, ValueTracker, always_redraw, linear

from neuroviz_core.config import AnimationConfig, LayoutConfig, RenderConfig
from neuroviz_core.graph import ExplainTrace
from neuroviz_core.layout import compute_layout

from neuroviz_anim.adapters.manual import ManualFrameScheduler
from neuroviz_anim.driver import AnimationDriver
from neuroviz_anim.utils.elements import build_render_elements
from neuroviz_anim.utils.mobjects import build_frame


class ReasoningGraphScene(ThreeDScene):
    """Lays out a trace and plays its entrance animation.

    The trace and settings are attached as attributes before `render()`
    (see `neuroviz_anim.runner.render`). The scene clock feeds a
    `ManualFrameScheduler`, so progress comes from the same `AnimationDriver`
    an interactive host would use.
    """

    def construct(self):
        trace: ExplainTrace = getattr(self, "_trace", None) or ExplainTrace()
        seed = int(getattr(self, "_seed", 0))
        layout_config: LayoutConfig = getattr(self, "_layout_config", None) or LayoutConfig()
        anim_config: AnimationConfig = getattr(self, "_animation_config", None) or AnimationConfig()
        render_config: RenderConfig = getattr(self, "_render_config", None) or RenderConfig()
        time_scale = max(0.1, float(getattr(self, "_time_scale", 1.0)))

        layout = compute_layout(trace, layout_config, seed=seed)

        self.set_camera_orientation(phi=10 * DEGREES, theta=-90 * DEGREES)

        scheduler = ManualFrameScheduler()
        driver = AnimationDriver(scheduler, anim_config)
        driver.start(now=0.0)
        clock = ValueTracker(0.0)

        def draw():
            scheduler.advance(clock.get_value())
            elements = build_render_elements(trace, layout, driver.progress, render_config)
            return build_frame(elements)

        graph = always_redraw(draw)
        self.add(graph)

        run_time = anim_config.duration_ms / 1000.0 / time_scale
        if run_time > 0:
            self.play(clock.animate.set_value(anim_config.duration_ms), run_time=run_time, rate_func=linear)
        # Let the final frame settle before the scene is considered final
        self.wait(max(anim_config.capture_delay_ms / 1000.0 / time_scale, 0.1))
        driver.teardown()
