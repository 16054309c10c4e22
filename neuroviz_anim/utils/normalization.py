from __future__ import annotations

import math

from neuroviz_core.config import RenderConfig


def normalize_unsigned(value: float, vmin: float, vmax: float) -> float:
    if vmax == vmin:
        return 0.0
    x = (value - vmin) / (vmax - vmin)
    if not math.isfinite(x):
        return 0.0
    return max(0.0, min(1.0, float(x)))


def scale_with_floor(progress: float, peak: float = 1.0, floor: float = 0.01) -> float:
    """Scale `peak` by animation progress, never going below `floor`.

    Non-finite progress counts as 0; progress is clamped to [0,1].
    """
    p = normalize_unsigned(progress, 0.0, 1.0)
    return max(floor, peak * p)


def safe_importance(value: float, default: float = 0.5) -> float:
    """Importance as given when finite, otherwise `default`. Range is not enforced."""
    try:
        v = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return v if math.isfinite(v) else default


def node_radius(importance: float, config: RenderConfig | None = None) -> float:
    """Sphere radius grows with importance and stays strictly positive."""
    cfg = config or RenderConfig()
    imp = safe_importance(importance, cfg.default_importance)
    return max(cfg.node_radius_min, cfg.node_radius_base + imp * cfg.node_radius_gain)
