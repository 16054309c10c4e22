from __future__ import annotations


def ease_cubic_out(t: float) -> float:
    """Cubic ease-out on [0,1]: fast start, slow finish.

    Input is clamped to [0,1]; ease_cubic_out(0) == 0 and ease_cubic_out(1) == 1.
    """
    t = max(0.0, min(1.0, float(t)))
    t -= 1.0
    return t * t * t + 1.0


def linear(t: float) -> float:
    return max(0.0, min(1.0, float(t)))
