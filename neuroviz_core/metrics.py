"""
Layout quality metrics.

This module provides:
- Lane spread: how tightly nodes cluster around their stage lanes
- Layout bounds: the extent of a computed layout
- Edge length summary for the edges a renderer would draw
"""

from __future__ import annotations
from typing import Any, Dict, Mapping, Sequence

import numpy as np

from .graph import ExplainTrace


def lane_spread(trace: ExplainTrace, layout: Mapping[str, Sequence[float]]) -> Dict[str, Any]:
    """
    Compare x variance within lanes to x variance across lane means.

    Only nodes with a known stage and a position are counted.

    Returns:
        dict with keys: within_variance (mean of per-lane variances),
        across_variance (variance of lane means), lane_means, lanes
    """
    stage_ids = {s.id for s in trace.stages}
    xs: Dict[str, list] = {}
    for n in trace.nodes:
        if n.stage_id not in stage_ids or n.id not in layout:
            continue
        xs.setdefault(n.stage_id, []).append(float(layout[n.id][0]))

    lane_means = {sid: float(np.mean(v)) for sid, v in xs.items()}
    within = [float(np.var(v)) for v in xs.values()]
    return {
        "within_variance": float(np.mean(within)) if within else 0.0,
        "across_variance": float(np.var(list(lane_means.values()))) if lane_means else 0.0,
        "lane_means": lane_means,
        "lanes": len(xs),
    }


def layout_bounds(layout: Mapping[str, Sequence[float]]) -> Dict[str, float]:
    """Axis-aligned bounds of a layout; all zeros when it is empty."""
    if not layout:
        return {k: 0.0 for k in ("min_x", "max_x", "min_y", "max_y", "min_z", "max_z")}
    pts = np.array([tuple(p) for p in layout.values()], dtype=float)
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    return {
        "min_x": float(lo[0]),
        "max_x": float(hi[0]),
        "min_y": float(lo[1]),
        "max_y": float(hi[1]),
        "min_z": float(lo[2]),
        "max_z": float(hi[2]),
    }


def edge_length_summary(trace: ExplainTrace, layout: Mapping[str, Sequence[float]]) -> Dict[str, float]:
    """
    Summary of 3D edge lengths for edges whose endpoints are both laid out.

    Returns:
        dict with keys: count, min, mean, max
    """
    lengths = []
    for e in trace.edges:
        a = layout.get(e.source)
        b = layout.get(e.target)
        if a is None or b is None:
            continue
        lengths.append(float(np.linalg.norm(np.subtract(b, a))))

    if not lengths:
        return {"count": 0, "min": 0.0, "mean": 0.0, "max": 0.0}
    return {
        "count": len(lengths),
        "min": float(np.min(lengths)),
        "mean": float(np.mean(lengths)),
        "max": float(np.max(lengths)),
    }
