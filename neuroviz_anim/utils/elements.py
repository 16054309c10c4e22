"""
Renderer-agnostic drawable elements built from a trace and its layout.

Decoupled from Manim so that edge filtering and visual floors can be tested
without a rendering backend.
"""

from __future__ import annotations

import math
import numbers
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from neuroviz_core.config import RenderConfig
from neuroviz_core.enums import NodeType
from neuroviz_core.graph import Edge, ExplainTrace

from .normalization import node_radius, scale_with_floor

NODE_COLORS = {
    NodeType.INTENT: "#be185d",
    NodeType.FACT: "#1d4ed8",
    NodeType.INTERMEDIATE: "#a16207",
    NodeType.CONCLUSION: "#15803d",
    NodeType.CONSTRAINT: "#b91c1c",
    NodeType.CONTEXT: "#7e22ce",
}
DEFAULT_NODE_COLOR = "#475569"
EDGE_COLOR = "#94a3b8"
STAGE_LABEL_COLOR = "#334155"

Point = Tuple[float, float, float]


def color_for_node_type(node_type: Optional[NodeType]) -> str:
    return NODE_COLORS.get(node_type, DEFAULT_NODE_COLOR)


def is_finite_point(p: Optional[Sequence[float]]) -> bool:
    if p is None or len(p) != 3:
        return False
    try:
        return all(isinstance(c, numbers.Real) and math.isfinite(c) for c in p)
    except OverflowError:
        return False


def renderable_edges(
    edges: Iterable[Edge],
    positions: Mapping[str, Sequence[float]],
    min_length: float = 0.01,
) -> List[Tuple[Edge, Point, Point]]:
    """Edges a renderer can safely draw, with their endpoints.

    An edge survives only if both endpoints have finite positions and are
    further apart than `min_length`; near-zero segments are valid data but
    degenerate geometry.
    """
    out: List[Tuple[Edge, Point, Point]] = []
    for e in edges:
        start = positions.get(e.source)
        end = positions.get(e.target)
        if not is_finite_point(start) or not is_finite_point(end):
            continue
        if math.dist(start, end) < min_length:
            continue
        out.append((e, tuple(map(float, start)), tuple(map(float, end))))
    return out


def build_render_elements(
    trace: ExplainTrace,
    layout: Mapping[str, Sequence[float]],
    progress: float,
    config: RenderConfig | None = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """Convert a laid-out trace into drawable nodes, edges and stage labels.

    Visual properties scale with `progress` and keep strictly positive floors.
    Nodes without a finite position are skipped; stage labels sit at the mean
    x of their laid-out nodes and are skipped for stages without any.

    Returns:
        dict with keys nodes, edges and stage_labels, each a list of dicts
    """
    cfg = config or RenderConfig()
    scale = scale_with_floor(progress, 1.0, cfg.node_scale_floor)

    nodes: List[Dict[str, Any]] = []
    for n in trace.nodes:
        pos = layout.get(n.id)
        if not is_finite_point(pos):
            continue
        nodes.append(
            {
                "id": n.id,
                "label": str(n.label or "Node"),
                "position": tuple(map(float, pos)),
                "color": color_for_node_type(n.type),
                "radius": node_radius(n.importance, cfg),
                "scale": scale,
            }
        )

    edges: List[Dict[str, Any]] = []
    for i, (e, start, end) in enumerate(renderable_edges(trace.edges, layout, cfg.min_edge_length)):
        edges.append(
            {
                "id": f"edge-{e.source}-{e.target}-{i}",
                "source": e.source,
                "target": e.target,
                "relation_label": e.relation_label,
                "points": (start, end),
                "color": EDGE_COLOR,
                "opacity": scale_with_floor(progress, cfg.edge_opacity_peak, cfg.edge_opacity_floor),
                "width": scale_with_floor(progress, cfg.line_width_peak, cfg.line_width_floor),
            }
        )

    stage_labels: List[Dict[str, Any]] = []
    for s in trace.stages:
        xs = [
            float(layout[n.id][0])
            for n in trace.nodes_in_stage(s.id)
            if is_finite_point(layout.get(n.id))
        ]
        if not xs:
            continue
        avg_x = sum(xs) / len(xs)
        if not math.isfinite(avg_x):
            continue
        stage_labels.append(
            {
                "id": s.id,
                "label": str(s.label or "Stage"),
                "position": (avg_x, cfg.stage_label_y, cfg.stage_label_z),
                "color": STAGE_LABEL_COLOR,
                "opacity": scale_with_floor(progress, 1.0, cfg.label_opacity_floor),
            }
        )

    return {"nodes": nodes, "edges": edges, "stage_labels": stage_labels}
