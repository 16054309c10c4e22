from __future__ import annotations

from typing import Any, Dict, List

from manim import DEFAULT_STROKE_WIDTH, DOWN, Dot3D, Line, Text, VGroup

LABEL_COLOR = "#1e293b"


def create_node(element: Dict[str, Any]) -> VGroup:
    scale = float(element["scale"])
    sphere = Dot3D(
        point=element["position"],
        radius=element["radius"] * scale,
        color=element["color"],
    )
    text = Text(element["label"], font_size=14, color=LABEL_COLOR)
    text.scale(scale)
    text.next_to(sphere, DOWN, buff=0.1)
    return VGroup(sphere, text)


def create_edge(element: Dict[str, Any]) -> Line:
    start, end = element["points"]
    return Line(
        start,
        end,
        color=element["color"],
        stroke_width=DEFAULT_STROKE_WIDTH * element["width"],
        stroke_opacity=element["opacity"],
    )


def create_stage_label(element: Dict[str, Any]) -> Text:
    label = Text(element["label"], font_size=20, color=element["color"])
    label.move_to(element["position"])
    label.set_opacity(element["opacity"])
    return label


def build_frame(elements: Dict[str, List[Dict[str, Any]]]) -> VGroup:
    """One frame of the graph: edges below nodes, stage labels on top."""
    edges = [create_edge(e) for e in elements.get("edges", [])]
    nodes = [create_node(n) for n in elements.get("nodes", [])]
    labels = [create_stage_label(s) for s in elements.get("stage_labels", [])]
    return VGroup(*edges, *nodes, *labels)
