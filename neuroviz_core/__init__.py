"""
NeuroViz Core Package.

This package contains the numerical side of the reasoning-graph visualizer:

- Core data structures (ExplainTrace, Stage, Node, Edge)
- Trace loading from JSON/YAML payloads
- The lane-constrained force layout solver
- Layout quality metrics

Rendering and the entrance animation live in `neuroviz_anim`.
"""

# NeuroViz Core Package

__version__ = "0.1.0"

from .enums import NodeType, Confidence, AnimationPhase
from .graph import ExplainTrace, Stage, Node, Edge, TraceFormatError
from .config import LayoutConfig, AnimationConfig, RenderConfig
from .layout import compute_layout, Position
from .compiler import compile_from_dict, compile_from_yaml, compile_from_json, compile_from_file
from .metrics import lane_spread, layout_bounds, edge_length_summary
