"""
Graph data structures for NeuroViz explanation traces.

This module defines the immutable snapshot handed to the layout solver:
- Stage: an ordered reasoning phase that owns a horizontal lane
- Node: a concept, fact or claim placed in a stage
- Edge: a directed relation between two nodes
- ExplainTrace: the snapshot aggregating stages, nodes and edges

Snapshots are repaired once at the input boundary (`ExplainTrace.from_dict`):
duplicate ids are dropped and edges with unknown endpoints are discarded, so the
solver and the render layer can rely on a consistent structure.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import networkx as nx

from .enums import Confidence, NodeType

logger = logging.getLogger(__name__)


class TraceFormatError(ValueError):
    """Raised when a payload cannot be interpreted as a trace at all."""


@dataclass(frozen=True)
class Stage:
    """
    An ordered phase of reasoning.

    Attributes:
        id: Unique identifier of the stage
        label: Display label
        description: Free-form description
        weight: Relative weight (informational, unused by layout)
    """

    id: str
    label: str = ""
    description: str = ""
    weight: float = 1.0


@dataclass(frozen=True)
class Node:
    """
    A concept, fact or claim in the trace.

    Attributes:
        id: Unique identifier of the node
        label: Display label
        type: Node kind, or None when the payload used an unknown tag
        importance: Nominally in [0, 1]; not validated, may be non-finite
        stage_id: Stage the node belongs to; may reference a missing stage
    """

    id: str
    label: str = ""
    type: Optional[NodeType] = None
    importance: float = 0.5
    stage_id: str = ""


@dataclass(frozen=True)
class Edge:
    """
    A directed relation between two nodes.

    Attributes:
        source: Source node id
        target: Target node id
        relation_label: Short description of the relation
        strength: Relation strength, nominally in [0, 1]
    """

    source: str
    target: str
    relation_label: str = ""
    strength: float = 0.5


@dataclass(frozen=True)
class ExplainTrace:
    """
    Immutable snapshot of an explanation graph.

    Stage order is meaningful: the index of a stage in `stages` is its lane.
    `repairs` lists what `from_dict` had to fix; it does not take part in
    equality.
    """

    stages: Tuple[Stage, ...] = ()
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    steps: Tuple[str, ...] = ()
    key_factors: Tuple[str, ...] = ()
    confidence: Optional[Confidence] = None
    timestamp: str = ""
    repairs: Tuple[str, ...] = field(default=(), compare=False)

    # ----- construction -----
    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ExplainTrace":
        """
        Build a trace from a parsed JSON/YAML payload, repairing it on the way.

        Missing arrays are treated as empty, entries without an id are skipped,
        later duplicates of an id are dropped and edges whose endpoints are not
        nodes are discarded. Dangling `stage_id` references are kept: such nodes
        simply get no lane.

        Args:
            data: Mapping with optional keys stages, nodes, edges, steps,
                key_factors, confidence and timestamp

        Returns:
            ExplainTrace: The repaired snapshot

        Raises:
            TraceFormatError: If `data` is not a mapping
        """
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise TraceFormatError(
                f"Trace payload must be a mapping, got {type(data).__name__}"
            )

        repairs: List[str] = []

        stages: List[Stage] = []
        seen_stages = set()
        for raw in _as_list(data.get("stages")):
            sid = _entry_id(raw)
            if sid is None:
                repairs.append("Skipped stage without an id")
                continue
            if sid in seen_stages:
                repairs.append(f"Dropped duplicate stage '{sid}'")
                continue
            seen_stages.add(sid)
            stages.append(
                Stage(
                    id=sid,
                    label=str(raw.get("label") or sid),
                    description=str(raw.get("description") or ""),
                    weight=_as_float(raw.get("weight"), 1.0),
                )
            )

        nodes: List[Node] = []
        seen_nodes = set()
        for raw in _as_list(data.get("nodes")):
            nid = _entry_id(raw)
            if nid is None:
                repairs.append("Skipped node without an id")
                continue
            if nid in seen_nodes:
                repairs.append(f"Dropped duplicate node '{nid}'")
                continue
            seen_nodes.add(nid)
            stage_id = raw.get("stage_id")
            nodes.append(
                Node(
                    id=nid,
                    label=str(raw.get("label") or nid),
                    type=NodeType.parse(raw.get("type")),
                    importance=_as_float(raw.get("importance"), 0.5),
                    stage_id="" if stage_id is None else str(stage_id),
                )
            )

        edges: List[Edge] = []
        for raw in _as_list(data.get("edges")):
            if not isinstance(raw, Mapping):
                repairs.append("Skipped edge that is not a mapping")
                continue
            src = raw.get("source")
            dst = raw.get("target")
            src = None if src is None else str(src)
            dst = None if dst is None else str(dst)
            if src not in seen_nodes or dst not in seen_nodes:
                repairs.append(f"Dropped edge {src} -> {dst} with unknown endpoint")
                continue
            edges.append(
                Edge(
                    source=src,
                    target=dst,
                    relation_label=str(raw.get("relation_label") or ""),
                    strength=_as_float(raw.get("strength"), 0.5),
                )
            )

        confidence = None
        if data.get("confidence") is not None:
            try:
                confidence = Confidence(str(data["confidence"]).strip().lower())
            except ValueError:
                repairs.append(f"Ignored unknown confidence '{data['confidence']}'")

        if repairs:
            logger.warning("Repaired trace at input boundary (%d fixes)", len(repairs))
            for r in repairs:
                logger.debug("  %s", r)

        return cls(
            stages=tuple(stages),
            nodes=tuple(nodes),
            edges=tuple(edges),
            steps=tuple(str(s) for s in _as_list(data.get("steps"))),
            key_factors=tuple(str(k) for k in _as_list(data.get("key_factors"))),
            confidence=confidence,
            timestamp=str(data.get("timestamp") or ""),
            repairs=tuple(repairs),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize back to the payload shape accepted by `from_dict`."""
        return {
            "stages": [
                {"id": s.id, "label": s.label, "description": s.description, "weight": s.weight}
                for s in self.stages
            ],
            "nodes": [
                {
                    "id": n.id,
                    "label": n.label,
                    "type": n.type.value if n.type else None,
                    "importance": n.importance,
                    "stage_id": n.stage_id,
                }
                for n in self.nodes
            ],
            "edges": [
                {
                    "source": e.source,
                    "target": e.target,
                    "relation_label": e.relation_label,
                    "strength": e.strength,
                }
                for e in self.edges
            ],
            "steps": list(self.steps),
            "key_factors": list(self.key_factors),
            "confidence": self.confidence.value if self.confidence else None,
            "timestamp": self.timestamp,
        }

    # ----- lookups -----
    def node_ids(self) -> List[str]:
        """Node ids in input order."""
        return [n.id for n in self.nodes]

    def stage_index(self) -> Dict[str, int]:
        """Map stage id to its lane index (first occurrence wins)."""
        index: Dict[str, int] = {}
        for s in self.stages:
            index.setdefault(s.id, len(index))
        return index

    def valid_edges(self) -> List[Edge]:
        """Edges whose source and target are both nodes of this trace."""
        ids = set(self.node_ids())
        return [e for e in self.edges if e.source in ids and e.target in ids]

    def nodes_in_stage(self, stage_id: str) -> List[Node]:
        return [n for n in self.nodes if n.stage_id == stage_id]

    def is_empty(self) -> bool:
        return not self.nodes

    # ----- validation -----
    def validate_references(self) -> Dict[str, List[str]]:
        """
        Check references between stages, nodes and edges.

        Dangling stage references are tolerated by the solver and reported as
        warnings; edges with unknown endpoints and duplicate ids can only appear
        when a trace is built directly instead of through `from_dict`, and are
        errors.

        Returns:
            Dictionary of issues by category
        """
        issues = {
            "reference_warnings": [],
            "structure_errors": [],
        }

        stage_ids = set(self.stage_index())
        for n in self.nodes:
            if n.stage_id not in stage_ids:
                issues["reference_warnings"].append(
                    f"Node '{n.id}' references unknown stage '{n.stage_id}'"
                )

        ids = self.node_ids()
        if len(set(ids)) != len(ids):
            dupes = sorted({i for i in ids if ids.count(i) > 1})
            issues["structure_errors"].append(f"Duplicate node ids: {', '.join(dupes)}")

        known = set(ids)
        for e in self.edges:
            if e.source not in known or e.target not in known:
                issues["structure_errors"].append(
                    f"Edge {e.source} -> {e.target} references an unknown node"
                )

        return {k: v for k, v in issues.items() if v}

    def validate_values(self) -> Dict[str, List[str]]:
        """
        Check numeric attributes and type tags.

        Importance and strength are nominally in [0, 1]. Out-of-range or
        non-finite values are only warnings: the solver and render layer fall
        back to safe values.
        """
        issues = {
            "value_warnings": [],
            "type_warnings": [],
        }

        for n in self.nodes:
            if not math.isfinite(n.importance) or not (0.0 <= n.importance <= 1.0):
                issues["value_warnings"].append(
                    f"Node '{n.id}' importance {n.importance} is outside [0.0, 1.0]"
                )
            if n.type is None:
                issues["type_warnings"].append(f"Node '{n.id}' has an unknown type")

        for e in self.edges:
            if not math.isfinite(e.strength) or not (0.0 <= e.strength <= 1.0):
                issues["value_warnings"].append(
                    f"Edge {e.source} -> {e.target} strength {e.strength} is outside [0.0, 1.0]"
                )

        return {k: v for k, v in issues.items() if v}

    def validate_all(self) -> Dict[str, Dict[str, List[str]]]:
        """
        Run every validation and include the repairs done at the input boundary.

        Returns:
            Dictionary organized by validation category, each containing issues
        """
        results: Dict[str, Dict[str, List[str]]] = {}

        reference_issues = self.validate_references()
        if reference_issues:
            results["references"] = reference_issues

        value_issues = self.validate_values()
        if value_issues:
            results["values"] = value_issues

        if self.repairs:
            results["input_repairs"] = {"repair_warnings": list(self.repairs)}

        return results

    @staticmethod
    def get_validation_summary(
        validation_results: Dict[str, Dict[str, List[str]]]
    ) -> Dict[str, int]:
        """
        Count issues by severity.

        Issue lists whose name contains "error" count as errors, those
        containing "warning" as warnings.
        """
        summary = {
            "total_issues": 0,
            "errors": 0,
            "warnings": 0,
            "categories_with_issues": 0,
        }

        for _, issues in validation_results.items():
            category_issue_count = 0
            for issue_type, issue_list in issues.items():
                issue_count = len(issue_list)
                category_issue_count += issue_count

                if "error" in issue_type:
                    summary["errors"] += issue_count
                elif "warning" in issue_type:
                    summary["warnings"] += issue_count

            if category_issue_count > 0:
                summary["categories_with_issues"] += 1
                summary["total_issues"] += category_issue_count

        return summary

    def is_valid(self) -> bool:
        """True when validation finds no errors (warnings are allowed)."""
        return self.get_validation_summary(self.validate_all())["errors"] == 0

    # ----- statistics / export -----
    def get_trace_statistics(self) -> Dict[str, Any]:
        """Counts and validation summary for monitoring and the CLI."""
        type_counts: Dict[str, int] = {}
        for n in self.nodes:
            key = n.type.value if n.type else "unknown"
            type_counts[key] = type_counts.get(key, 0) + 1

        stage_counts = {s.id: len(self.nodes_in_stage(s.id)) for s in self.stages}
        stage_ids = set(stage_counts)
        unstaged = len([n for n in self.nodes if n.stage_id not in stage_ids])

        g = self.to_networkx()
        return {
            "basic_stats": {
                "stages": len(self.stages),
                "nodes": len(self.nodes),
                "edges": len(self.edges),
                "node_types": type_counts,
                "nodes_per_stage": stage_counts,
                "unstaged_nodes": unstaged,
            },
            "connectivity": {
                "weakly_connected_components": (
                    nx.number_weakly_connected_components(g) if len(g) else 0
                ),
                "isolated_nodes": len(list(nx.isolates(g))),
            },
            "validation_summary": self.get_validation_summary(self.validate_all()),
        }

    def to_networkx(self) -> "nx.DiGraph":
        """
        Convert the trace to a NetworkX DiGraph for export/analysis.

        Only edges whose endpoints are nodes of the trace are included.
        """
        G = nx.DiGraph()

        for n in self.nodes:
            G.add_node(
                n.id,
                label=n.label,
                type=n.type.value if n.type else "unknown",
                importance=n.importance,
                stage_id=n.stage_id,
            )

        for e in self.valid_edges():
            G.add_edge(
                e.source,
                e.target,
                relation_label=e.relation_label,
                strength=e.strength,
            )

        return G

    def export_graphml(self, filepath: str) -> None:
        """Export the trace to GraphML for external graph tools."""
        nx.write_graphml(self.to_networkx(), filepath)


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _entry_id(raw: Any) -> Optional[str]:
    if not isinstance(raw, Mapping):
        return None
    value = raw.get("id")
    if value is None or str(value) == "":
        return None
    return str(value)


def _as_float(value: Any, default: float) -> float:
    """Coerce to float without validating range; non-numeric input gets `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return default
