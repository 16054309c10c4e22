#!/usr/bin/env python3
"""
NeuroViz CLI

Usage modes:
- Default run: load a trace, compute its layout, print positions and metrics or write JSON
- Validation: check trace references and values, print summary
- Stats: trace statistics and validation summary
- Export: write GraphML for external tools
- Utility: list sample traces, show version, dry-run load only
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from glob import glob
from pathlib import Path
from typing import Any, Dict, List

from neuroviz_core import __version__ as neuroviz_version
from neuroviz_core.compiler import compile_from_file
from neuroviz_core.config import LayoutConfig, RenderConfig
from neuroviz_core.graph import TraceFormatError
from neuroviz_core.layout import compute_layout
from neuroviz_core.metrics import edge_length_summary, lane_spread, layout_bounds
from neuroviz_anim.utils.elements import build_render_elements, renderable_edges


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Lay out a NeuroViz explanation trace and dump positions/metrics",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Utilities / meta
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v, -vv)")
    p.add_argument("--list-samples", action="store_true", help="List bundled sample traces and exit")

    # Primary input
    p.add_argument("trace", nargs="?", help="Path to a trace file (.json, .yaml or .yml)")

    # Execution
    p.add_argument("--seed", type=int, default=0, help="Layout seed")
    p.add_argument("--dry-run", action="store_true", help="Load only; do not compute a layout")
    p.add_argument("--out", type=str, default="", help="Optional output JSON file path")
    p.add_argument("--elements", action="store_true", help="Include render elements at full progress")

    # Layout config overrides
    p.add_argument("--iterations", type=int, default=None, help="Simulation steps")
    p.add_argument("--stage-width", type=float, default=None, help="Total lane width")
    p.add_argument("--link-strength", type=float, default=None, help="Base link strength")
    p.add_argument("--charge", type=float, default=None, help="Many-body charge (negative repels)")
    p.add_argument("--lane-strength", type=float, default=None, help="Pull toward stage lanes")
    p.add_argument("--center-strength", type=float, default=None, help="Vertical centering pull")
    p.add_argument("--collide-radius", type=float, default=None, help="Collision disk radius")
    p.add_argument("--clamp", type=float, default=None, help="Coordinate clamp limit")

    # Analysis / export
    p.add_argument("--validate", action="store_true", help="Run trace validation")
    p.add_argument("--stats", action="store_true", help="Print trace statistics")
    p.add_argument("--export-graphml", type=str, default="", help="Export trace to GraphML at given path")

    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> LayoutConfig:
    cfg = LayoutConfig()
    if args.iterations is not None:
        cfg.iterations = int(args.iterations)
    if args.stage_width is not None:
        cfg.stage_width = float(args.stage_width)
    if args.link_strength is not None:
        cfg.link_strength = float(args.link_strength)
    if args.charge is not None:
        cfg.charge_strength = float(args.charge)
    if args.lane_strength is not None:
        cfg.lane_strength = float(args.lane_strength)
    if args.center_strength is not None:
        cfg.center_strength = float(args.center_strength)
    if args.collide_radius is not None:
        cfg.collide_radius = float(args.collide_radius)
    if args.clamp is not None:
        cfg.coordinate_limit = float(args.clamp)
    return cfg


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def find_sample_traces() -> List[str]:
    here = Path(__file__).resolve()
    repo_root = here.parent.parent
    candidates = []
    for base in [repo_root, here.parent]:
        for pattern in ("*.yaml", "*.json"):
            candidates.extend(sorted(glob(str(base / "samples" / pattern))))
    seen = set()
    result = []
    for c in candidates:
        if c not in seen:
            seen.add(c)
            result.append(c)
    return result


def _emit(payload: Dict[str, Any], out: str) -> None:
    if out:
        with open(out, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
    else:
        print(json.dumps(payload, indent=2))


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.version:
        print(neuroviz_version)
        return 0

    if args.list_samples:
        print(json.dumps(find_sample_traces(), indent=2))
        return 0

    if not args.trace:
        print("error: missing trace path (try --list-samples)", file=sys.stderr)
        return 2

    cfg = build_config(args)

    logging.info("Loading trace from %s", args.trace)
    try:
        trace = compile_from_file(args.trace)
    except (OSError, TraceFormatError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.validate or args.stats:
        results = trace.validate_all()
        summary = trace.get_validation_summary(results)
        logging.info(
            "Validation issues: %d (errors=%d warnings=%d)",
            summary["total_issues"], summary["errors"], summary["warnings"],
        )
        if args.validate and not args.stats:
            print(json.dumps({"summary": summary, "results": results}, indent=2))
            return 1 if summary["errors"] > 0 else 0

    if args.stats:
        print(json.dumps(trace.get_trace_statistics(), indent=2))
        if args.dry_run:
            return 0

    if args.export_graphml:
        logging.info("Exporting GraphML to %s", args.export_graphml)
        trace.export_graphml(args.export_graphml)

    if args.dry_run:
        minimal = {
            "stages": len(trace.stages),
            "nodes": len(trace.nodes),
            "edges": len(trace.edges),
        }
        _emit(minimal, args.out)
        return 0

    layout = compute_layout(trace, cfg, seed=args.seed)
    render_cfg = RenderConfig()

    summary: Dict[str, Any] = {
        "seed": args.seed,
        "positions": {nid: list(p) for nid, p in layout.items()},
        "renderable_edges": len(renderable_edges(trace.edges, layout, render_cfg.min_edge_length)),
        "metrics": {
            "lane_spread": lane_spread(trace, layout),
            "bounds": layout_bounds(layout),
            "edge_lengths": edge_length_summary(trace, layout),
        },
    }
    if args.elements:
        summary["elements"] = build_render_elements(trace, layout, 1.0, render_cfg)

    _emit(summary, args.out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
