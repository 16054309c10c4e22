from __future__ import annotations

import argparse
import logging
from typing import Type

from manim import config as manim_config

from neuroviz_core.compiler import compile_from_file

from neuroviz_anim.scenes.reasoning_graph import ReasoningGraphScene


def render_scene(
    scene_cls: Type[ReasoningGraphScene],
    trace_path: str,
    quality: str = "ql",
    preview: bool = False,
    time_scale: float = 1.0,
    seed: int = 0,
    snapshot: bool = False,
    output_file: str | None = None,
):
    trace = compile_from_file(trace_path)

    # Configure manim (quality shortcuts)
    if quality == "ql":
        manim_config.quality = "low_quality"
    elif quality == "qh":
        manim_config.quality = "high_quality"
    else:
        manim_config.quality = quality

    manim_config.preview = preview
    # A snapshot is the settled last frame written as a still image
    manim_config.save_last_frame = snapshot
    if output_file:
        manim_config.output_file = output_file

    scene = scene_cls()
    setattr(scene, "_trace", trace)
    setattr(scene, "_seed", int(seed))
    setattr(scene, "_time_scale", float(time_scale))
    scene.render()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Render a NeuroViz reasoning graph")
    parser.add_argument("trace", help="Trace file (.json, .yaml or .yml)")
    parser.add_argument("--scene", default="ReasoningGraphScene")
    parser.add_argument("--quality", default="ql", help="manim quality: ql/qh")
    parser.add_argument("--preview", action="store_true")
    parser.add_argument("--time-scale", type=float, default=1.0)
    parser.add_argument("--seed", type=int, default=0, help="Layout seed")
    parser.add_argument("--snapshot", action="store_true", help="Write the settled last frame as a PNG instead of a video")
    parser.add_argument("--output", default=None, help="Output file name")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose >= 2 else logging.INFO if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(message)s",
    )

    scene_map = {
        "ReasoningGraphScene": ReasoningGraphScene,
    }

    scene_cls = scene_map.get(args.scene)
    if scene_cls is None:
        raise SystemExit(f"Unknown scene: {args.scene}")

    render_scene(
        scene_cls,
        args.trace,
        quality=args.quality,
        preview=args.preview,
        time_scale=args.time_scale,
        seed=args.seed,
        snapshot=args.snapshot,
        output_file=args.output,
    )


if __name__ == "__main__":  # pragma: no cover
    main()
