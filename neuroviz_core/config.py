"""
Configuration objects for the layout solver, the entrance animation and the
render layer.

Exposes tunable parameters for forces, lanes, clamping and visual floors,
enabling experiments without editing the solver.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class LayoutConfig:
    """
    Configuration for `compute_layout`.

    Defaults reproduce the compact layout the renderer was tuned for: six units
    of lane width, short links and weak charge so small traces stay on screen.
    """

    # Lanes
    stage_width: float = 6.0
    lane_strength: float = 1.5
    center_strength: float = 0.8

    # Links
    link_distance: float = 1.0
    link_strength: float = 0.5
    # Edge strength that maps to exactly `link_strength`
    reference_edge_strength: float = 0.5

    # Many-body repulsion; negative charge repels
    charge_strength: float = -10.0
    # Squared distances below this are floored to keep repulsion bounded
    charge_distance_min2: float = 1.0

    # Collision
    collide_radius: float = 0.4
    collide_iterations: int = 3
    collide_strength: float = 1.0

    # Integration
    iterations: int = 300
    velocity_decay: float = 0.4
    alpha_min: float = 0.001

    # Initial positions are drawn from [-seed_extent, seed_extent)
    seed_extent: float = 5.0

    # Emitted x/y are clamped to [-coordinate_limit, coordinate_limit]
    coordinate_limit: float = 50.0

    # Depth lift: z = (((ordinal * z_multiplier) % z_modulus) / z_modulus - 0.5) * z_spread
    z_multiplier: int = 1337
    z_modulus: int = 100
    z_spread: float = 1.5

    @property
    def alpha_decay(self) -> float:
        """Per-step decay that takes alpha from 1 to `alpha_min` in `iterations` steps."""
        if self.iterations <= 0:
            return 1.0
        return 1.0 - self.alpha_min ** (1.0 / self.iterations)


@dataclass
class AnimationConfig:
    """Timing of the entrance animation and of the post-layout snapshot."""

    duration_ms: float = 1500.0
    # Delay after a new layout before the scene is considered settled for capture
    capture_delay_ms: float = 800.0


@dataclass
class RenderConfig:
    """
    Visual constants used when turning a layout into drawable elements.

    Every floor is strictly positive; some renderers reject zero-sized or fully
    transparent geometry.
    """

    min_edge_length: float = 0.01

    node_scale_floor: float = 0.01
    node_radius_base: float = 0.25
    node_radius_gain: float = 0.1
    node_radius_min: float = 0.1
    default_importance: float = 0.5

    edge_opacity_peak: float = 0.5
    edge_opacity_floor: float = 0.1
    line_width_peak: float = 1.0
    line_width_floor: float = 0.1

    label_opacity_floor: float = 0.01
    stage_label_y: float = 2.5
    stage_label_z: float = -2.0
