"""
Lane-constrained force-directed layout for explanation traces.

The solver embeds the nodes of an `ExplainTrace` in 2D with a small set of
forces (links, many-body repulsion, stage lanes, vertical centering and
collision), then lifts the result to 3D with a deterministic depth offset.

The simulation runs for a fixed number of steps over an explicit state buffer:
`step()` takes a `SimulationState` and returns a new one, leaving its input
untouched. After every step non-finite coordinates are replaced by the node's
seed coordinate, and emitted coordinates are clamped, so the caller always gets
finite positions. Any unexpected failure degrades to an empty layout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, NamedTuple, Sequence, Tuple, Union

import numpy as np

from .config import LayoutConfig
from .graph import ExplainTrace, Node, Stage

logger = logging.getLogger(__name__)

# Magnitude of the random nudge used to separate coincident points
JIGGLE = 1e-6


class Position(NamedTuple):
    x: float
    y: float
    z: float


LayoutResult = Dict[str, Position]


@dataclass(frozen=True, eq=False)
class ForceModel:
    """
    Constants of one layout run, derived from the trace.

    Attributes:
        node_ids: Node ids in ordinal order
        lane_x: Target x per node
        lane_k: Pull toward `lane_x` per node (`center_strength` for nodes without a known stage)
        link_src: Source ordinal per link
        link_dst: Target ordinal per link
        link_strength: Effective strength per link
        link_bias: Share of each link's correction applied to its target
        seed_xy: Initial positions, also the fallback for non-finite coordinates
        seed: Root seed, used to derive per-step jiggle streams
        config: Layout configuration
    """

    node_ids: Tuple[str, ...]
    lane_x: np.ndarray
    lane_k: np.ndarray
    link_src: np.ndarray
    link_dst: np.ndarray
    link_strength: np.ndarray
    link_bias: np.ndarray
    seed_xy: np.ndarray
    seed: int
    config: LayoutConfig


@dataclass(frozen=True, eq=False)
class SimulationState:
    """
    Owned simulation buffer.

    Attributes:
        pos: (n, 2) positions
        vel: (n, 2) velocities
        alpha: Current cooling factor
        tick: Number of steps taken
        recovered: Coordinates replaced by the stability guard in the last step
    """

    pos: np.ndarray
    vel: np.ndarray
    alpha: float = 1.0
    tick: int = 0
    recovered: int = 0


# ----- construction -----
def lane_targets(stages: Sequence[Union[Stage, str]], width: float) -> Dict[str, float]:
    """
    Evenly space stages across `width`, in order.

    Stage `i` of `n > 1` targets `-width/2 + (i / (n - 1)) * width`; a single
    stage targets 0. Later duplicates of a stage id keep the first lane.
    """
    ids: List[str] = []
    for s in stages:
        sid = s.id if isinstance(s, Stage) else str(s)
        if sid not in ids:
            ids.append(sid)

    n = len(ids)
    if n == 1:
        return {ids[0]: 0.0}
    return {sid: -width / 2 + (i / (n - 1)) * width for i, sid in enumerate(ids)}


def seed_positions(n: int, seed: int, extent: float) -> np.ndarray:
    """
    Draw an independent starting point for each of `n` nodes.

    Each node gets its own child of `SeedSequence(seed)`, so no two nodes share
    a generator state and adding a node never shifts the others' seeds.
    """
    children = np.random.SeedSequence(seed).spawn(n)
    xy = np.empty((n, 2), dtype=float)
    for i, child in enumerate(children):
        xy[i] = np.random.default_rng(child).uniform(-extent, extent, size=2)
    return xy


def depth_offset(ordinal: int, config: LayoutConfig) -> float:
    """Deterministic z for the node at `ordinal` in the node list."""
    if config.z_modulus <= 0:
        return 0.0
    frac = ((ordinal * config.z_multiplier) % config.z_modulus) / config.z_modulus
    z = (frac - 0.5) * config.z_spread
    return float(z) if np.isfinite(z) else 0.0


def _unique_nodes(nodes: Iterable[Node]) -> List[Node]:
    seen = set()
    out = []
    for n in nodes:
        if n.id in seen:
            continue
        seen.add(n.id)
        out.append(n)
    return out


def _edge_scale(strength: float, config: LayoutConfig) -> float:
    s = strength if np.isfinite(strength) else config.reference_edge_strength
    s = min(1.0, max(0.0, s))
    if config.reference_edge_strength <= 0:
        return 1.0
    return s / config.reference_edge_strength


def build_force_model(
    trace: ExplainTrace, config: LayoutConfig | None = None, seed: int = 0
) -> ForceModel:
    """
    Derive lanes, links and seed positions for `trace`.

    Edges with unknown endpoints and self-loops are left out of the force
    model. Edge strength scales link force magnitude relative to
    `reference_edge_strength`; it never changes the target distance. Nodes
    without a known stage get no lane; their x is centered on 0 with
    `center_strength`, like y.
    """
    cfg = config or LayoutConfig()
    nodes = _unique_nodes(trace.nodes)
    index = {n.id: i for i, n in enumerate(nodes)}

    targets = lane_targets(trace.stages, cfg.stage_width) if trace.stages else {}
    lane_x = np.array([targets.get(n.stage_id, 0.0) for n in nodes], dtype=float)
    lane_k = np.array(
        [cfg.lane_strength if n.stage_id in targets else cfg.center_strength for n in nodes],
        dtype=float,
    )

    src: List[int] = []
    dst: List[int] = []
    strength: List[float] = []
    for e in trace.edges:
        if e.source not in index or e.target not in index:
            continue
        if e.source == e.target:
            continue
        src.append(index[e.source])
        dst.append(index[e.target])
        strength.append(cfg.link_strength * _edge_scale(e.strength, cfg))

    link_src = np.array(src, dtype=int)
    link_dst = np.array(dst, dtype=int)
    count = np.bincount(np.concatenate([link_src, link_dst]), minlength=len(nodes))
    if len(src):
        link_bias = count[link_src] / (count[link_src] + count[link_dst])
    else:
        link_bias = np.empty(0, dtype=float)

    return ForceModel(
        node_ids=tuple(n.id for n in nodes),
        lane_x=lane_x,
        lane_k=lane_k,
        link_src=link_src,
        link_dst=link_dst,
        link_strength=np.array(strength, dtype=float),
        link_bias=link_bias.astype(float),
        seed_xy=seed_positions(len(nodes), seed, cfg.seed_extent),
        seed=seed,
        config=cfg,
    )


def initial_state(model: ForceModel) -> SimulationState:
    return SimulationState(pos=model.seed_xy.copy(), vel=np.zeros_like(model.seed_xy))


# ----- forces -----
def _separate_coincident(diff: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """Replace zero-length pair vectors with a tiny antisymmetric random nudge."""
    n = diff.shape[0]
    zero = np.all(diff == 0.0, axis=-1)
    zero[np.tril_indices(n)] = False
    if not zero.any():
        return diff
    i, j = np.nonzero(zero)
    nudge = (rng.random((len(i), 2)) - 0.5) * JIGGLE
    diff = diff.copy()
    diff[i, j] = nudge
    diff[j, i] = -nudge
    return diff


def _apply_links(pos, vel, model: ForceModel, alpha: float, rng) -> None:
    if not len(model.link_src):
        return
    s, t = model.link_src, model.link_dst
    d = (pos[t] + vel[t]) - (pos[s] + vel[s])
    zero = np.all(d == 0.0, axis=1)
    if zero.any():
        d[zero] = (rng.random((int(zero.sum()), 2)) - 0.5) * JIGGLE
    length = np.hypot(d[:, 0], d[:, 1])
    k = (length - model.config.link_distance) / length * alpha * model.link_strength
    d *= k[:, None]
    np.add.at(vel, t, -d * model.link_bias[:, None])
    np.add.at(vel, s, d * (1.0 - model.link_bias)[:, None])


def _apply_charge(pos, vel, model: ForceModel, alpha: float, rng) -> None:
    n = pos.shape[0]
    if n < 2:
        return
    # diff[i, j] points from i to j
    diff = _separate_coincident(pos[None, :, :] - pos[:, None, :], rng)
    d2 = np.einsum("ijk,ijk->ij", diff, diff)
    min2 = model.config.charge_distance_min2
    d2 = np.where(d2 < min2, np.sqrt(min2 * d2), d2)
    np.fill_diagonal(d2, np.inf)
    w = model.config.charge_strength * alpha / d2
    vel += np.einsum("ijk,ij->ik", diff, w)


def _apply_lanes(pos, vel, model: ForceModel, alpha: float) -> None:
    vel[:, 0] += (model.lane_x - pos[:, 0]) * model.lane_k * alpha


def _apply_centering(pos, vel, model: ForceModel, alpha: float) -> None:
    vel[:, 1] += (0.0 - pos[:, 1]) * model.config.center_strength * alpha


def _apply_collisions(pos, vel, model: ForceModel, rng) -> None:
    cfg = model.config
    n = pos.shape[0]
    if n < 2 or cfg.collide_radius <= 0:
        return
    r = 2.0 * cfg.collide_radius
    for _ in range(cfg.collide_iterations):
        p = pos + vel
        # diff[i, j] points from j to i
        diff = _separate_coincident(p[:, None, :] - p[None, :, :], rng)
        d2 = np.einsum("ijk,ijk->ij", diff, diff)
        np.fill_diagonal(d2, np.inf)
        overlap = d2 < r * r
        if not overlap.any():
            break
        length = np.sqrt(np.where(overlap, d2, 1.0))
        k = np.where(overlap, (r - length) / length * cfg.collide_strength, 0.0)
        # Equal radii: each node of a pair takes half of the correction
        vel += 0.5 * np.einsum("ijk,ij->ik", diff, k)


def _stabilize(pos, vel, fallback) -> Tuple[np.ndarray, np.ndarray, int]:
    bad = ~np.isfinite(pos)
    recovered = int(bad.sum())
    if recovered:
        pos = np.where(bad, fallback, pos)
    bad_vel = bad | ~np.isfinite(vel)
    if bad_vel.any():
        vel = np.where(bad_vel, 0.0, vel)
    return pos, vel, recovered


def step(state: SimulationState, model: ForceModel) -> SimulationState:
    """
    Advance the simulation by one step.

    Forces are applied in order: links, repulsion, lanes, centering, then
    collision resolution. Velocities decay and positions integrate. The
    stability guard runs on the incoming buffer and on the result, replacing
    non-finite coordinates with seed coordinates. `state` is not modified.
    """
    cfg = model.config
    pos, vel, carried = _stabilize(state.pos.copy(), state.vel.copy(), model.seed_xy)
    alpha = state.alpha + (0.0 - state.alpha) * cfg.alpha_decay
    rng = np.random.default_rng([model.seed, state.tick])

    with np.errstate(all="ignore"):
        _apply_links(pos, vel, model, alpha, rng)
        _apply_charge(pos, vel, model, alpha, rng)
        _apply_lanes(pos, vel, model, alpha)
        _apply_centering(pos, vel, model, alpha)
        _apply_collisions(pos, vel, model, rng)

        vel *= 1.0 - cfg.velocity_decay
        pos += vel

    pos, vel, recovered = _stabilize(pos, vel, model.seed_xy)
    return SimulationState(
        pos=pos, vel=vel, alpha=alpha, tick=state.tick + 1, recovered=carried + recovered
    )


def run_simulation(model: ForceModel) -> SimulationState:
    """Run `config.iterations` steps from the seed positions."""
    state = initial_state(model)
    for _ in range(model.config.iterations):
        state = step(state, model)
        if state.recovered:
            logger.warning(
                "Non-finite coordinates at step %d; restored %d from seed",
                state.tick,
                state.recovered,
            )
    return state


# ----- entry point -----
def compute_layout(
    trace: ExplainTrace | Mapping | None,
    config: LayoutConfig | None = None,
    seed: int = 0,
) -> LayoutResult:
    """
    Compute finite 3D positions for every node of `trace`.

    A trace with exactly one node is placed at its lane target with y = 0,
    regardless of `seed`. Larger traces run the force simulation from seeded
    positions. x/y are clamped to `config.coordinate_limit`; z comes from
    `depth_offset`.

    Args:
        trace: Snapshot to lay out; a raw mapping is repaired first
        config: Layout configuration, defaults to `LayoutConfig()`
        seed: Non-negative root seed for initial positions

    Returns:
        dict of node_id -> Position; empty for empty input or on solver failure

    Raises:
        ValueError: If `seed` is negative
    """
    if seed < 0:
        raise ValueError("seed must be non-negative")
    cfg = config or LayoutConfig()

    try:
        if not isinstance(trace, ExplainTrace):
            trace = ExplainTrace.from_dict(trace)
        nodes = _unique_nodes(trace.nodes)
        if not nodes:
            return {}

        if len(nodes) == 1:
            targets = lane_targets(trace.stages, cfg.stage_width) if trace.stages else {}
            xy = np.array([[targets.get(nodes[0].stage_id, 0.0), 0.0]])
            fallback = np.zeros_like(xy)
        else:
            model = build_force_model(trace, cfg, seed)
            xy = run_simulation(model).pos
            fallback = model.seed_xy

        xy, _, _ = _stabilize(xy, np.zeros_like(xy), fallback)
        xy = np.nan_to_num(xy, nan=0.0, posinf=0.0, neginf=0.0)
        limit = abs(cfg.coordinate_limit)
        xy = np.clip(xy, -limit, limit)

        return {
            n.id: Position(float(xy[i, 0]), float(xy[i, 1]), depth_offset(i, cfg))
            for i, n in enumerate(nodes)
        }
    except Exception:
        logger.exception("Layout solver failed; returning empty layout")
        return {}
