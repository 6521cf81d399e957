"""Route construction and obstacle-independent path penalties."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Tuple

import numpy as np

from ped_env.sim.corridor import HALF_WIDTH_M, CorridorFrame


@dataclass(frozen=True)
class PathScoringConfig:
    length_coef: float = -0.03
    heading_threshold_deg: float = 30.0
    heading_penalty: float = -0.03
    lateral_threshold_m: float = 0.4
    lateral_penalty: float = -0.01

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "PathScoringConfig":
        d = d or {}
        return cls(**{k: float(v) for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class PathPenalties:
    length: float
    heading: float
    lateral: float

    @property
    def total(self) -> float:
        return float(self.length + self.heading + self.lateral)


def build_route(
    start_xz: Tuple[float, float],
    destination_xz: Tuple[float, float],
    action: np.ndarray,
    frame: CorridorFrame,
    n_nodes: int,
) -> np.ndarray:
    """Write normalized lateral offsets into a (n_nodes + 2, 2) waypoint array.

    Node i sits at x = action[i] * 5, z = frame.node_z(i).
    """
    a = np.asarray(action, dtype=float).reshape(-1)
    if a.shape[0] != n_nodes:
        raise ValueError(
            f"Action has {a.shape[0]} entries but the route has {n_nodes} controlled nodes"
        )
    if not np.all(np.isfinite(a)):
        raise ValueError(f"Action must be finite, got {a.tolist()}")
    a = np.clip(a, -1.0, 1.0)

    route = np.empty((n_nodes + 2, 2), dtype=float)
    route[0] = start_xz
    for i in range(n_nodes):
        route[i + 1] = (a[i] * HALF_WIDTH_M, frame.node_z(i))
    route[-1] = destination_xz
    return route


def _segments(route: np.ndarray) -> np.ndarray:
    route = np.asarray(route, dtype=float)
    if route.ndim != 2 or route.shape[1] != 2 or route.shape[0] < 2:
        raise ValueError(f"Route must be an (M>=2, 2) array, got shape {route.shape}")
    return route[1:] - route[:-1]


def sum_sq_path_length(route: np.ndarray) -> float:
    segs = _segments(route)
    return float(np.sum(segs * segs))


def turn_angles_deg(route: np.ndarray) -> np.ndarray:
    """Unsigned turn angle at each interior node, in degrees.

    A zero-length incoming or outgoing segment has no direction and reports 0.
    """
    segs = _segments(route)
    if segs.shape[0] < 2:
        return np.zeros(0)
    a = segs[:-1]
    b = segs[1:]
    na = np.linalg.norm(a, axis=1)
    nb = np.linalg.norm(b, axis=1)
    denom = na * nb
    with np.errstate(divide="ignore", invalid="ignore"):
        cos = np.where(denom > 0.0, np.sum(a * b, axis=1) / denom, 1.0)
    return np.degrees(np.arccos(np.clip(cos, -1.0, 1.0)))


def score_path(
    route: np.ndarray, env_scale: float, cfg: PathScoringConfig | None = None
) -> PathPenalties:
    cfg = cfg or PathScoringConfig()
    segs = _segments(route)

    length = sum_sq_path_length(route) * cfg.length_coef * env_scale

    n_sharp = int(np.count_nonzero(turn_angles_deg(route) > cfg.heading_threshold_deg))
    heading = n_sharp * cfg.heading_penalty

    n_drift = int(np.count_nonzero(np.abs(segs[:, 0]) > cfg.lateral_threshold_m))
    lateral = n_drift * cfg.lateral_penalty * env_scale

    return PathPenalties(length=float(length), heading=float(heading), lateral=float(lateral))


def sample_route(route: np.ndarray, samples_per_segment: int = 20) -> np.ndarray:
    """Sample each segment at fractions j / samples_per_segment, j < samples_per_segment.

    The segment end point is left to the next segment, so the destination
    itself is never sampled.
    """
    if samples_per_segment <= 0:
        raise ValueError("samples_per_segment must be > 0")
    route = np.asarray(route, dtype=float)
    segs = _segments(route)
    fracs = np.arange(samples_per_segment, dtype=float) / float(samples_per_segment)
    pts = route[:-1, None, :] + fracs[None, :, None] * segs[:, None, :]
    return pts.reshape(-1, 2)
