"""Obstacle proximity and lane-preference rewards over sampled route points."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

import numpy as np

from .obstacles import Obstacle


@dataclass(frozen=True)
class ProximityConfig:
    samples_per_segment: int = 20
    obstacle_coef: float = 0.1
    clear_bonus: float = 0.01
    lane_reward: float = 2.0
    boundary_x_m: float = 4.5
    boundary_penalty: float = -1.0
    lane_coef: float = 0.001

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "ProximityConfig":
        d = d or {}
        kwargs: dict[str, Any] = {}
        for k, v in d.items():
            if k == "samples_per_segment":
                kwargs[k] = int(v)
            elif k in cls.__dataclass_fields__:
                kwargs[k] = float(v)
        return cls(**kwargs)


@dataclass
class ProximityResult:
    lane: float
    obstacle: float
    conflict: bool
    conflict_slots: list[int] = field(default_factory=list)


def lane_reward(xs: np.ndarray, env_scale: float, cfg: ProximityConfig) -> float:
    """Left lane (x < 0) is rewarded, right lane (x >= 0) penalized."""
    xs = np.asarray(xs, dtype=float)
    side = np.where(xs < 0.0, cfg.lane_reward * env_scale, -cfg.lane_reward * env_scale)
    edge = np.where(np.abs(xs) > cfg.boundary_x_m, cfg.boundary_penalty, 0.0)
    return float(np.sum(side + edge) * cfg.lane_coef)


def obstacle_reward(
    points: np.ndarray, obstacle: Obstacle, cfg: ProximityConfig
) -> tuple[float, bool]:
    """Sum one obstacle's contribution over sampled points.

    r2 = |p - c|^2 - size^2. Points strictly inside the footprint (r2 < 0)
    score r2 / size^2 * danger^2 and flag a conflict; the rest score a small
    bonus of clear_bonus * danger^2. A point exactly on the rim is clear.
    """
    pts = np.asarray(points, dtype=float)
    size_sq = obstacle.size * obstacle.size
    danger_sq = obstacle.danger_level * obstacle.danger_level

    diff = pts - np.asarray(obstacle.xz, dtype=float)
    r2 = np.sum(diff * diff, axis=1) - size_sq
    inside = r2 < 0.0

    per_point = np.where(inside, r2 / size_sq * danger_sq, cfg.clear_bonus * danger_sq)
    return float(np.sum(per_point) * cfg.obstacle_coef), bool(np.any(inside))


def evaluate_proximity(
    points: np.ndarray,
    obstacles: Sequence[Obstacle],
    env_scale: float,
    cfg: ProximityConfig | None = None,
) -> ProximityResult:
    """Score sampled route points against the lane and every active obstacle.

    Pure: the caller decides what a conflict means for the episode.
    """
    cfg = cfg or ProximityConfig()
    pts = np.asarray(points, dtype=float).reshape(-1, 2)

    lane = lane_reward(pts[:, 0], env_scale, cfg)

    total = 0.0
    slots: list[int] = []
    for slot, obstacle in enumerate(obstacles):
        if not obstacle.active:
            continue
        r, hit = obstacle_reward(pts, obstacle, cfg)
        total += r
        if hit:
            slots.append(slot)

    return ProximityResult(
        lane=float(lane), obstacle=float(total), conflict=bool(slots), conflict_slots=slots
    )
