"""Modular reward computation utilities.

Provides a single source of truth for route reward math and a stable
schema to expose breakdowns for logging and visualization.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Sequence

import numpy as np

from ped_env.planning.path import PathScoringConfig, sample_route, score_path
from ped_env.sim.obstacles import Obstacle
from ped_env.sim.proximity import ProximityConfig, evaluate_proximity

DEFAULT_WEIGHTS: dict[str, float] = {
    "length": 1.0,
    "heading": 1.0,
    "lateral": 1.0,
    "lane": 1.0,
    "obstacle": 1.0,
}


@dataclass
class RewardTerms:
    length: float
    heading: float
    lateral: float
    lane: float
    obstacle: float


def compute_terms(
    route: np.ndarray,
    obstacles: Sequence[Obstacle],
    env_scale: float,
    reward_cfg: dict[str, Any],
) -> tuple[RewardTerms, bool, list[int]]:
    """Compute raw reward terms for one proposed route.

    Returns (terms, conflict, conflict_slots). Termination is left to the caller.
    """
    path_cfg = PathScoringConfig.from_dict(reward_cfg.get("path"))
    prox_cfg = ProximityConfig.from_dict(reward_cfg.get("proximity"))

    penalties = score_path(route, env_scale, path_cfg)
    points = sample_route(route, prox_cfg.samples_per_segment)
    prox = evaluate_proximity(points, obstacles, env_scale, prox_cfg)

    terms = RewardTerms(
        length=penalties.length,
        heading=penalties.heading,
        lateral=penalties.lateral,
        lane=prox.lane,
        obstacle=prox.obstacle,
    )
    return terms, prox.conflict, list(prox.conflict_slots)


def apply_weights(
    terms: RewardTerms, weights: dict[str, float]
) -> tuple[float, dict[str, float]]:
    """Apply weights to raw terms to produce total and contributions.

    Terms missing from ``weights`` use DEFAULT_WEIGHTS.

    Returns (total, contrib_dict)
    """
    raw = asdict(terms)
    unknown = set(weights) - set(raw)
    if unknown:
        raise KeyError(f"Reward weights reference unknown terms: {sorted(unknown)}")
    weights = {**DEFAULT_WEIGHTS, **weights}
    contrib = {k: float(w) * float(raw[k]) for k, w in weights.items()}
    total = float(np.nan_to_num(sum(contrib.values())))
    contrib = {k: float(np.nan_to_num(v)) for k, v in contrib.items()}
    return total, contrib


def to_breakdown_dict(
    terms: RewardTerms,
    weights: dict[str, float],
    total: float,
    contrib: dict[str, float],
) -> dict[str, object]:
    """Pack a standardized reward_terms dict for logging/visualization."""
    return {
        "version": "1.0",
        "raw": asdict(terms),
        "weights": {k: float(v) for k, v in weights.items()},
        "contrib": contrib,
        "total": float(total),
    }
