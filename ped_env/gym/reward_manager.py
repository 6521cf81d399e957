"""Reward bookkeeping for PedestrianRoutePlanEnv."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np

from ped_env.reward import (
    DEFAULT_WEIGHTS,
    RewardTerms,
    apply_weights,
    compute_terms,
    to_breakdown_dict,
)
from ped_env.sim.obstacles import Obstacle


@dataclass
class RewardResult:
    total: float
    breakdown: dict[str, Any]
    terms: RewardTerms
    conflict: bool
    conflict_slots: list[int] = field(default_factory=list)


class RewardManager:
    """Encapsulates reward configuration and the last breakdown."""

    def __init__(self, reward_cfg: dict[str, Any]) -> None:
        self._reward_cfg = reward_cfg
        self._weights = {**DEFAULT_WEIGHTS, **(reward_cfg.get("weights") or {})}
        self._last_breakdown: dict[str, Any] = {}

    def reset(self) -> None:
        self._last_breakdown = {}

    @property
    def last_breakdown(self) -> dict[str, Any]:
        return self._last_breakdown

    def compute(
        self,
        route: np.ndarray,
        obstacles: Sequence[Obstacle],
        env_scale: float,
    ) -> RewardResult:
        terms, conflict, slots = compute_terms(route, obstacles, env_scale, self._reward_cfg)
        total, contrib = apply_weights(terms, self._weights)
        breakdown = to_breakdown_dict(terms, self._weights, total, contrib)
        breakdown["metrics"] = {
            "conflict": float(conflict),
            "env_scale": float(env_scale),
            "active_obstacles": float(sum(1 for o in obstacles if o.active)),
        }
        self._last_breakdown = breakdown
        return RewardResult(
            total=total,
            breakdown=breakdown,
            terms=terms,
            conflict=conflict,
            conflict_slots=slots,
        )
