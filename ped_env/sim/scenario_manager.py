"""Curriculum-aware scenario manager.

Training layouts are drawn from fixed ranges under the current curriculum;
evaluation layouts are read from config and are fully deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Sequence

import numpy as np

from ped_env.config import ConfigError, CurriculumParameters

from .corridor import ENV_SCALE_RANGE, HALF_WIDTH_M, Z_END_M, Z_START_M, CorridorFrame
from .obstacles import Obstacle

DEFAULT_SLOTS = 4
OBSTACLE_Z_RANGE_M: tuple[float, float] = (-10.0, 8.0)
OBSTACLE_SIZE_RANGE_M: tuple[float, float] = (0.5, 2.0)
DANGER_RANGE: tuple[float, float] = (0.0, 1.0)

DEFAULT_EVALUATION: dict[str, Any] = {
    "env_scale": 0.4,
    "start_x": 4.0,
    "destination_x": 2.0,
    "obstacles": [
        {"position": [-4.5, 0.0, 8.5], "size": 0.8, "danger_level": 0.9},
    ],
}


@dataclass
class ScenarioSample:
    env_scale: float
    start_xz: tuple[float, float]
    destination_xz: tuple[float, float]
    obstacles: list[Obstacle]
    info: dict[str, Any]

    @property
    def frame(self) -> CorridorFrame:
        return CorridorFrame(self.env_scale)


def _scale_point(p: Sequence[float], env_scale: float) -> tuple[float, float, float]:
    return (float(p[0]), float(p[1]), float(p[2]) * env_scale)


class ScenarioManager:
    """Draws obstacle, endpoint and scale layouts for the route env.

    Expected keys under env_cfg (all optional):
    - obstacles.slots: number of obstacle slots
    - randomization.env_scale_range, obstacle_z_range_m, size_range_m,
      danger_range
    - evaluation: fixed layout (env_scale, start_x, destination_x, obstacles)
    """

    def __init__(self, env_cfg: dict[str, Any]) -> None:
        self.env_cfg = env_cfg
        self._rng = np.random.default_rng()
        self.num_slots = int((env_cfg.get("obstacles") or {}).get("slots", DEFAULT_SLOTS))
        if self.num_slots < 0:
            raise ConfigError(f"obstacles.slots must be >= 0, got {self.num_slots}")

        rand = env_cfg.get("randomization") or {}
        self._scale_range = tuple(rand.get("env_scale_range", ENV_SCALE_RANGE))
        self._z_range = tuple(rand.get("obstacle_z_range_m", OBSTACLE_Z_RANGE_M))
        self._size_range = tuple(rand.get("size_range_m", OBSTACLE_SIZE_RANGE_M))
        self._danger_range = tuple(rand.get("danger_range", DANGER_RANGE))

    def set_rng(self, rng: np.random.Generator) -> None:
        self._rng = rng

    def empty_slots(self) -> list[Obstacle]:
        return [Obstacle() for _ in range(self.num_slots)]

    def _check_count(self, curriculum: CurriculumParameters) -> None:
        if curriculum.obstacle_count > self.num_slots:
            raise ConfigError(
                f"noOfObstacles={curriculum.obstacle_count} exceeds the "
                f"{self.num_slots} configured obstacle slots"
            )

    def sample_training(
        self,
        curriculum: CurriculumParameters,
        previous: Sequence[Obstacle] | None = None,
    ) -> ScenarioSample:
        """Draw a fresh randomized layout.

        Slots that come up inactive keep their previous geometry; slots past
        the curriculum's obstacle count are switched off.
        """
        self._check_count(curriculum)
        rng = self._rng
        slots = list(previous) if previous is not None else self.empty_slots()
        if len(slots) != self.num_slots:
            raise ValueError(f"Expected {self.num_slots} obstacle slots, got {len(slots)}")

        env_scale = float(rng.uniform(*self._scale_range))
        frame = CorridorFrame(env_scale)
        start = (float(rng.uniform(-HALF_WIDTH_M, HALF_WIDTH_M)), frame.z_scaled(Z_START_M))
        destination = (float(rng.uniform(-HALF_WIDTH_M, HALF_WIDTH_M)), frame.z_scaled(Z_END_M))

        obstacles: list[Obstacle] = []
        for i, prev in enumerate(slots):
            if i >= curriculum.obstacle_count:
                obstacles.append(replace(prev, active=False))
                continue
            active = True if not curriculum.randomize_positions else bool(rng.random() > 0.5)
            if not active:
                obstacles.append(replace(prev, active=False))
                continue
            x = float(rng.uniform(-HALF_WIDTH_M, HALF_WIDTH_M))
            z = float(rng.uniform(frame.z_scaled(self._z_range[0]), frame.z_scaled(self._z_range[1])))
            obstacles.append(
                Obstacle(
                    position=(x, 0.0, z),
                    size=float(rng.uniform(*self._size_range)),
                    danger_level=float(rng.uniform(*self._danger_range)),
                    active=True,
                )
            )

        info = {
            "mode": "train",
            "obstacle_count": curriculum.obstacle_count,
            "randomize_positions": curriculum.randomize_positions,
        }
        return ScenarioSample(env_scale, start, destination, obstacles, info)

    def evaluation_layout(self) -> ScenarioSample:
        """Fixed layout for evaluation; z values in config are unscaled."""
        ev = dict(DEFAULT_EVALUATION)
        ev.update(self.env_cfg.get("evaluation") or {})
        env_scale = float(ev["env_scale"])
        frame = CorridorFrame(env_scale)

        configured = list(ev.get("obstacles") or [])
        if len(configured) > self.num_slots:
            raise ConfigError(
                f"evaluation lists {len(configured)} obstacles but only "
                f"{self.num_slots} slots are configured"
            )

        obstacles = self.empty_slots()
        for i, entry in enumerate(configured):
            o = Obstacle.from_dict(entry)
            obstacles[i] = replace(
                o,
                position=_scale_point(o.position, env_scale),
                heading=None if o.heading is None else _scale_point(o.heading, env_scale),
                route=tuple(_scale_point(p, env_scale) for p in o.route),
            )

        start = (float(ev["start_x"]), frame.z_scaled(Z_START_M))
        destination = (float(ev["destination_x"]), frame.z_scaled(Z_END_M))
        info = {"mode": "eval", "obstacle_count": len(configured)}
        return ScenarioSample(env_scale, start, destination, obstacles, info)
