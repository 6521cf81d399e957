"""Pedestrian route-planning Gymnasium environment.

Each episode is a single decision: the policy proposes lateral offsets for
the N controlled route nodes, the route is scored against the path
penalties and every active obstacle, and the episode ends.

Observation (8,): pedestrian x, destination x, nearest predicted conflict
point (active flag, x, z, size, danger level), environment scale.

Action (N,): normalized lateral offsets in [-1, 1], node x = offset * 5.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from ped_env.config import ConfigError, CurriculumParameters
from ped_env.planning.path import build_route
from ped_env.sim.kinematics import predict_all
from ped_env.sim.obstacles import PredictedConflictPoint
from ped_env.sim.scenario_manager import ScenarioManager, ScenarioSample

from .observation_builder import OBS_DIM, ObservationBuilder, ObservationData
from .reward_manager import RewardManager

MAX_ENV_STEPS = 300
RESET_POLICIES = ("replay", "fresh")


@dataclass
class EpisodeState:
    step_counter: int = 0
    terminated: bool = False
    # Last step ended in a hard conflict.
    reset_pending: bool = False
    # External request for a full randomized reset.
    force_reset: bool = False
    awaiting_action: bool = False


class PedestrianRoutePlanEnv(gym.Env):
    metadata = {"render_modes": []}

    def __init__(
        self,
        env_cfg: dict[str, Any] | None = None,
        pedestrian_cfg: dict[str, Any] | None = None,
        reward_cfg: dict[str, Any] | None = None,
    ):
        super().__init__()
        self.env_cfg = env_cfg or {}
        self.pedestrian_cfg = pedestrian_cfg or {}
        self.reward_cfg = reward_cfg or {}

        self.mode = str(self.env_cfg.get("mode", "train")).lower()
        if self.mode not in ("train", "eval"):
            raise ConfigError(f"Unknown env mode '{self.mode}'")
        self.n_nodes = int(self.env_cfg.get("route_nodes", 10))
        if self.n_nodes < 1:
            raise ConfigError(f"route_nodes must be >= 1, got {self.n_nodes}")

        self.pedestrian_speed = float(self.pedestrian_cfg.get("speed_mps", 1.2))

        policy_cfg = self.env_cfg.get("reset_policy") or {}
        self._on_conflict = str(policy_cfg.get("on_conflict", "replay")).lower()
        if self._on_conflict not in RESET_POLICIES:
            raise ConfigError(
                f"reset_policy.on_conflict must be one of {RESET_POLICIES}, got '{self._on_conflict}'"
            )
        self._max_env_steps = int(policy_cfg.get("max_env_steps", MAX_ENV_STEPS))

        default_curriculum = self.env_cfg.get("curriculum")
        self._default_curriculum = (
            None if default_curriculum is None else CurriculumParameters.coerce(default_curriculum)
        )

        # Helper components
        self._scenario_manager = ScenarioManager(self.env_cfg)
        self._obs_builder = ObservationBuilder()
        self._reward_manager = RewardManager(self.reward_cfg)

        # POC x and z are unbounded: route-following obstacles may be predicted
        # outside the corridor.
        high = np.array([1.0, 1.0, 1.0, np.inf, np.inf, np.inf, 1.0, np.inf], dtype=np.float32)
        low = np.array([0.0, 0.0, 0.0, -np.inf, -np.inf, 0.0, 0.0, 0.0], dtype=np.float32)
        self.observation_space = spaces.Box(low=low, high=high, shape=(OBS_DIM,), dtype=np.float32)
        self.action_space = spaces.Box(
            low=-1.0, high=1.0, shape=(self.n_nodes,), dtype=np.float32
        )

        # Internal state
        self._episode = EpisodeState()
        self._scenario: ScenarioSample | None = None
        self._pocs: list[PredictedConflictPoint] = []

    @property
    def episode(self) -> EpisodeState:
        return self._episode

    @property
    def curriculum(self) -> CurriculumParameters | None:
        return self._default_curriculum

    def set_curriculum(self, value: Any) -> None:
        """Replace the curriculum used when reset() gets no explicit one.

        Training vec envs reset without options, so stage changes arrive here.
        A change forces a fresh layout at the next reset.
        """
        curriculum = CurriculumParameters.coerce(value)
        if curriculum != self._default_curriculum:
            self._default_curriculum = curriculum
            self.request_reset()

    @property
    def scenario(self) -> ScenarioSample | None:
        return self._scenario

    @property
    def predicted_conflict_points(self) -> list[PredictedConflictPoint]:
        return list(self._pocs)

    def request_reset(self) -> None:
        """Force a full randomized layout at the next reset; never mid-step."""
        self._episode.force_reset = True

    def _resolve_curriculum(self, value: Any) -> CurriculumParameters:
        if value is not None:
            return CurriculumParameters.coerce(value)
        if self._default_curriculum is None:
            raise ConfigError(
                "No curriculum parameters: pass options={'curriculum': ...} or set env.curriculum"
            )
        return self._default_curriculum

    def _needs_fresh_layout(self) -> bool:
        ep = self._episode
        return (
            self._scenario is None
            or not ep.reset_pending
            or ep.force_reset
            or ep.step_counter > self._max_env_steps
            or self._on_conflict == "fresh"
        )

    def reset(self, *, seed: int | None = None, options: dict[str, Any] | None = None):
        super().reset(seed=seed)
        self._scenario_manager.set_rng(self.np_random)
        options = options or {}
        ep = self._episode

        if self.mode == "eval":
            self._scenario = self._scenario_manager.evaluation_layout()
            randomized = False
        else:
            curriculum = self._resolve_curriculum(options.get("curriculum"))
            randomized = self._needs_fresh_layout()
            if randomized:
                previous = None if self._scenario is None else self._scenario.obstacles
                self._scenario = self._scenario_manager.sample_training(curriculum, previous)
                ep.step_counter = 0

        ep.terminated = False
        ep.reset_pending = False
        ep.force_reset = False
        ep.awaiting_action = True

        scenario = self._scenario
        self._pocs = predict_all(
            scenario.obstacles, scenario.start_xz, self.pedestrian_speed, scenario.frame
        )
        self._reward_manager.reset()

        data = self._build_observation()
        info = {
            "randomized": randomized,
            "scenario": dict(scenario.info),
            "poc_index": data.poc_index,
        }
        return data.obs, info

    def step(self, action: np.ndarray):
        if self._scenario is None:
            raise RuntimeError("Environment must be reset before stepping")
        if not self._episode.awaiting_action:
            raise RuntimeError("Episode has ended; call reset() before stepping again")

        scenario = self._scenario
        route = build_route(
            scenario.start_xz, scenario.destination_xz, action, scenario.frame, self.n_nodes
        )
        result = self._reward_manager.compute(route, scenario.obstacles, scenario.env_scale)

        ep = self._episode
        ep.step_counter += 1
        ep.terminated = result.conflict
        ep.reset_pending = result.conflict
        ep.awaiting_action = False

        # One route proposal per episode: a clean route ends by truncation.
        terminated = bool(result.conflict)
        truncated = not terminated

        info: dict[str, Any] = {
            "is_success": not result.conflict,
            "conflict": bool(result.conflict),
            "conflict_slots": list(result.conflict_slots),
            "reward_terms": result.breakdown,
        }
        data = self._build_observation()
        info["poc_index"] = data.poc_index
        return data.obs, float(result.total), terminated, truncated, info

    def get_observation(self) -> np.ndarray:
        """Current observation; pure, safe to call any number of times."""
        return self._build_observation().obs

    def _build_observation(self) -> ObservationData:
        if self._scenario is None:
            raise RuntimeError("Environment must be reset before building observations")
        s = self._scenario
        return self._obs_builder.build(s.start_xz, s.destination_xz, self._pocs, s.env_scale)
