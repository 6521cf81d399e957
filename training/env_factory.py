from __future__ import annotations

from typing import Any, Callable, Dict

from stable_baselines3.common.vec_env import (
    DummyVecEnv,
    SubprocVecEnv,
    VecEnv,
    VecNormalize,
)
from stable_baselines3.common.monitor import Monitor

from ped_env.gym.route_plan_env import PedestrianRoutePlanEnv


def make_env_ctor(
    env_cfg: Dict[str, Any],
    pedestrian_cfg: Dict[str, Any],
    reward_cfg: Dict[str, Any],
    seed: int,
) -> Callable[[], Any]:
    def _thunk():
        env = PedestrianRoutePlanEnv(env_cfg, pedestrian_cfg, reward_cfg)
        env.reset(seed=seed)
        return Monitor(env, info_keywords=("conflict",))

    return _thunk


def make_vec_envs(
    env_cfg: Dict[str, Any],
    pedestrian_cfg: Dict[str, Any],
    reward_cfg: Dict[str, Any],
    n_envs: int = 8,
    base_seed: int = 0,
    use_subproc: bool = True,
    normalize_obs: bool = True,
) -> VecEnv:
    vec_cls = SubprocVecEnv if (use_subproc and n_envs > 1) else DummyVecEnv
    # Build per-rank thunks with unique seeds
    env_fns = [
        make_env_ctor(env_cfg, pedestrian_cfg, reward_cfg, seed=base_seed + i)
        for i in range(n_envs)
    ]
    venv = vec_cls(env_fns)
    if normalize_obs:
        venv = VecNormalize(
            venv,
            norm_obs=True,
            norm_reward=False,
            clip_obs=10.0,
        )
    return venv
