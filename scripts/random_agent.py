from __future__ import annotations

import argparse
import csv
import os

from ped_env.config import CurriculumParameters
from ped_env.gym.route_plan_env import PedestrianRoutePlanEnv
from ped_env.utils import load_env_configs

TERMS = ("length", "heading", "lateral", "lane", "obstacle")


def run_random(
    episodes: int = 20,
    config_dir: str = "configs",
    env_name: str = "corridor",
    obstacles: int | None = None,
    log_dir: str = "logs",
    seed: int = 0,
):
    os.makedirs(log_dir, exist_ok=True)
    env_cfg, pedestrian_cfg, reward_cfg = load_env_configs(config_dir, env=env_name)
    env = PedestrianRoutePlanEnv(env_cfg, pedestrian_cfg, reward_cfg)
    env.action_space.seed(seed)

    options = {}
    if obstacles is not None:
        options["curriculum"] = CurriculumParameters(obstacle_count=obstacles)

    path = os.path.join(log_dir, f"random_{env_name}.csv")
    n_conflicts = 0
    with open(path, "w", newline="") as f:
        w = csv.writer(f)
        w.writerow(["episode", "env_scale", "randomized", "reward", *TERMS, "conflict"])
        obs, info = env.reset(seed=seed, options=options)
        for ep in range(episodes):
            action = env.action_space.sample()
            obs, reward, terminated, truncated, step_info = env.step(action)
            raw = step_info["reward_terms"]["raw"]
            w.writerow(
                [
                    ep,
                    float(obs[-1]),
                    int(info["randomized"]),
                    reward,
                    *(raw[k] for k in TERMS),
                    int(step_info["conflict"]),
                ]
            )
            n_conflicts += int(step_info["conflict"])
            obs, info = env.reset(options=options)
    print(f"[RANDOM] {episodes} episodes, {n_conflicts} conflicts, log: {path}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--episodes", type=int, default=20)
    parser.add_argument("--config-dir", type=str, default="configs")
    parser.add_argument("--env", type=str, default="corridor")
    parser.add_argument("--obstacles", type=int, default=None)
    parser.add_argument("--log-dir", type=str, default="logs")
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()
    run_random(
        episodes=args.episodes,
        config_dir=args.config_dir,
        env_name=args.env,
        obstacles=args.obstacles,
        log_dir=args.log_dir,
        seed=args.seed,
    )
