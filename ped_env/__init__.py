"""Pedestrian route-planning environment package."""

from gymnasium.envs.registration import register

register(
    id="PedestrianRoutePlan-v0",
    entry_point="ped_env.gym.route_plan_env:PedestrianRoutePlanEnv",
)
