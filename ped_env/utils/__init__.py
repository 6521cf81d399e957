"""Utility helpers shared across training scripts and tooling."""

from .config import load_config_dict, load_config_any, load_env_configs

__all__ = [
    "load_config_dict",
    "load_config_any",
    "load_env_configs",
]
