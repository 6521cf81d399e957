"""Config loading helpers built around OmegaConf."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Tuple

from omegaconf import OmegaConf


def load_config_any(path: str) -> Any:
    """Load a YAML/OMEGACONF file and return the resolved Python object."""
    return OmegaConf.to_container(OmegaConf.load(path), resolve=True)


def load_config_dict(path: str) -> Dict[str, Any]:
    """Load a config file and guarantee a `dict` result."""
    cfg = load_config_any(path)
    if not isinstance(cfg, dict):
        raise TypeError(f"Expected mapping at {path}, got {type(cfg)}")
    return cfg


def load_env_configs(
    config_dir: str, env: str = "corridor", pedestrian: str = "default", reward: str = "default"
) -> Tuple[Dict[str, Any], Dict[str, Any], Dict[str, Any]]:
    """Load (env_cfg, pedestrian_cfg, reward_cfg) from a Hydra-style config tree."""
    root = Path(config_dir)
    return (
        load_config_dict(str(root / "env" / f"{env}.yaml")),
        load_config_dict(str(root / "pedestrian" / f"{pedestrian}.yaml")),
        load_config_dict(str(root / "reward" / f"{reward}.yaml")),
    )
