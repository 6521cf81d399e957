"""PPO training entrypoint using Hydra config composition.

Saves a resolved config snapshot (resolved.yaml) in the Hydra run directory
alongside artifacts.
"""

from __future__ import annotations

import os
from typing import Any, Dict

import hydra
import torch.nn as nn
from omegaconf import DictConfig, OmegaConf
from stable_baselines3 import PPO
from stable_baselines3.common.callbacks import CallbackList
from stable_baselines3.common.logger import configure
from stable_baselines3.common.vec_env import VecNormalize

from ped_env.config import CurriculumSchedule
from training.callbacks import (
    CurriculumScheduleCallback,
    RewardTermsLoggingCallback,
    WandbEvalCallback,
)
from training.env_factory import make_vec_envs

ACTIVATIONS = {
    "relu": nn.ReLU,
    "tanh": nn.Tanh,
    "elu": nn.ELU,
    "leaky_relu": nn.LeakyReLU,
}


def _to_dict(cfg_section: Any) -> Dict[str, Any]:
    if isinstance(cfg_section, DictConfig):
        data = OmegaConf.to_container(cfg_section, resolve=True)
    else:
        data = cfg_section
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TypeError("Expected config section to resolve to a dict")
    return dict(data)


def build_policy_kwargs(algo_cfg: Dict[str, Any]) -> Dict[str, Any]:
    policy_cfg = algo_cfg.get("policy", {})
    sizes = list(policy_cfg.get("hidden_sizes", [128, 128]))
    act_name = str(policy_cfg.get("activation", "tanh")).lower()
    return {
        "net_arch": dict(pi=sizes, vf=sizes),
        "activation_fn": ACTIVATIONS.get(act_name, nn.Tanh),
    }


def maybe_init_wandb(wandb_cfg: Dict[str, Any], extra_config: Dict[str, Any]):
    mode = str(wandb_cfg.get("mode", "disabled"))
    if mode == "disabled":
        return None

    import wandb

    return wandb.init(
        project=wandb_cfg.get("project"),
        entity=wandb_cfg.get("entity"),
        mode=mode,
        sync_tensorboard=True,
        dir=".",
        config=extra_config,
        tags=wandb_cfg.get("tags", []),
    )


@hydra.main(config_path="../configs", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    env_cfg = _to_dict(cfg.env)
    pedestrian_cfg = _to_dict(cfg.pedestrian)
    reward_cfg = _to_dict(cfg.reward)
    algo_cfg = _to_dict(cfg.algo)
    run_cfg = _to_dict(cfg.run)
    wandb_cfg = _to_dict(cfg.get("wandb", {}))

    # Hydra sets CWD to the run directory
    with open("resolved.yaml", "w", encoding="utf-8") as f:
        f.write(OmegaConf.to_yaml(cfg, resolve=True))
    print(f"[TRAIN] Outputs will be saved to: {os.getcwd()}")

    seed = int(run_cfg["seed"])
    n_envs = int(run_cfg["vec_envs"])
    total_timesteps = int(run_cfg["total_timesteps"])
    normalize_obs = bool(algo_cfg.get("normalize_obs", True))

    wandb_run = maybe_init_wandb(
        wandb_cfg,
        {
            "env": env_cfg,
            "pedestrian": pedestrian_cfg,
            "reward": reward_cfg,
            "algo": algo_cfg,
            "seed": seed,
            "n_envs": n_envs,
        },
    )

    train_env = make_vec_envs(
        env_cfg,
        pedestrian_cfg,
        reward_cfg,
        n_envs=n_envs,
        base_seed=seed,
        use_subproc=(n_envs > 1),
        normalize_obs=normalize_obs,
    )
    eval_env = make_vec_envs(
        env_cfg,
        pedestrian_cfg,
        reward_cfg,
        n_envs=1,
        base_seed=seed + 1000,
        use_subproc=False,
        normalize_obs=normalize_obs,
    )
    schedule_cfg = run_cfg.get("curriculum_schedule")
    schedule = CurriculumSchedule.from_config(schedule_cfg) if schedule_cfg else None
    if schedule is not None:
        train_env.env_method("set_curriculum", schedule.parameters_at(0))
        # Eval always runs the final stage
        eval_env.env_method("set_curriculum", schedule.stages[-1].parameters)

    # Share VecNormalize stats between train and eval
    if isinstance(train_env, VecNormalize) and isinstance(eval_env, VecNormalize):
        eval_env.obs_rms = train_env.obs_rms
        eval_env.training = False
        eval_env.norm_reward = False

    model = PPO(
        policy="MlpPolicy",
        env=train_env,
        learning_rate=float(algo_cfg["lr"]),
        n_steps=int(algo_cfg["n_steps"]),
        batch_size=int(algo_cfg["batch_size"]),
        n_epochs=int(algo_cfg["n_epochs"]),
        gamma=float(algo_cfg["gamma"]),
        gae_lambda=float(algo_cfg["gae_lambda"]),
        clip_range=float(algo_cfg["clip_range"]),
        ent_coef=float(algo_cfg["ent_coef"]),
        vf_coef=float(algo_cfg["vf_coef"]),
        max_grad_norm=float(algo_cfg["max_grad_norm"]),
        policy_kwargs=build_policy_kwargs(algo_cfg),
        verbose=1,
        seed=seed,
    )
    model.set_logger(configure("logs", ["stdout", "csv", "tensorboard"]))

    eval_cb = WandbEvalCallback(
        eval_env,
        best_model_save_path="best",
        log_path="eval",
        eval_freq=10_000,
        n_eval_episodes=50,
        deterministic=True,
        render=False,
        wandb_run=wandb_run,
        vecnorm_env=train_env,
    )
    callbacks = [eval_cb, RewardTermsLoggingCallback(wandb_run=wandb_run)]
    if schedule is not None:
        callbacks.append(CurriculumScheduleCallback(schedule))
    model.learn(total_timesteps=total_timesteps, callback=CallbackList(callbacks))

    os.makedirs("final", exist_ok=True)
    model.save("final/final_model")
    if isinstance(train_env, VecNormalize):
        train_env.save("final/vecnorm_final.pkl")
    print("[TRAIN] Saved final/final_model.zip")

    if wandb_run is not None:
        import wandb

        art = wandb.Artifact("models", type="model")
        art.add_file("final/final_model.zip")
        if os.path.exists("best/best_model.zip"):
            art.add_file("best/best_model.zip")
        if os.path.exists("final/vecnorm_final.pkl"):
            art.add_file("final/vecnorm_final.pkl")
        wandb_run.log_artifact(art)
        wandb_run.finish()

    train_env.close()
    eval_env.close()


if __name__ == "__main__":
    main()
