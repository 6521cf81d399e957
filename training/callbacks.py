"""Training callbacks: reward breakdown logging, curriculum stages and W&B-aware evaluation."""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from stable_baselines3.common.callbacks import BaseCallback, EvalCallback
from stable_baselines3.common.vec_env import VecEnv, VecNormalize

from ped_env.config import CurriculumSchedule


class WandbEvalCallback(EvalCallback):
    """Eval callback that logs key metrics to wandb if enabled and
    saves VecNormalize stats when a new best model is found.
    """

    def __init__(
        self,
        *args,
        wandb_run: Optional[Any] = None,
        vecnorm_env: Optional[Any] = None,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._wandb = wandb_run
        self._vecnorm_env = vecnorm_env

    def _on_step(self) -> bool:
        prev_best = float(self.best_mean_reward)
        continue_training = super()._on_step()

        eval_happened = self.eval_freq > 0 and self.n_calls % self.eval_freq == 0
        if not eval_happened:
            return continue_training

        curr_best = float(self.best_mean_reward)
        if curr_best > prev_best:
            print(f"[CALLBACK] New best: {prev_best:.3f} -> {curr_best:.3f}")
            if self.best_model_save_path and isinstance(self._vecnorm_env, VecNormalize):
                os.makedirs(self.best_model_save_path, exist_ok=True)
                self._vecnorm_env.save(os.path.join(self.best_model_save_path, "vecnorm_best.pkl"))

        if self._wandb is not None:
            logs = {
                "eval/mean_reward": float(self.last_mean_reward),
                "time/total_timesteps": float(self.num_timesteps),
            }
            if len(self._is_success_buffer) > 0:
                logs["eval/success_rate"] = sum(self._is_success_buffer) / len(self._is_success_buffer)
            self._wandb.log(logs)

        return continue_training


class RewardTermsLoggingCallback(BaseCallback):
    """Logs reward breakdown (total, contrib, raw, metrics) from env infos.

    Works with VecEnv: inspects `self.locals["infos"]` each step and, when a
    dict contains `reward_terms`, logs it to the SB3 logger and optionally WandB.
    """

    def __init__(
        self,
        wandb_run: Optional[Any] = None,
        prefix: str = "train/reward",
        verbose: int = 0,
    ) -> None:
        super().__init__(verbose=verbose)
        self._wandb = wandb_run
        self._prefix = prefix

    def _on_step(self) -> bool:
        infos = self.locals.get("infos", [])
        if not isinstance(infos, (list, tuple)):
            return True

        for info in infos:
            if isinstance(info, dict) and isinstance(info.get("reward_terms"), dict):
                self._log_reward_terms(info["reward_terms"])
        return True

    def _flatten(self, reward_terms: Dict[str, Any]) -> Dict[str, float]:
        data = {f"{self._prefix}/total": float(reward_terms.get("total", 0.0))}
        for category in ("contrib", "raw", "metrics"):
            terms = reward_terms.get(category, {}) or {}
            for k, v in terms.items():
                data[f"{self._prefix}/{category}/{k}"] = float(v)
        return data

    def _log_reward_terms(self, reward_terms: Dict[str, Any]) -> None:
        data = self._flatten(reward_terms)
        for k, v in data.items():
            self.logger.record_mean(k, v)
        if self._wandb is not None:
            self._wandb.log(data)


class CurriculumScheduleCallback(BaseCallback):
    """Moves every training env through the curriculum stages by timestep.

    Vec envs auto-reset without options, so the active stage is pushed into
    each env with ``env_method("set_curriculum", ...)``.
    """

    def __init__(self, schedule: CurriculumSchedule, verbose: int = 0) -> None:
        super().__init__(verbose=verbose)
        self.schedule = schedule
        self.stage_idx: Optional[int] = None

    def advance(self, venv: VecEnv, timesteps: int) -> bool:
        """Apply the stage for ``timesteps`` if it differs from the current one."""
        idx = self.schedule.stage_index(timesteps)
        if idx == self.stage_idx:
            return False
        params = self.schedule.stages[idx].parameters
        venv.env_method("set_curriculum", params)
        self.stage_idx = idx
        print(
            f"[CURRICULUM] Stage {idx} at {timesteps} steps: "
            f"obstacles={params.obstacle_count}, randomised={params.randomize_positions}"
        )
        return True

    def _on_training_start(self) -> None:
        self.advance(self.training_env, self.num_timesteps)

    def _on_step(self) -> bool:
        self.advance(self.training_env, self.num_timesteps)
        params = self.schedule.stages[self.stage_idx].parameters
        self.logger.record("curriculum/stage", self.stage_idx)
        self.logger.record("curriculum/obstacles", params.obstacle_count)
        return True
