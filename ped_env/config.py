from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence


class ConfigError(ValueError):
    """Raised when curriculum or environment configuration is unusable."""


@dataclass(frozen=True)
class CurriculumParameters:
    """Curriculum knobs read at every reset.

    - obstacle_count: number of obstacle slots in play
    - randomize_positions: if False every slot in play is active; if True each
      slot is active with probability 0.5
    """

    obstacle_count: int
    randomize_positions: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.obstacle_count, bool) or not isinstance(self.obstacle_count, int):
            raise ConfigError(f"obstacle_count must be an int, got {self.obstacle_count!r}")
        if self.obstacle_count < 0:
            raise ConfigError(f"obstacle_count must be >= 0, got {self.obstacle_count}")

    @classmethod
    def from_reset_parameters(cls, params: Mapping[str, Any] | None) -> "CurriculumParameters":
        """Build from the learning framework's reset-parameter mapping.

        Recognized keys: ``noOfObstacles`` (required), ``randomisedObsPos``
        (0 = always active, nonzero = randomly active).
        """
        if params is None or "noOfObstacles" not in params:
            raise ConfigError("reset parameters must define 'noOfObstacles'")
        raw_count = params["noOfObstacles"]
        try:
            count_f = float(raw_count)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"noOfObstacles is not numeric: {raw_count!r}") from e
        if not count_f.is_integer():
            raise ConfigError(f"noOfObstacles must be a whole number, got {raw_count!r}")

        raw_rand = params.get("randomisedObsPos", 0)
        try:
            randomize = float(raw_rand) != 0.0
        except (TypeError, ValueError) as e:
            raise ConfigError(f"randomisedObsPos is not numeric: {raw_rand!r}") from e
        return cls(obstacle_count=int(count_f), randomize_positions=randomize)

    @classmethod
    def coerce(cls, value: Any) -> "CurriculumParameters":
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls.from_reset_parameters(value)
        raise ConfigError(f"Cannot build curriculum parameters from {type(value).__name__}")


@dataclass(frozen=True)
class CurriculumStage:
    """Curriculum parameters in force from ``start_timestep`` onwards."""

    start_timestep: int
    parameters: CurriculumParameters


class CurriculumSchedule:
    """Maps training timesteps to curriculum stages.

    Config entries look like
    ``{"from_timestep": 500000, "noOfObstacles": 2, "randomisedObsPos": 1}``.
    Before the first stage starts the first stage applies; past the last
    start the last stage stays in force.
    """

    def __init__(self, stages: Sequence[CurriculumStage]):
        if not stages:
            raise ConfigError("curriculum schedule needs at least one stage")
        starts = [s.start_timestep for s in stages]
        if any(b <= a for a, b in zip(starts, starts[1:])):
            raise ConfigError(f"curriculum stage starts must be strictly increasing, got {starts}")
        self.stages = list(stages)

    @classmethod
    def from_config(cls, entries: Sequence[Mapping[str, Any]]) -> "CurriculumSchedule":
        stages = []
        for entry in entries:
            if "from_timestep" not in entry:
                raise ConfigError(f"curriculum stage is missing 'from_timestep': {dict(entry)}")
            start = int(entry["from_timestep"])
            if start < 0:
                raise ConfigError(f"from_timestep must be >= 0, got {start}")
            stages.append(CurriculumStage(start, CurriculumParameters.from_reset_parameters(entry)))
        return cls(stages)

    def stage_index(self, timestep: int) -> int:
        idx = 0
        for i, stage in enumerate(self.stages):
            if timestep >= stage.start_timestep:
                idx = i
        return idx

    def parameters_at(self, timestep: int) -> CurriculumParameters:
        return self.stages[self.stage_index(timestep)].parameters
