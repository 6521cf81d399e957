"""Observation assembly helpers for PedestrianRoutePlanEnv."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ped_env.sim.corridor import CorridorFrame
from ped_env.sim.obstacles import PredictedConflictPoint

OBS_DIM = 8
# active flag, x, z, size, danger for "no predicted conflict"
INACTIVE_POC = (0.0, -1.0, -1.0, 0.0, 0.0)


@dataclass
class ObservationData:
    obs: np.ndarray
    poc_index: int | None


def nearest_active_poc(
    pocs: Sequence[PredictedConflictPoint], pedestrian_xz: tuple[float, float]
) -> int | None:
    best: int | None = None
    best_d2 = float("inf")
    px, pz = pedestrian_xz
    for i, poc in enumerate(pocs):
        if not poc.active:
            continue
        x, z = poc.xz
        d2 = (x - px) ** 2 + (z - pz) ** 2
        if d2 < best_d2:
            best, best_d2 = i, d2
    return best


class ObservationBuilder:
    """Builds the flat observation vector.

    Layout: pedestrian x, destination x, POC active flag, POC x, POC z,
    POC size, POC danger level, environment scale. Coordinates use
    CorridorFrame.normalize.
    """

    def build(
        self,
        pedestrian_xz: tuple[float, float],
        destination_xz: tuple[float, float],
        pocs: Sequence[PredictedConflictPoint],
        env_scale: float,
    ) -> ObservationData:
        idx = nearest_active_poc(pocs, pedestrian_xz)
        if idx is None:
            poc_part = INACTIVE_POC
        else:
            poc = pocs[idx]
            x, z = poc.xz
            poc_part = (
                1.0,
                CorridorFrame.normalize(x),
                CorridorFrame.normalize(z),
                float(poc.size),
                float(poc.danger_level),
            )
        obs = np.array(
            [
                CorridorFrame.normalize(pedestrian_xz[0]),
                CorridorFrame.normalize(destination_xz[0]),
                *poc_part,
                float(env_scale),
            ],
            dtype=np.float32,
        )
        return ObservationData(obs=obs, poc_index=idx)
