"""Corridor frame: environment scale, bounds and observation normalization.

The corridor is a local frame centred on the environment origin. x spans
[-5, 5] and is never scaled; z spans [-12, 10] before scaling by the
per-episode environment scale.
"""

from __future__ import annotations

from dataclasses import dataclass

HALF_WIDTH_M: float = 5.0
Z_START_M: float = -12.0
Z_END_M: float = 10.0
ENV_LENGTH_M: float = Z_END_M - Z_START_M  # 22
ENV_SCALE_RANGE: tuple[float, float] = (0.2, 1.0)
NODE_SPACING_M: float = 2.0
FIRST_NODE_Z_M: float = -10.0


@dataclass(frozen=True)
class CorridorFrame:
    env_scale: float = 1.0

    def __post_init__(self) -> None:
        if not self.env_scale > 0.0:
            raise ValueError(f"env_scale must be > 0, got {self.env_scale}")

    def z_scaled(self, z: float) -> float:
        return float(self.env_scale * z)

    @property
    def z_min(self) -> float:
        return self.z_scaled(Z_START_M)

    @property
    def z_max(self) -> float:
        return self.z_scaled(Z_END_M)

    @property
    def length(self) -> float:
        return self.z_scaled(ENV_LENGTH_M)

    @property
    def node_spacing(self) -> float:
        """Longitudinal span between consecutive route nodes."""
        return self.z_scaled(NODE_SPACING_M)

    def node_z(self, index: int) -> float:
        """z of the index-th controlled route node (0-based)."""
        return self.z_scaled(FIRST_NODE_Z_M + NODE_SPACING_M * index)

    def contains(self, x: float, z: float) -> bool:
        return (
            -HALF_WIDTH_M <= x <= HALF_WIDTH_M
            and self.z_min <= z <= self.z_max
        )

    @staticmethod
    def normalize(value: float) -> float:
        """Map a corridor coordinate to the observation range used by the policy."""
        return float((value + HALF_WIDTH_M) / (2.0 * HALF_WIDTH_M))
