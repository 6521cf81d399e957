"""Obstacle and predicted-conflict-point records.

Obstacles are plain values owned by the environment, one per slot. The motion
pattern is a tag chosen at construction; prediction code dispatches on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Tuple

Vec3 = Tuple[float, float, float]


class MotionPattern(str, Enum):
    STATIC = "static"
    AXIS_LOCKED = "axis_locked"
    FREE_DIRECTION = "free_direction"
    PEDESTRIAN = "pedestrian"


class Direction(str, Enum):
    """Axis-locked travel direction, relative to a pedestrian walking +z."""

    TOWARD = "toward"  # -z
    AWAY = "away"  # +z
    LEFT = "left"  # -x
    RIGHT = "right"  # +x


def _vec3(v: Sequence[float]) -> Vec3:
    if len(v) != 3:
        raise ValueError(f"Expected a 3D point, got {v!r}")
    return (float(v[0]), float(v[1]), float(v[2]))


@dataclass(frozen=True)
class Obstacle:
    """Kinematic state of one obstacle slot.

    - position: (x, y, z) in the corridor frame
    - size: footprint radius (meters)
    - danger_level: weight in [0, 1] applied squared to proximity terms
    - direction: required for AXIS_LOCKED
    - heading: point defining the travel ray, required for FREE_DIRECTION
    - route: predicted route polyline, required for PEDESTRIAN
    """

    position: Vec3 = (0.0, 0.0, 0.0)
    size: float = 1.0
    danger_level: float = 0.0
    active: bool = False
    motion: MotionPattern = MotionPattern.STATIC
    speed: float = 0.0
    direction: Optional[Direction] = None
    heading: Optional[Vec3] = None
    route: Tuple[Vec3, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.size > 0.0:
            raise ValueError(f"size must be > 0, got {self.size}")
        if not 0.0 <= self.danger_level <= 1.0:
            raise ValueError(f"danger_level must be in [0, 1], got {self.danger_level}")
        if self.speed < 0.0:
            raise ValueError(f"speed must be >= 0, got {self.speed}")
        if self.motion is MotionPattern.AXIS_LOCKED and self.direction is None:
            raise ValueError("axis-locked obstacles need a direction")
        if self.motion is MotionPattern.FREE_DIRECTION and self.heading is None:
            raise ValueError("free-direction obstacles need a heading point")
        if self.motion is MotionPattern.PEDESTRIAN and len(self.route) < 2:
            raise ValueError("pedestrian obstacles need a route of at least two points")

    @property
    def xz(self) -> tuple[float, float]:
        return (self.position[0], self.position[2])

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Obstacle":
        """Build an obstacle from a config mapping (YAML-friendly field names)."""
        motion = MotionPattern(str(d.get("motion", MotionPattern.STATIC.value)).lower())
        direction = d.get("direction")
        heading = d.get("heading")
        route = d.get("route") or ()
        return cls(
            position=_vec3(d.get("position", (0.0, 0.0, 0.0))),
            size=float(d.get("size", 1.0)),
            danger_level=float(d.get("danger_level", 0.0)),
            active=bool(d.get("active", True)),
            motion=motion,
            speed=float(d.get("speed", 0.0)),
            direction=None if direction is None else Direction(str(direction).lower()),
            heading=None if heading is None else _vec3(heading),
            route=tuple(_vec3(p) for p in route),
        )


@dataclass(frozen=True)
class PredictedConflictPoint:
    position: Vec3 = (0.0, 0.0, 0.0)
    active: bool = False
    size: float = 0.0
    danger_level: float = 0.0

    @property
    def xz(self) -> tuple[float, float]:
        return (self.position[0], self.position[2])
