"""Closed-form conflict prediction for obstacles moving at constant velocity.

The pedestrian walks +z at speed v_p. For an obstacle d metres ahead
(d = obstacle.z - pedestrian.z) each motion pattern yields the distance the
obstacle travels before the two would meet, and from that the predicted
conflict point (POC). Degenerate geometry (non-positive closing speed,
points outside the corridor, intercepts past the simulated horizon) yields an
inactive POC rather than an error.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .corridor import HALF_WIDTH_M, CorridorFrame
from .obstacles import Direction, MotionPattern, Obstacle, PredictedConflictPoint, Vec3

# Obstacles heading along -z close on the pedestrian.
APPROACH_AXIS = np.array([0.0, 0.0, -1.0])


def _inactive(obstacle: Obstacle, position: Vec3 | None = None) -> PredictedConflictPoint:
    return PredictedConflictPoint(
        position=obstacle.position if position is None else position,
        active=False,
        size=obstacle.size,
        danger_level=obstacle.danger_level,
    )


def _active(obstacle: Obstacle, position: Sequence[float]) -> PredictedConflictPoint:
    return PredictedConflictPoint(
        position=(float(position[0]), float(position[1]), float(position[2])),
        active=True,
        size=obstacle.size,
        danger_level=obstacle.danger_level,
    )


def _axis_locked(
    obstacle: Obstacle, d: float, v_p: float, frame: CorridorFrame
) -> PredictedConflictPoint:
    x, y, z = obstacle.position
    v_o = obstacle.speed
    direction = obstacle.direction

    if direction is Direction.TOWARD:
        travel = d * v_o / (v_p + v_o)
        return _active(obstacle, (x, y, z - travel))

    if direction is Direction.AWAY:
        if v_o >= v_p:
            return _inactive(obstacle)
        travel = d * v_o / (v_p - v_o)
        if d + travel > frame.length:
            return _inactive(obstacle)
        return _active(obstacle, (x, y, z + travel))

    # Lateral: travel is signed (d < 0 once the pedestrian has passed), so
    # clamp it against both walls.
    travel = d * v_o / v_p
    if direction is Direction.RIGHT:
        travel = min(max(travel, -HALF_WIDTH_M - x), HALF_WIDTH_M - x)
        return _active(obstacle, (x + travel, y, z))
    travel = min(max(travel, x - HALF_WIDTH_M), x + HALF_WIDTH_M)
    return _active(obstacle, (x - travel, y, z))


def _free_direction(
    obstacle: Obstacle, d: float, v_p: float, frame: CorridorFrame
) -> PredictedConflictPoint:
    pos = np.asarray(obstacle.position, dtype=float)
    ray = np.asarray(obstacle.heading, dtype=float) - pos
    norm = float(np.linalg.norm(ray))
    if norm <= 0.0:
        return _inactive(obstacle)
    unit = ray / norm

    cos_theta = float(np.dot(unit, APPROACH_AXIS))
    denom = v_p + obstacle.speed * cos_theta
    if denom <= 0.0:
        return _inactive(obstacle)

    travel = d * obstacle.speed / denom
    poc = pos + travel * unit
    if not frame.contains(float(poc[0]), float(poc[2])):
        return _inactive(obstacle, (float(poc[0]), float(poc[1]), float(poc[2])))
    return _active(obstacle, poc)


def _pedestrian(
    obstacle: Obstacle, d: float, v_p: float, frame: CorridorFrame
) -> PredictedConflictPoint:
    v_o = obstacle.speed
    travel = d * v_o / (v_p + v_o)
    span = frame.node_spacing
    route = obstacle.route

    i = int(math.floor(travel / span))
    if i < 0 or i + 1 >= len(route):
        return _inactive(obstacle)
    fraction = (travel - i * span) / span

    p0 = np.asarray(route[i], dtype=float)
    p1 = np.asarray(route[i + 1], dtype=float)
    return _active(obstacle, p0 + fraction * (p1 - p0))


def predict_conflict_point(
    obstacle: Obstacle,
    pedestrian_xz: tuple[float, float],
    pedestrian_speed: float,
    frame: CorridorFrame,
) -> PredictedConflictPoint:
    """Predict where ``obstacle`` and the pedestrian would meet.

    Args:
        obstacle: obstacle kinematic state in the corridor frame.
        pedestrian_xz: pedestrian position (x, z).
        pedestrian_speed: pedestrian speed along +z (m/s).
        frame: corridor frame carrying the current environment scale.

    Returns:
        PredictedConflictPoint; ``active`` is False when no valid conflict
        exists.
    """
    if not obstacle.active:
        return _inactive(obstacle)

    motion = obstacle.motion
    if motion is MotionPattern.STATIC:
        return _active(obstacle, obstacle.position)

    v_p = float(pedestrian_speed)
    if v_p <= 0.0:
        return _inactive(obstacle)
    d = float(obstacle.position[2] - pedestrian_xz[1])

    if motion is MotionPattern.AXIS_LOCKED:
        return _axis_locked(obstacle, d, v_p, frame)
    if motion is MotionPattern.FREE_DIRECTION:
        return _free_direction(obstacle, d, v_p, frame)
    if motion is MotionPattern.PEDESTRIAN:
        return _pedestrian(obstacle, d, v_p, frame)
    raise ValueError(f"Unknown motion pattern '{motion}'")


def predict_all(
    obstacles: Sequence[Obstacle],
    pedestrian_xz: tuple[float, float],
    pedestrian_speed: float,
    frame: CorridorFrame,
) -> list[PredictedConflictPoint]:
    return [
        predict_conflict_point(o, pedestrian_xz, pedestrian_speed, frame)
        for o in obstacles
    ]
