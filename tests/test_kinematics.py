import math

import pytest

from ped_env.sim.corridor import CorridorFrame
from ped_env.sim.kinematics import predict_conflict_point
from ped_env.sim.obstacles import Direction, MotionPattern, Obstacle


def axis_locked(direction, x=0.0, z=0.0, speed=1.0):
    return Obstacle(
        position=(x, 0.0, z),
        size=1.0,
        danger_level=0.5,
        active=True,
        motion=MotionPattern.AXIS_LOCKED,
        direction=direction,
        speed=speed,
    )


def test_static_poc_is_obstacle_position():
    frame = CorridorFrame(0.7)
    obs = Obstacle(position=(1.5, 0.0, 2.0), size=0.8, danger_level=0.9, active=True)
    for v_p in (0.0, 0.5, 3.0):
        poc = predict_conflict_point(obs, (0.0, -8.4), v_p, frame)
        assert poc.active
        assert poc.position == obs.position
        assert poc.size == 0.8 and poc.danger_level == 0.9


def test_inactive_obstacle_gives_inactive_poc():
    obs = Obstacle(position=(0.0, 0.0, 0.0), size=1.0, active=False)
    poc = predict_conflict_point(obs, (0.0, -12.0), 1.0, CorridorFrame(1.0))
    assert not poc.active


def test_toward_closing_intercept():
    # d = 10, v_p = 2, v_o = 2 -> obstacle travels 5 along -z
    obs = axis_locked(Direction.TOWARD, x=1.0, z=-2.0, speed=2.0)
    poc = predict_conflict_point(obs, (0.0, -12.0), 2.0, CorridorFrame(1.0))
    assert poc.active
    assert poc.position == pytest.approx((1.0, 0.0, -7.0))


def test_away_faster_than_pedestrian_is_inactive():
    frame = CorridorFrame(1.0)
    for d in (0.1, 1.0, 10.0):
        for v_o in (2.0, 3.0):
            obs = axis_locked(Direction.AWAY, z=-12.0 + d, speed=v_o)
            assert not predict_conflict_point(obs, (0.0, -12.0), 2.0, frame).active


def test_away_intercept_within_horizon():
    obs = axis_locked(Direction.AWAY, z=-7.0, speed=1.0)
    poc = predict_conflict_point(obs, (0.0, -12.0), 2.0, CorridorFrame(1.0))
    # d = 5, travel = 5 * 1 / (2 - 1) = 5
    assert poc.active
    assert poc.position[2] == pytest.approx(-2.0)


def test_away_intercept_past_scaled_horizon_is_inactive():
    frame = CorridorFrame(0.5)  # corridor length 11
    ped = (0.0, frame.z_min)
    inside = axis_locked(Direction.AWAY, z=frame.z_min + 5.0, speed=1.0)
    outside = axis_locked(Direction.AWAY, z=frame.z_min + 6.0, speed=1.0)
    assert predict_conflict_point(inside, ped, 2.0, frame).active
    assert not predict_conflict_point(outside, ped, 2.0, frame).active


def test_lateral_travel_is_clamped_to_corridor():
    frame = CorridorFrame(1.0)
    right = axis_locked(Direction.RIGHT, x=3.0, z=-2.0, speed=1.0)
    left = axis_locked(Direction.LEFT, x=-1.0, z=-2.0, speed=1.0)
    # unclamped travel = 10 * 1 / 2 = 5
    assert predict_conflict_point(right, (0.0, -12.0), 2.0, frame).position[0] == pytest.approx(5.0)
    assert predict_conflict_point(left, (0.0, -12.0), 2.0, frame).position[0] == pytest.approx(-5.0)

    free = axis_locked(Direction.RIGHT, x=0.0, z=-10.0, speed=1.0)
    poc = predict_conflict_point(free, (0.0, -12.0), 2.0, frame)
    assert poc.active
    assert poc.position == pytest.approx((1.0, 0.0, -10.0))


def test_lateral_travel_behind_pedestrian_stays_in_corridor():
    frame = CorridorFrame(1.0)
    # d = -10: the obstacle is behind the pedestrian, travel is negative
    right = axis_locked(Direction.RIGHT, x=-4.0, z=-11.0, speed=1.0)
    left = axis_locked(Direction.LEFT, x=4.0, z=-11.0, speed=1.0)
    poc_r = predict_conflict_point(right, (0.0, -1.0), 1.0, frame)
    poc_l = predict_conflict_point(left, (0.0, -1.0), 1.0, frame)
    assert poc_r.active and poc_l.active
    assert poc_r.position[0] == pytest.approx(-5.0)
    assert poc_l.position[0] == pytest.approx(5.0)

    for x in (-5.0, -2.5, 0.0, 2.5, 5.0):
        for ped_z in (-12.0, -1.0, 10.0):
            for direction in (Direction.LEFT, Direction.RIGHT):
                obs = axis_locked(direction, x=x, z=0.0, speed=3.0)
                px = predict_conflict_point(obs, (0.0, ped_z), 1.0, frame).position[0]
                assert -5.0 <= px <= 5.0


def test_free_direction_receding_faster_is_inactive():
    obs = Obstacle(
        position=(0.0, 0.0, 0.0),
        active=True,
        motion=MotionPattern.FREE_DIRECTION,
        heading=(0.0, 0.0, 5.0),
        speed=2.0,
    )
    assert not predict_conflict_point(obs, (0.0, -10.0), 1.0, CorridorFrame(1.0)).active


def test_free_direction_head_on():
    obs = Obstacle(
        position=(0.0, 0.0, 0.0),
        active=True,
        motion=MotionPattern.FREE_DIRECTION,
        heading=(0.0, 0.0, -1.0),
        speed=1.0,
    )
    poc = predict_conflict_point(obs, (0.0, -10.0), 1.0, CorridorFrame(1.0))
    assert poc.active
    assert poc.position == pytest.approx((0.0, 0.0, -5.0))


def test_free_direction_oblique_uses_cosine():
    obs = Obstacle(
        position=(0.0, 0.0, 0.0),
        active=True,
        motion=MotionPattern.FREE_DIRECTION,
        heading=(-1.0, 0.0, -1.0),
        speed=1.0,
    )
    poc = predict_conflict_point(obs, (0.0, -4.0), 1.0, CorridorFrame(1.0))
    cos_theta = math.sqrt(0.5)
    travel = 4.0 / (1.0 + cos_theta)
    assert poc.active
    assert poc.position[0] == pytest.approx(-travel * cos_theta)
    assert poc.position[2] == pytest.approx(-travel * cos_theta)


def test_free_direction_out_of_bounds_is_inactive():
    obs = Obstacle(
        position=(4.0, 0.0, 0.0),
        active=True,
        motion=MotionPattern.FREE_DIRECTION,
        heading=(5.0, 0.0, 0.0),
        speed=1.0,
    )
    assert not predict_conflict_point(obs, (0.0, -10.0), 1.0, CorridorFrame(1.0)).active


def test_free_direction_degenerate_heading_is_inactive():
    obs = Obstacle(
        position=(1.0, 0.0, 1.0),
        active=True,
        motion=MotionPattern.FREE_DIRECTION,
        heading=(1.0, 0.0, 1.0),
        speed=1.0,
    )
    assert not predict_conflict_point(obs, (0.0, -10.0), 1.0, CorridorFrame(1.0)).active


def test_pedestrian_obstacle_interpolates_route():
    route = ((0.0, 0.0, 0.0), (0.0, 0.0, -2.0), (1.0, 0.0, -4.0), (3.0, 0.0, -6.0))
    obs = Obstacle(
        position=(0.0, 0.0, 0.0),
        active=True,
        motion=MotionPattern.PEDESTRIAN,
        route=route,
        speed=1.0,
    )
    # travel = 10 * 1 / 2 = 5 -> segment 2, halfway
    poc = predict_conflict_point(obs, (0.0, -10.0), 1.0, CorridorFrame(1.0))
    assert poc.active
    assert poc.position == pytest.approx((2.0, 0.0, -5.0))

    short = Obstacle(
        position=(0.0, 0.0, 0.0),
        active=True,
        motion=MotionPattern.PEDESTRIAN,
        route=route[:3],
        speed=1.0,
    )
    assert not predict_conflict_point(short, (0.0, -10.0), 1.0, CorridorFrame(1.0)).active


def test_non_positive_pedestrian_speed_is_inactive_for_moving_obstacles():
    obs = axis_locked(Direction.LEFT, z=0.0, speed=1.0)
    assert not predict_conflict_point(obs, (0.0, -10.0), 0.0, CorridorFrame(1.0)).active


def test_obstacle_validation():
    with pytest.raises(ValueError):
        Obstacle(size=0.0)
    with pytest.raises(ValueError):
        Obstacle(danger_level=1.5)
    with pytest.raises(ValueError):
        Obstacle(motion=MotionPattern.AXIS_LOCKED)
    with pytest.raises(ValueError):
        Obstacle(motion=MotionPattern.FREE_DIRECTION)
    with pytest.raises(ValueError):
        Obstacle(motion=MotionPattern.PEDESTRIAN, route=((0.0, 0.0, 0.0),))


def test_obstacle_from_dict():
    obs = Obstacle.from_dict(
        {"position": [1, 0, 2], "size": 0.5, "motion": "axis_locked", "direction": "LEFT", "speed": 1}
    )
    assert obs.active
    assert obs.motion is MotionPattern.AXIS_LOCKED
    assert obs.direction is Direction.LEFT
    assert obs.xz == (1.0, 2.0)
