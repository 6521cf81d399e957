import numpy as np
import pytest

from ped_env.sim.obstacles import Obstacle
from ped_env.sim.proximity import ProximityConfig, evaluate_proximity, lane_reward, obstacle_reward


def unit_obstacle(active=True):
    return Obstacle(position=(0.0, 0.0, 0.0), size=1.0, danger_level=1.0, active=active)


def test_point_inside_footprint_is_conflict():
    reward, hit = obstacle_reward(np.array([[0.0, 0.5]]), unit_obstacle(), ProximityConfig())
    assert hit
    assert reward == pytest.approx((0.25 - 1.0) * 0.1)
    assert reward < 0.0


def test_point_on_rim_is_not_conflict():
    cfg = ProximityConfig()
    reward, hit = obstacle_reward(np.array([[1.0, 0.0]]), unit_obstacle(), cfg)
    assert not hit
    assert reward == pytest.approx(0.01 * 0.1)


def test_penetration_scales_with_danger_and_size():
    cfg = ProximityConfig()
    big = Obstacle(position=(0.0, 0.0, 0.0), size=2.0, danger_level=0.5, active=True)
    reward, hit = obstacle_reward(np.array([[0.0, 0.0]]), big, cfg)
    # r2 / size^2 = -1, danger^2 = 0.25
    assert hit
    assert reward == pytest.approx(-0.25 * 0.1)


def test_inactive_obstacles_are_ignored():
    pts = np.array([[0.0, 0.0], [0.0, 0.5]])
    res = evaluate_proximity(pts, [unit_obstacle(active=False)], 1.0)
    assert not res.conflict
    assert res.obstacle == 0.0


def test_conflict_slots_reported():
    far = Obstacle(position=(4.0, 0.0, 9.0), size=0.5, danger_level=0.3, active=True)
    res = evaluate_proximity(np.array([[0.0, 0.2]]), [far, unit_obstacle()], 1.0)
    assert res.conflict
    assert res.conflict_slots == [1]


def test_lane_reward_prefers_left():
    cfg = ProximityConfig()
    assert lane_reward(np.array([-1.0]), 0.5, cfg) == pytest.approx(2.0 * 0.5 * 0.001)
    assert lane_reward(np.array([1.0]), 0.5, cfg) == pytest.approx(-2.0 * 0.5 * 0.001)
    assert lane_reward(np.array([0.0]), 0.5, cfg) < 0.0
    assert lane_reward(np.array([4.8]), 1.0, cfg) == pytest.approx((-2.0 - 1.0) * 0.001)
    assert lane_reward(np.array([-4.8]), 1.0, cfg) == pytest.approx((2.0 - 1.0) * 0.001)


def test_no_obstacles_only_lane_term():
    pts = np.array([[-1.0, 0.0], [2.0, 1.0]])
    res = evaluate_proximity(pts, [], 1.0)
    assert res.obstacle == 0.0
    assert not res.conflict
    assert res.lane == pytest.approx(0.0)
