import numpy as np
import pytest

from ped_env.gym.observation_builder import INACTIVE_POC, ObservationBuilder, nearest_active_poc
from ped_env.gym.route_plan_env import PedestrianRoutePlanEnv
from ped_env.sim.obstacles import PredictedConflictPoint


def poc(x, z, active=True, size=1.0, danger=0.5):
    return PredictedConflictPoint(position=(x, 0.0, z), active=active, size=size, danger_level=danger)


def test_nearest_active_poc_skips_closer_inactive_points():
    pocs = [
        poc(0.0, -11.5, active=False),
        poc(3.0, 4.0, size=0.5, danger=0.2),
        poc(-1.0, -6.0, size=1.2, danger=0.7),
        poc(4.0, 8.0),
    ]
    assert nearest_active_poc(pocs, (0.0, -12.0)) == 2
    assert nearest_active_poc(pocs, (4.0, 9.0)) == 3
    assert nearest_active_poc([poc(0.0, 0.0, active=False)], (0.0, -12.0)) is None


def test_build_emits_nearest_active_poc():
    pocs = [
        poc(0.0, -11.5, active=False),
        poc(3.0, 4.0, size=0.5, danger=0.2),
        poc(-1.0, -6.0, size=1.2, danger=0.7),
    ]
    data = ObservationBuilder().build((0.0, -12.0), (2.0, 10.0), pocs, 0.8)
    assert data.poc_index == 2
    assert data.obs.dtype == np.float32
    assert data.obs.tolist() == pytest.approx([0.5, 0.7, 1.0, 0.4, -0.1, 1.2, 0.7, 0.8])


def test_build_without_active_poc_uses_sentinel():
    data = ObservationBuilder().build((-5.0, -12.0), (5.0, 10.0), [poc(1.0, 1.0, active=False)], 0.3)
    assert data.poc_index is None
    assert data.obs.tolist() == pytest.approx([0.0, 1.0, *INACTIVE_POC, 0.3])


def test_poc_outside_corridor_fits_observation_space():
    env = PedestrianRoutePlanEnv()
    # a route-following obstacle can be predicted past the corridor wall
    data = ObservationBuilder().build((0.0, -12.0), (0.0, 10.0), [poc(8.0, -3.0)], 1.0)
    assert data.obs[3] == pytest.approx(1.3)
    assert env.observation_space.contains(data.obs)
