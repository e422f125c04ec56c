import numpy as np
import pytest

from kitesim.core.config import PhysicsConfig
from kitesim.dynamics.body import KiteState
from kitesim.dynamics.forces import (
    Gravity,
    GroundContact,
    Stabilizer,
    stabilizing_torque,
    steering_torque,
)

DT = 1.0 / 120.0


@pytest.fixture
def kite(channel):
    return KiteState(diagnostics=channel)


def test_gravity_force_direction(kite):
    g = Gravity(9.81)
    assert np.allclose(g.compute(kite), [0.0, -kite.mass * 9.81, 0.0])


def test_gravity_rejects_negative():
    with pytest.raises(ValueError):
        Gravity(-1.0)


def test_stabilizer_inside_radius(kite):
    kite.position = np.array([3.0, 8.0, 4.0])
    f = Stabilizer().compute(kite)
    assert f[0] == 0.0 and f[2] == 0.0
    assert f[1] == pytest.approx((5.0 - 8.0) * 0.01)


def test_stabilizer_outside_radius(kite):
    kite.position = np.array([30.0, 5.0, 40.0])
    f = Stabilizer().compute(kite)
    assert np.hypot(f[0], f[2]) == pytest.approx(0.05)
    assert f[0] < 0.0 and f[2] < 0.0
    assert f[1] == pytest.approx(0.0)


def test_stabilizer_from_config():
    cfg = PhysicsConfig(stabilizer_radius=10.0, target_altitude=8.0)
    s = Stabilizer.from_config(cfg)
    assert s.radius == 10.0
    assert s.target_altitude == 8.0


def test_ground_contact_below_buffer(kite):
    ground = GroundContact()
    kite.position = np.array([1.0, 0.2, 2.0])
    kite.velocity = np.array([1.0, -2.0, 1.0])
    assert ground.resolve(kite, DT)
    assert kite.position[1] == 0.5
    assert kite.velocity[1] >= 0.0
    assert kite.velocity[0] == pytest.approx(0.7 * (1.0 - DT))
    assert kite.velocity[2] == pytest.approx(0.7 * (1.0 - DT))


def test_ground_contact_above_buffer(kite):
    ground = GroundContact()
    before = kite.snapshot()
    assert not ground.resolve(kite, DT)
    assert kite.snapshot() == before


def test_ground_leveling_torque(kite):
    ground = GroundContact()
    kite.position = np.array([0.0, 0.3, 0.0])
    kite.rotation = np.array([0.5, 0.2, -0.4])
    ground.resolve(kite, DT)
    assert kite.angular_velocity[0] < 0.0
    assert kite.angular_velocity[1] == 0.0
    assert kite.angular_velocity[2] > 0.0


def test_stabilizing_torque():
    assert np.allclose(stabilizing_torque(np.zeros(3), np.zeros(3)), 0.0)
    tau = stabilizing_torque([0.0, 0.0, 0.0], [1.0, -1.0, 0.0])
    assert np.allclose(tau, [-0.15, 0.15, 0.0])
    tau = stabilizing_torque([np.pi / 2, 0.0, np.pi / 2], np.zeros(3))
    assert np.allclose(tau, [-0.1, 0.0, -0.2])


def test_steering_torque_scaled(kite):
    kite.rotation = np.zeros(3)
    cfg = PhysicsConfig()
    tau = steering_torque([0.0, 1.0, 0.0], kite, cfg)
    assert np.allclose(tau, [0.0, 0.3, 0.0])
