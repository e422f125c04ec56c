import numpy as np
import pytest

from kitesim.dynamics.body import KiteState
from kitesim.models.aerodynamics import AerodynamicModel, OPTIMAL_AOA
from kitesim.models.wind import WindState


@pytest.fixture
def aero():
    return AerodynamicModel()


@pytest.fixture
def kite(channel):
    return KiteState(diagnostics=channel)


def test_lift_zero_at_ends(aero):
    assert aero.lift_coefficient(0.0) == pytest.approx(0.0, abs=1e-12)
    assert aero.lift_coefficient(np.pi / 2) == pytest.approx(0.0, abs=1e-12)
    assert aero.lift_coefficient(2.0) == 0.0


def test_lift_peaks_near_optimum(aero):
    aoa = np.linspace(0.0, np.pi / 2, 2001)
    cl = np.array([aero.lift_coefficient(a) for a in aoa])
    assert aoa[np.argmax(cl)] == pytest.approx(OPTIMAL_AOA, abs=0.01)
    assert cl.max() == pytest.approx(1.2, rel=1e-4)


def test_lift_decreasing_past_stall(aero):
    aoa = np.linspace(aero.stall_angle, np.pi / 2, 500)
    cl = [aero.lift_coefficient(a) for a in aoa]
    assert np.all(np.diff(cl) < 0)


def test_lift_continuous_at_stall_onset(aero):
    s = aero.stall_angle
    assert aero.lift_coefficient(s + 1e-9) == pytest.approx(aero.lift_coefficient(s), abs=1e-6)


def test_drag_increases_with_aoa(aero):
    aoa = np.linspace(0.0, np.pi / 2, 100)
    cd = [aero.drag_coefficient(a, 0.8) for a in aoa]
    assert cd[0] == pytest.approx(0.05)
    assert np.all(np.diff(cd) > 0)


def test_no_airflow_no_force(aero, kite):
    wind = WindState()
    kite.velocity = wind.velocity.copy()
    forces = aero.compute_forces(kite, wind)
    assert np.array_equal(forces.lift, np.zeros(3))
    assert np.array_equal(forces.drag, np.zeros(3))


def test_force_directions(aero, kite):
    wind = WindState()
    forces = aero.compute_forces(kite, wind)
    rel = forces.relative_velocity
    rel_hat = rel / np.linalg.norm(rel)
    assert np.dot(forces.drag, rel) < 0.0
    assert abs(np.dot(forces.lift, rel_hat)) < 1e-9
    # launch attitude lifts the kite
    assert forces.lift[1] > 0.0


def test_angle_of_attack_at_launch(aero, kite):
    # wind along +Z, sail pitched 60° -> normal 60° from the airflow
    forces = aero.compute_forces(kite, WindState())
    assert forces.angle_of_attack == pytest.approx(np.pi / 3)


def test_force_magnitudes(aero, kite):
    wind = WindState(current_speed=4.0)
    forces = aero.compute_forces(kite, wind)
    q_area = 0.5 * 1.225 * 16.0 * kite.area
    assert np.linalg.norm(forces.drag) == pytest.approx(q_area * forces.drag_coefficient)
    assert np.linalg.norm(forces.lift) == pytest.approx(q_area * abs(forces.lift_coefficient))


def test_parallel_airflow_is_finite(aero, kite):
    kite.rotation = np.zeros(3)  # normal along +Z, same as the wind
    forces = aero.compute_forces(kite, WindState())
    assert np.all(np.isfinite(forces.lift))
    assert forces.angle_of_attack == pytest.approx(0.0, abs=1e-6)


def test_drag_can_be_disabled(aero, kite):
    forces = aero.compute_forces(kite, WindState(), include_drag=False)
    assert np.array_equal(forces.drag, np.zeros(3))
    assert forces.drag_coefficient > 0.0


def test_invalid_stall_configuration():
    with pytest.raises(ValueError):
        AerodynamicModel(optimal_aoa=1.4, stall_ratio=1.3)
