from types import SimpleNamespace

import numpy as np
import pytest

from kitesim.core.telemetry import FlightTelemetry
from kitesim.dynamics.tether import TetherResult
from kitesim.models.aerodynamics import AeroForces


def spin(telemetry, total, steps=64):
    for angle in np.linspace(0.0, total, steps + 1):
        telemetry.track_loops(angle)


def test_clockwise_loop():
    tel = FlightTelemetry()
    spin(tel, 2.0 * np.pi + 0.1)
    assert tel.sample.loops_cw == 1
    assert tel.sample.loops_ccw == 0


def test_counter_clockwise_loops():
    tel = FlightTelemetry()
    spin(tel, -4.0 * np.pi - 0.1, steps=128)
    assert tel.sample.loops_ccw == 2
    assert tel.sample.loops_cw == 0


def test_wrapped_roll_counts_once():
    """Roll reported in [-pi, pi) still accumulates across the seam."""
    tel = FlightTelemetry()
    for angle in np.linspace(0.0, 2.0 * np.pi + 0.2, 65):
        tel.track_loops((angle + np.pi) % (2.0 * np.pi) - np.pi)
    assert tel.sample.loops_cw == 1


def test_oscillation_is_not_a_loop():
    tel = FlightTelemetry()
    for angle in 2.5 * np.sin(np.linspace(0.0, 20.0, 400)):
        tel.track_loops(angle)
    assert tel.sample.loops_cw == 0
    assert tel.sample.loops_ccw == 0


def test_update_and_reset():
    kite = SimpleNamespace(
        velocity=np.array([3.0, 0.0, 4.0]),
        position=np.array([0.0, 12.0, 0.0]),
        rotation=np.zeros(3),
        kinetic_energy=lambda: 6.25,
    )
    wind = SimpleNamespace(current_speed=5.5)
    tel = FlightTelemetry()
    s = tel.update(
        kite, wind, 0.5,
        aero=AeroForces(angle_of_attack=np.pi / 6),
        tether=TetherResult(np.zeros(3), np.zeros(3), left_tension=1.0, right_tension=2.0),
    )
    tel.update(kite, wind, 0.25)
    assert s.flight_time == pytest.approx(0.75)
    assert s.kite_speed == pytest.approx(5.0)
    assert s.altitude == 12.0
    assert s.angle_of_attack == pytest.approx(30.0)
    assert (s.left_tension, s.right_tension) == (1.0, 2.0)
    assert s.kinetic_energy == 6.25
    assert s.to_dict()["wind_speed"] == 5.5
    assert [h["flight_time"] for h in tel.history] == pytest.approx([0.5, 0.75])

    tel.reset()
    assert tel.sample.flight_time == 0.0
    assert len(tel.history) == 0
    assert tel.rotation_accumulator == 0.0


def test_history_is_bounded():
    kite = SimpleNamespace(
        velocity=np.zeros(3),
        position=np.zeros(3),
        rotation=np.zeros(3),
        kinetic_energy=lambda: 0.0,
    )
    tel = FlightTelemetry(history_size=3)
    for _ in range(5):
        tel.update(kite, SimpleNamespace(current_speed=1.0), 0.1)
    assert len(tel.history) == 3
    assert tel.history[0]["flight_time"] == pytest.approx(0.3)
