import numpy as np
import pandas as pd
import pytest

from kitesim import KiteSimulation
from kitesim.core.config import FilterConfig, PhysicsConfig, SimulationConfig
from kitesim.core.events import DiagnosticKind


@pytest.fixture
def sim(channel):
    return KiteSimulation(seed=0, diagnostics=channel)


def test_update_returns_substep_count(sim):
    assert sim.update(1.0 / 60.0) == 2
    assert sim.t == pytest.approx(2.0 / 120.0)


def test_idle_ignores_ticks(sim):
    sim.set_physics_running(False)
    before = sim.snapshot()
    assert sim.update(1.0 / 60.0) == 0
    assert sim.snapshot() == before
    sim.set_physics_running(True)
    assert sim.update(1.0 / 60.0) == 2


def test_step_force_breakdown(sim):
    sim.step()
    assert set(sim.force_breakdown) == {
        "gravity", "lift", "drag", "tether", "stabilizer", "total",
    }
    parts = sum(v for k, v in sim.force_breakdown.items() if k != "total")
    assert np.allclose(parts, sim.force_breakdown["total"])


def test_force_switches(sim):
    sim.set_force_enabled("wind", False)
    sim.set_force_enabled("tether", False)
    sim.set_force_enabled("gravity", False)
    sim.step()
    assert set(sim.force_breakdown) == {"stabilizer", "total"}
    assert np.array_equal(sim.aero.last_forces.lift, np.zeros(3))


def test_drag_switch(sim):
    sim.set_force_enabled("drag", False)
    sim.step()
    assert np.array_equal(sim.force_breakdown["drag"], np.zeros(3))
    assert np.linalg.norm(sim.force_breakdown["lift"]) > 0.0


def test_unknown_force_category(sim):
    with pytest.raises(ValueError, match="Unknown force category"):
        sim.set_force_enabled("magnetism", True)


def test_inputs_forwarded_and_clamped(sim):
    sim.set_left_input(1.4)
    sim.set_right_input(0.3)
    sim.set_overall_line_length(-0.5)
    sim.set_differential_line_length(2.0)
    s = sim.tether.state
    assert (s.left_input, s.right_input) == (1.0, 0.3)
    assert s.overall_length_adjustment == -0.5
    assert s.differential_length_adjustment == 1.0


def test_wind_controls(sim):
    sim.set_wind_speed_scale(0.5)
    sim.set_wind_direction([1.0, 0.0, 0.0])
    sim.set_wind_variation(turbulence=0.0)
    assert sim.wind_state.user_scale == 0.5
    assert np.allclose(sim.wind_state.base_direction, [1.0, 0.0, 0.0])
    with pytest.raises(ValueError):
        sim.set_wind_direction([0.0, 0.0, 0.0])


def test_time_scale(sim):
    sim.set_time_scale(0.5)
    assert sim.update(1.0 / 60.0) == 1
    with pytest.raises(ValueError):
        sim.set_time_scale(-1.0)


def test_physics_config_round_trip(sim):
    cfg = sim.get_physics_config()
    cfg["max_substeps"] = 99
    assert sim.config.max_substeps == 10

    sim.update_physics_config(max_substeps=4, ground_buffer=1.0)
    assert sim.config.max_substeps == 4
    assert sim.ground.buffer == 1.0
    assert sim.accumulator.config is sim.config


def test_physics_config_rejects_bad_values(sim):
    with pytest.raises(ValueError):
        sim.update_physics_config(warp_factor=9)
    with pytest.raises(ValueError):
        sim.update_physics_config(fixed_time_step=-1.0)
    assert sim.config.fixed_time_step == pytest.approx(1.0 / 120.0)


def test_reset_restores_launch_pose(sim):
    for _ in range(30):
        sim.update(1.0 / 60.0)
    sim.reset()
    position, rotation = sim.kite.launch_pose()
    assert np.array_equal(sim.kite.position, position)
    assert np.array_equal(sim.kite.rotation, rotation)
    assert sim.t == 0.0
    assert sim.telemetry.sample.flight_time == 0.0


def test_change_kite_type(sim):
    sim.change_kite_type("delta")
    assert sim.kite.mass == 0.4
    assert sim.kite_type == "delta"
    with pytest.raises(ValueError):
        sim.change_kite_type("parafoil")


def test_line_endpoints(sim):
    ends = sim.line_endpoints()
    assert np.allclose(ends["left_hand"], [-0.5, 1.0, -10.0])
    assert np.allclose(ends["bridle"], sim.kite.bridle_point())


def test_corrupted_state_recovers(sim, channel):
    sim.kite.velocity[0] = np.nan
    sim.update(1.0 / 60.0)
    assert sim.kite.is_valid()
    assert any(e.kind is DiagnosticKind.STATE_RESET for e in channel.events)


def test_long_run_stays_finite(sim):
    rng = np.random.default_rng(1)
    for _ in range(600):
        sim.set_left_input(rng.random())
        sim.set_right_input(rng.random())
        sim.update(rng.uniform(0.0, 0.05))
        assert sim.kite.is_valid()
        assert sim.kite.speed <= sim.filter.max_velocity + 1e-9


def test_from_config_object():
    cfg = SimulationConfig(
        physics=PhysicsConfig(max_substeps=3),
        kite_type="precision",
        wind={"base_speed": 7.0},
        tether={"base_line_length": 20.0},
        seed=4,
    )
    sim = KiteSimulation.from_config(cfg)
    assert sim.config.max_substeps == 3
    assert sim.config is not cfg.physics
    assert sim.kite.mass == 0.6
    assert sim.wind_state.base_speed == 7.0
    # launch pose follows the configured line length
    dist = np.linalg.norm(sim.kite.position - sim.tether.state.operator_position)
    assert dist == pytest.approx(20.0)


def test_diagnostic_times_follow_simulation_clock(sim, channel):
    sim.update(1.0 / 60.0)
    sim.kite.apply_force([np.nan, 0.0, 0.0], 1.0 / 120.0)
    assert channel.events[-1].time == pytest.approx(sim.t)


@pytest.mark.parametrize("section, bad", [
    ("kite", {"mass": -1.0}),
    ("wind", {"base_direction": [0.0, 0.0, 0.0]}),
    ("physics", {"max_substeps": 0}),
])
def test_failed_restore_leaves_simulation_unchanged(sim, section, bad):
    for _ in range(5):
        sim.update(1.0 / 60.0)
    before = sim.snapshot()

    snap = sim.snapshot()
    snap["kite_type"] = "delta"
    snap["t"] = 99.0
    snap["kite"]["position"] = [1.0, 2.0, 3.0]
    snap["tether"]["left_input"] = 0.9
    snap[section].update(bad)

    with pytest.raises(ValueError):
        sim.restore(snap)
    assert sim.snapshot() == before
    assert sim.kite.mass == 0.5


def test_configs_are_not_shared():
    physics = PhysicsConfig()
    filt = FilterConfig()
    a = KiteSimulation(physics=physics, filter_config=filt, seed=0)
    b = KiteSimulation(physics=physics, filter_config=filt, seed=0)

    a.set_time_scale(3.0)
    a.update_physics_config(max_substeps=2)
    a.set_force_enabled("gravity", False)

    assert b.config.time_scale == 1.0
    assert b.config.max_substeps == 10
    assert b.config.enable_gravity
    assert physics.time_scale == 1.0
    assert a.filter is not filt


def test_save_telemetry(sim, tmp_path):
    for _ in range(6):
        sim.update(1.0 / 60.0)
    path = sim.save_telemetry(tmp_path / "telemetry.csv")
    df = pd.read_csv(path)
    assert len(df) == 6
    assert "kinetic_energy" in df.columns
    assert df["flight_time"].iloc[-1] == pytest.approx(0.1)
    assert df["kinetic_energy"].iloc[-1] == pytest.approx(sim.kite.kinetic_energy())


def test_save_telemetry_needs_destination(sim):
    sim.update(1.0 / 60.0)
    with pytest.raises(RuntimeError, match="logging is not enabled"):
        sim.save_telemetry()
