import csv
from types import SimpleNamespace

import numpy as np
import pytest

from kitesim import KiteSimulation
from kitesim.dynamics.tether import TetherResult
from kitesim.logger import CSVLogger
from kitesim.models.aerodynamics import AeroForces


# --- Mock Objects for Isolation ---
def make_mock_sim():
    kite = SimpleNamespace(
        position=np.array([1.0, 20.0, 3.0]),
        velocity=np.array([0.1, 0.2, 0.3]),
        rotation=np.array([-1.0, 0.0, 0.1]),
        angular_velocity=np.array([0.0, 0.0, 0.5]),
    )
    wind = SimpleNamespace(state=SimpleNamespace(
        current_speed=5.0, velocity=np.array([0.0, 0.0, 5.0]),
    ))
    tether = SimpleNamespace(last_result=TetherResult(
        force=np.array([0.0, -3.0, -4.0]), torque=np.zeros(3), left_tension=2.0, right_tension=2.5,
    ))
    aero = SimpleNamespace(last_forces=AeroForces(angle_of_attack=0.3))
    return SimpleNamespace(t=0.0, kite=kite, wind=wind, tether=tether, aero=aero)


def read_rows(path):
    with open(path, "r", newline="") as f:
        return list(csv.reader(f))


# --- Tests ---

def test_logger_basic_io(tmp_path):
    """Header and one data row with all default fields."""
    log_path = tmp_path / "test_basic.csv"

    with CSVLogger(str(log_path), buffer_size=1) as logger:
        logger.log(make_mock_sim())

    rows = read_rows(log_path)
    assert len(rows) == 2

    header = rows[0]
    # t + p, v, r, w (12) + wind (4) + tether (5) + aero (7)
    assert len(header) == 29
    assert header[0] == "t"
    assert "kite.p_x" in header
    assert "kite.r_pitch" in header
    assert "tether.right_tension" in header
    assert "aero.drag_z" in header

    values = dict(zip(header, rows[1]))
    assert float(values["t"]) == 0.0
    assert float(values["kite.p_y"]) == 20.0
    assert float(values["tether.f_z"]) == -4.0
    assert float(values["aero.aoa"]) == pytest.approx(0.3)


def test_logger_buffering(tmp_path):
    """Rows are held until the buffer fills."""
    log_path = tmp_path / "test_buffer.csv"
    buffer_size = 5

    logger = CSVLogger(str(log_path), buffer_size=buffer_size)
    sim = make_mock_sim()

    for i in range(buffer_size - 1):
        sim.t = float(i)
        logger.log(sim)

    with open(log_path, "r") as f:
        assert len(f.readlines()) == 1  # header only

    sim.t = float(buffer_size)
    logger.log(sim)

    with open(log_path, "r") as f:
        assert len(f.readlines()) == 1 + buffer_size

    logger.close()


def test_logger_custom_fields(tmp_path):
    log_path = tmp_path / "test_custom.csv"

    with CSVLogger(str(log_path), fields=["p", "wind"]) as logger:
        logger.log(make_mock_sim())

    header = read_rows(log_path)[0]
    assert header == [
        "t", "kite.p_x", "kite.p_y", "kite.p_z",
        "wind.speed", "wind.v_x", "wind.v_y", "wind.v_z",
    ]


def test_logger_tether_before_first_evaluation(tmp_path):
    log_path = tmp_path / "test_none.csv"
    sim = make_mock_sim()
    sim.tether.last_result = None

    with CSVLogger(str(log_path), fields=["tether"]) as logger:
        logger.log(sim)

    assert [float(x) for x in read_rows(log_path)[1][1:]] == [0.0] * 5


def test_logger_invalid_field(tmp_path):
    with pytest.raises(ValueError, match="Invalid fields"):
        CSVLogger(str(tmp_path / "bad.csv"), fields=["p", "quaternion"])


def test_simulation_integration(tmp_path):
    """KiteSimulation logs every sub-step during run()."""
    sim = KiteSimulation(seed=0, output_dir=tmp_path, auto_timestamp=False)
    out = sim.enable_logging("logged")
    assert out == tmp_path / "logged"

    sim.run(duration=0.1, frame_dt=1.0 / 60.0, log_interval=0)
    sim.disable_logging()

    rows = read_rows(tmp_path / "logged" / "logs" / "simulation.csv")
    # header + initial row + 12 sub-steps
    assert len(rows) == 2 + 12
    assert float(rows[-1][0]) == pytest.approx(0.1)
    assert (tmp_path / "logged" / "logs" / "telemetry.csv").exists()


def test_enable_logging_requires_name():
    sim = KiteSimulation(seed=0)
    with pytest.raises(ValueError, match="Simulation name required"):
        sim.enable_logging()
