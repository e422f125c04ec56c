"""
Flight telemetry derived from the kite state.

Pure data: flight time, speed, angle of attack and loop counting. Rendering
the numbers is left to the host.
"""
from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np

from kitesim.utils.orientation import ROLL

TWO_PI = 2.0 * np.pi
DEFAULT_HISTORY = 36_000  # 10 min of 60 Hz frames


@dataclass
class TelemetrySample:
    """Telemetry values after one host frame."""
    flight_time: float = 0.0
    kite_speed: float = 0.0
    altitude: float = 0.0
    kinetic_energy: float = 0.0
    wind_speed: float = 0.0
    angle_of_attack: float = 0.0  # degrees
    left_tension: float = 0.0
    right_tension: float = 0.0
    loops_cw: int = 0
    loops_ccw: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class FlightTelemetry:
    """
    Accumulates flight metrics across frames.

    Loops are counted from the roll angle: frame-to-frame changes are
    unwrapped into ``(-pi, pi]`` and accumulated; each full ``+2 pi``
    counts one clockwise loop and each ``-2 pi`` one counter-clockwise loop.

    Parameters
    ----------
    history_size : int
        Number of per-frame samples kept in ``history`` (oldest dropped).

    Examples
    --------
    >>> telemetry = FlightTelemetry()
    >>> sample = telemetry.update(sim.kite, sim.wind.state, 1 / 60)
    >>> sample.loops_cw
    0
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY) -> None:
        self.sample = TelemetrySample()
        self.history: deque[dict[str, Any]] = deque(maxlen=int(history_size))
        self._last_roll: float | None = None
        self.rotation_accumulator = 0.0

    def reset(self) -> None:
        self.sample = TelemetrySample()
        self.history.clear()
        self._last_roll = None
        self.rotation_accumulator = 0.0

    def track_loops(self, roll: float) -> None:
        if self._last_roll is None:
            self._last_roll = roll
            return

        delta = roll - self._last_roll
        if delta > np.pi:
            delta -= TWO_PI
        elif delta < -np.pi:
            delta += TWO_PI
        self.rotation_accumulator += delta
        self._last_roll = roll

        while self.rotation_accumulator >= TWO_PI:
            self.sample.loops_cw += 1
            self.rotation_accumulator -= TWO_PI
        while self.rotation_accumulator <= -TWO_PI:
            self.sample.loops_ccw += 1
            self.rotation_accumulator += TWO_PI

    def update(
        self,
        kite: Any,
        wind: Any,
        dt: float,
        aero: Any = None,
        tether: Any = None,
    ) -> TelemetrySample:
        """
        Refresh the metrics after a host frame.

        Parameters
        ----------
        kite : KiteState
        wind : WindState
        dt : float
            Simulated time covered by the frame [s]
        aero : AeroForces | None
            Last aerodynamic evaluation, for the angle of attack
        tether : TetherResult | None
            Last tether evaluation, for line tensions
        """
        s = self.sample
        s.flight_time += float(dt)
        s.kite_speed = float(np.linalg.norm(kite.velocity))
        s.altitude = float(kite.position[1])
        s.kinetic_energy = float(kite.kinetic_energy())
        s.wind_speed = float(wind.current_speed)
        if aero is not None:
            s.angle_of_attack = float(np.degrees(aero.angle_of_attack))
        if tether is not None:
            s.left_tension = float(tether.left_tension)
            s.right_tension = float(tether.right_tension)
        self.track_loops(float(kite.rotation[ROLL]))
        self.history.append(s.to_dict())
        return s
