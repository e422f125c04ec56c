"""
Force models summed by the stepper each sub-step.

Unlike the tether and aerodynamic models, these are simple closed-form
contributions. Each force class follows the :class:`Force` protocol and
returns a world-frame force; the simulation sums them and applies the total
once per sub-step. Ground contact is different: it acts on the kite state
directly after the sum has been applied.

Physical units:
- Forces: Newtons [N]
- Torques: Newton-meters [N·m]
- Distances: meters [m]
"""
from __future__ import annotations

from typing import Any, Protocol

import numpy as np
from numpy.typing import ArrayLike, NDArray

from kitesim.core.config import GRAVITY, PhysicsConfig
from kitesim.utils.orientation import PITCH, ROLL
from kitesim.utils.validation import validate_non_negative

EPSILON_DISTANCE = 1e-12


class Force(Protocol):
    """Protocol for forces contributed to the per-sub-step sum."""
    def compute(self, kite: Any, t: float | None = None) -> NDArray[np.float64]:
        """
        Force on the kite.

        Parameters
        ----------
        kite : KiteState
            Read only.
        t : float | None
            Current simulation time [s]. Optional for time-independent forces.
        """
        ...


class Gravity:
    """
    Uniform gravitational force ``F = m * g`` along -Y.

    Parameters
    ----------
    g : float
        Gravitational acceleration magnitude [m/s²]

    Examples
    --------
    >>> Gravity(9.81).compute(kite)
    array([ 0.   , -4.905,  0.   ])
    """
    def __init__(self, g: float = GRAVITY) -> None:
        validate_non_negative(g, "g")
        self.g = float(g)

    def compute(self, kite: Any, t: float | None = None) -> NDArray[np.float64]:
        return np.array([0.0, -kite.mass * self.g, 0.0], dtype=np.float64)


class Stabilizer:
    """
    Weak view-keeping force.

    Horizontally, pulls the kite back toward the origin with a constant
    magnitude once it is further than ``radius`` from the Y axis. Vertically,
    a proportional pull toward ``target_altitude``.

    Parameters
    ----------
    radius : float
        Horizontal free radius [m]
    horizontal_gain : float
        Horizontal recentering force [N]
    target_altitude : float
        Altitude of the vertical pull [m]
    vertical_gain : float
        Vertical force per metre of altitude error [N/m]
    """
    def __init__(
        self,
        radius: float = 30.0,
        horizontal_gain: float = 0.05,
        target_altitude: float = 5.0,
        vertical_gain: float = 0.01,
    ) -> None:
        validate_non_negative(radius, "radius")
        self.radius = float(radius)
        self.horizontal_gain = float(horizontal_gain)
        self.target_altitude = float(target_altitude)
        self.vertical_gain = float(vertical_gain)

    @classmethod
    def from_config(cls, cfg: PhysicsConfig) -> Stabilizer:
        return cls(
            radius=cfg.stabilizer_radius,
            horizontal_gain=cfg.stabilizer_horizontal_gain,
            target_altitude=cfg.target_altitude,
            vertical_gain=cfg.stabilizer_vertical_gain,
        )

    def compute(self, kite: Any, t: float | None = None) -> NDArray[np.float64]:
        x, y, z = kite.position
        force = np.zeros(3, dtype=np.float64)

        d2 = x * x + z * z
        if d2 > self.radius ** 2:
            d = np.sqrt(d2)
            force[0] = -x / d * self.horizontal_gain
            force[2] = -z / d * self.horizontal_gain

        force[1] = (self.target_altitude - y) * self.vertical_gain
        return force


class GroundContact:
    """
    Ground plane response below a buffer altitude.

    When the kite is below ``buffer``:

    1. Upward repulsion ``repulsion * m * g * min(1, depth / buffer)`` is
       applied through the kite's filter stage
    2. Horizontal velocity is multiplied by ``friction``
    3. Vertical velocity is clamped to be non-negative
    4. Altitude is clamped to ``buffer``
    5. A leveling torque ``(-pitch * k, 0, -roll * k)`` is applied

    Parameters
    ----------
    buffer : float
        Minimum altitude [m]
    repulsion : float
        Peak upward force as a multiple of the kite weight [-]
    friction : float
        Horizontal velocity factor per contact sub-step [-]
    leveling_gain : float
        Leveling torque gain ``k`` [N·m/rad]
    g : float
        Gravitational acceleration magnitude [m/s²]
    """
    def __init__(
        self,
        buffer: float = 0.5,
        repulsion: float = 2.0,
        friction: float = 0.7,
        leveling_gain: float = 0.5,
        g: float = GRAVITY,
    ) -> None:
        validate_non_negative(buffer, "buffer")
        self.buffer = float(buffer)
        self.repulsion = float(repulsion)
        self.friction = float(friction)
        self.leveling_gain = float(leveling_gain)
        self.g = float(g)
        self.in_contact = False

    @classmethod
    def from_config(cls, cfg: PhysicsConfig) -> GroundContact:
        return cls(
            buffer=cfg.ground_buffer,
            repulsion=cfg.ground_repulsion,
            friction=cfg.ground_friction,
            leveling_gain=cfg.ground_leveling_gain,
            g=cfg.gravity,
        )

    def resolve(self, kite: Any, dt: float) -> bool:
        """
        Apply the ground response if the kite is below the buffer.

        Returns
        -------
        bool
            True if the kite was in contact this sub-step.
        """
        y = kite.position[1]
        self.in_contact = bool(y < self.buffer)
        if not self.in_contact:
            return False

        depth = self.buffer - y
        penetration = min(1.0, depth / max(self.buffer, EPSILON_DISTANCE))
        kite.apply_force([0.0, self.repulsion * kite.mass * self.g * penetration, 0.0], dt)

        kite.velocity[0] *= self.friction
        kite.velocity[1] = max(0.0, kite.velocity[1])
        kite.velocity[2] *= self.friction
        kite.position[1] = self.buffer

        leveling = np.array([
            -kite.rotation[PITCH] * self.leveling_gain,
            0.0,
            -kite.rotation[ROLL] * self.leveling_gain,
        ])
        kite.apply_torque(leveling, dt)
        return True


def stabilizing_torque(
    rotation: ArrayLike,
    angular_velocity: ArrayLike,
    restoring: ArrayLike = (0.1, 0.01, 0.2),
    damping: float = 0.15,
) -> NDArray[np.float64]:
    """
    Restoring plus damping torque on the Euler angles.

    ``-sin(angle) * restoring - angular_velocity * damping`` per axis. The
    yaw restoring gain is small so that steering is not fought.
    """
    r = np.asarray(rotation, dtype=np.float64)
    w = np.asarray(angular_velocity, dtype=np.float64)
    return -np.sin(r) * np.asarray(restoring, dtype=np.float64) - w * float(damping)


def steering_torque(
    tether_torque: ArrayLike,
    kite: Any,
    cfg: PhysicsConfig,
) -> NDArray[np.float64]:
    """
    Total torque applied to the kite in one sub-step.

    ``(tether_torque + stabilizing_torque) * torque_scale``
    """
    total = np.asarray(tether_torque, dtype=np.float64) + stabilizing_torque(
        kite.rotation,
        kite.angular_velocity,
        cfg.restoring_torque,
        cfg.angular_damping_torque,
    )
    return total * cfg.torque_scale
