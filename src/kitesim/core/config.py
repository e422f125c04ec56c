"""
Configuration values for the kite physics core.

Every tuning constant of the stepper and the integrator lives here instead of
being hidden inside the force routines, so hosts and tests can override them
(e.g. ``FilterConfig(smoothing_factor=1.0)`` disables acceleration smoothing).

Physical units are SI throughout.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any

from kitesim.utils.validation import (
    validate_non_negative,
    validate_positive,
    validate_timestep,
)

GRAVITY = 9.81  # m/s²
AIR_DENSITY = 1.225  # kg/m³ (sea level)

FORCE_CATEGORIES = ("gravity", "wind", "drag", "collisions", "tether")


@dataclass
class PhysicsConfig:
    """
    Stepper and force-stage configuration.

    Attributes
    ----------
    time_scale : float
        Multiplier applied to host frame time (1.0 = real time)
    fixed_time_step : float
        Size of one physics sub-step [s]
    max_delta_time : float
        Host frame time is clamped to this before accumulation [s]
    max_substeps : int
        Upper bound on sub-steps per ``update`` call
    enable_gravity, enable_wind, enable_drag, enable_collisions, enable_tether : bool
        Per-category force switches. ``enable_drag`` gates the drag part of
        the aerodynamic force, which is only computed when wind is enabled.
    gravity : float
        Gravitational acceleration magnitude [m/s²]
    stabilizer_radius : float
        Horizontal distance from the origin beyond which the kite is
        pulled back toward the centre [m]
    stabilizer_horizontal_gain : float
        Magnitude of that horizontal recentering force [N]
    target_altitude : float
        Altitude the vertical stabilizer pulls toward [m]
    stabilizer_vertical_gain : float
        Vertical stabilizer force per metre of altitude error [N/m]
    ground_buffer : float
        Minimum altitude kept above the ground plane [m]
    ground_repulsion : float
        Peak ground repulsion as a multiple of the kite's weight [-]
    ground_friction : float
        Factor applied to horizontal velocity while in ground contact [-]
    ground_leveling_gain : float
        Leveling torque per radian of pitch/roll while on the ground [N·m/rad]
    torque_scale : float
        Overall scale applied to the summed steering torque [-]
    restoring_torque : tuple[float, float, float]
        ``-sin(angle) * gain`` restoring gains for pitch, yaw, roll [N·m]
    angular_damping_torque : float
        Torque per rad/s of angular velocity opposing rotation [N·m·s]
    """
    time_scale: float = 1.0
    fixed_time_step: float = 1.0 / 120.0
    max_delta_time: float = 0.1
    max_substeps: int = 10

    enable_gravity: bool = True
    enable_wind: bool = True
    enable_drag: bool = True
    enable_collisions: bool = True
    enable_tether: bool = True

    gravity: float = GRAVITY

    stabilizer_radius: float = 30.0
    stabilizer_horizontal_gain: float = 0.05
    target_altitude: float = 5.0
    stabilizer_vertical_gain: float = 0.01

    ground_buffer: float = 0.5
    ground_repulsion: float = 2.0
    ground_friction: float = 0.7
    ground_leveling_gain: float = 0.5

    torque_scale: float = 0.3
    restoring_torque: tuple[float, float, float] = (0.1, 0.01, 0.2)
    angular_damping_torque: float = 0.15

    def __post_init__(self) -> None:
        validate_non_negative(self.time_scale, "time_scale")
        validate_positive(self.max_delta_time, "max_delta_time")
        validate_timestep(self.fixed_time_step, max_dt=self.max_delta_time)
        if int(self.max_substeps) < 1:
            raise ValueError(f"max_substeps must be >= 1, got {self.max_substeps}")
        self.max_substeps = int(self.max_substeps)
        validate_non_negative(self.gravity, "gravity")
        validate_non_negative(self.ground_buffer, "ground_buffer")
        self.restoring_torque = tuple(float(x) for x in self.restoring_torque)
        if len(self.restoring_torque) != 3:
            raise ValueError("restoring_torque must have 3 components")

    def is_enabled(self, category: str) -> bool:
        _check_category(category)
        return bool(getattr(self, f"enable_{category}"))

    def set_enabled(self, category: str, enabled: bool) -> None:
        _check_category(category)
        setattr(self, f"enable_{category}", bool(enabled))


@dataclass
class FilterConfig:
    """
    Integration filter stage of :class:`~kitesim.dynamics.body.KiteState`.

    Acceleration smoothing is a first-order low-pass filter
    ``a_s = alpha * a_raw + (1 - alpha) * a_s_prev`` evaluated once per
    applied force. Its time constant at step ``dt`` is
    ``dt * (1 - alpha) / alpha``; about 47 ms for the defaults at 120 Hz.
    ``alpha = 1`` disables the filter.

    Attributes
    ----------
    smoothing_factor : float
        ``alpha`` for linear acceleration, in (0, 1]
    angular_smoothing_factor : float
        ``alpha`` for angular acceleration, in (0, 1]
    linear_damping : float
        Proportional velocity damping rate [1/s]
    angular_damping : float
        Proportional angular velocity damping rate [1/s]
    max_velocity : float
        Linear speed clamp [m/s]
    max_angular_velocity : float
        Angular speed clamp [rad/s]; lower than the linear clamp, kites
        rotate more slowly than they translate in this model
    """
    smoothing_factor: float = 0.15
    angular_smoothing_factor: float = 0.15
    linear_damping: float = 1.0
    angular_damping: float = 0.5
    max_velocity: float = 20.0
    max_angular_velocity: float = 3.0

    def __post_init__(self) -> None:
        for name in ("smoothing_factor", "angular_smoothing_factor"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise ValueError(f"{name} must be in (0, 1], got {value}")
        validate_non_negative(self.linear_damping, "linear_damping")
        validate_non_negative(self.angular_damping, "angular_damping")
        validate_positive(self.max_velocity, "max_velocity")
        validate_positive(self.max_angular_velocity, "max_angular_velocity")

    def time_constant(self, dt: float) -> float:
        """Linear smoothing time constant [s] at sub-step ``dt``."""
        a = self.smoothing_factor
        return dt * (1.0 - a) / a


@dataclass
class SimulationConfig:
    """
    Everything needed to build a :class:`~kitesim.core.simulation.KiteSimulation`.

    ``kite``, ``wind`` and ``tether`` hold keyword overrides for
    ``KiteState``, ``WindState`` and ``TetherState`` respectively.
    """
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)
    kite_type: str = "standard"
    kite: dict[str, Any] = field(default_factory=dict)
    wind: dict[str, Any] = field(default_factory=dict)
    tether: dict[str, Any] = field(default_factory=dict)
    seed: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def config_field_names(cls: type) -> set[str]:
    """Names of the dataclass fields of ``cls``."""
    return {f.name for f in fields(cls)}


def _check_category(category: str) -> None:
    if category not in FORCE_CATEGORIES:
        raise ValueError(
            f"Unknown force category '{category}'. Valid options: {FORCE_CATEGORIES}"
        )
