"""
Kite rigid-body state and force/torque accumulator.

The kite is modelled as a point mass with a diagonal moment of inertia and an
Euler-angle attitude. Forces and torques are integrated through an explicit
filter stage (exponential acceleration smoothing, proportional damping and
speed clamps) that keeps the stiff tether/aero system from diverging.

All physical quantities use SI units:
- Position: meters [m]
- Velocity: meters per second [m/s]
- Rotation: radians [rad], ``[pitch, yaw, roll]`` about world ``[x, y, z]``
- Angular velocity: radians per second [rad/s]
- Mass: kilograms [kg]
- Inertia: kilogram-meter-squared [kg·m²]
"""
from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from kitesim.core.config import FilterConfig
from kitesim.core.events import DiagnosticChannel, DiagnosticKind
from kitesim.models.kite_types import KiteType
from kitesim.utils.orientation import euler_to_quaternion
from kitesim.utils.validation import validate_finite_vector, validate_positive
from kitesim.utils.vector import as_vector, clamp_magnitude

# Canonical launch geometry
DEFAULT_LINE_LENGTH = 30.0  # m
DEFAULT_ELEVATION = np.pi / 3  # 60° above the horizon
DEFAULT_OPERATOR_POSITION = (0.0, 0.0, -10.0)

DEFAULT_INERTIA = (0.1, 0.2, 0.15)  # pitch, yaw, roll [kg·m²]
DEFAULT_BRIDLE_POINT = (0.0, -0.25, 0.0)  # below the centre of mass [m]


class KiteState:
    """
    Mutable kite state with filtered force/torque integration.

    Coordinate Frames
    -----------------
    World frame is Y-up; the operator stands upwind of the origin and the
    default wind blows toward +Z.

    State Variables
    ---------------
    - position : NDArray[np.float64]
        Centre of mass in world frame [m] (3,)
    - velocity : NDArray[np.float64]
        Linear velocity [m/s] (3,)
    - rotation : NDArray[np.float64]
        Euler angles ``[pitch, yaw, roll]`` [rad] (3,)
    - angular_velocity : NDArray[np.float64]
        Euler angle rates [rad/s] (3,)

    Filter State (cleared on reset)
    -------------------------------
    - smoothed_acceleration : NDArray[np.float64]
    - smoothed_angular_acceleration : NDArray[np.float64]

    Notes
    -----
    Uses __slots__ like the rest of the body classes. The simulation is the
    only caller of the mutating methods; renderers read the arrays.
    """
    __slots__ = (
        "position", "velocity", "rotation", "angular_velocity",
        "mass", "area", "wingspan", "drag_coefficient", "lift_coefficient",
        "moment_of_inertia", "bridle_connection_point",
        "smoothed_acceleration", "smoothed_angular_acceleration",
        "line_length", "elevation_angle", "operator_position",
        "filter", "diagnostics", "reset_count",
    )

    def __init__(
        self,
        mass: float = 0.5,
        area: float = 1.2,
        drag_coefficient: float = 0.8,
        lift_coefficient: float = 1.2,
        wingspan: float = 2.0,
        moment_of_inertia: ArrayLike = DEFAULT_INERTIA,
        bridle_connection_point: ArrayLike = DEFAULT_BRIDLE_POINT,
        line_length: float = DEFAULT_LINE_LENGTH,
        elevation_angle: float = DEFAULT_ELEVATION,
        operator_position: ArrayLike = DEFAULT_OPERATOR_POSITION,
        filter_config: FilterConfig | None = None,
        diagnostics: DiagnosticChannel | None = None,
    ) -> None:
        """
        Create a kite at its canonical launch pose.

        Parameters
        ----------
        mass : float
            Kite mass [kg]. Must be positive.
        area : float
            Sail area [m²]. Must be positive.
        drag_coefficient : float
            Base drag coefficient [-]
        lift_coefficient : float
            Peak lift coefficient [-]
        wingspan : float
            Tip-to-tip width [m]
        moment_of_inertia : array-like
            Diagonal inertia ``[I_pitch, I_yaw, I_roll]`` [kg·m²]. All positive.
        bridle_connection_point : array-like
            Offset of the bridle point from the centre of mass [m] (3,)
        line_length : float
            Line length used for the launch pose [m]
        elevation_angle : float
            Launch elevation above the horizon [rad]
        operator_position : array-like
            Ground position of the operator [m] (3,)
        filter_config : FilterConfig | None
            Integration filter settings. Defaults to ``FilterConfig()``.
        diagnostics : DiagnosticChannel | None
            Channel for rejected updates and resets.

        Raises
        ------
        ValueError
            If mass, area, inertia or line length is not positive.
        """
        validate_positive(mass, "mass")
        validate_positive(area, "area")
        validate_positive(line_length, "line_length")

        inertia = as_vector(moment_of_inertia)
        if np.any(inertia <= 0):
            raise ValueError(f"Moment of inertia must be positive, got {inertia}")

        self.mass = float(mass)
        self.area = float(area)
        self.wingspan = float(wingspan)
        self.drag_coefficient = float(drag_coefficient)
        self.lift_coefficient = float(lift_coefficient)
        self.moment_of_inertia = inertia
        self.bridle_connection_point = as_vector(bridle_connection_point)
        validate_finite_vector(self.bridle_connection_point, "bridle_connection_point")

        self.line_length = float(line_length)
        self.elevation_angle = float(elevation_angle)
        self.operator_position = as_vector(operator_position)

        self.filter = filter_config if filter_config is not None else FilterConfig()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticChannel()
        self.reset_count = 0

        self.position = np.zeros(3, dtype=np.float64)
        self.velocity = np.zeros(3, dtype=np.float64)
        self.rotation = np.zeros(3, dtype=np.float64)
        self.angular_velocity = np.zeros(3, dtype=np.float64)
        self.smoothed_acceleration = np.zeros(3, dtype=np.float64)
        self.smoothed_angular_acceleration = np.zeros(3, dtype=np.float64)
        self._restore_launch_pose()

    @classmethod
    def from_kite_type(cls, kite_type: KiteType, **kwargs: Any) -> KiteState:
        """Create a kite from a preset; ``kwargs`` override anything else."""
        params = dict(
            mass=kite_type.mass,
            area=kite_type.area,
            drag_coefficient=kite_type.drag_coefficient,
            lift_coefficient=kite_type.lift_coefficient,
            wingspan=kite_type.wingspan,
        )
        params.update(kwargs)
        return cls(**params)

    # -------------------------------------------------------------------------
    # Launch pose
    # -------------------------------------------------------------------------

    def launch_pose(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """
        Canonical launch position and rotation.

        Returns
        -------
        position : NDArray[np.float64]
            ``operator + L * (0, sin(e), cos(e))``: end of a taut line
            pointing downwind at elevation ``e``
        rotation : NDArray[np.float64]
            ``[-e, 0, 0]``: sail pitched to the same elevation
        """
        e = self.elevation_angle
        offset = np.array([0.0, np.sin(e), np.cos(e)], dtype=np.float64) * self.line_length
        position = self.operator_position + offset
        rotation = np.array([-e, 0.0, 0.0], dtype=np.float64)
        return position, rotation

    def _restore_launch_pose(self) -> None:
        position, rotation = self.launch_pose()
        self.position[:] = position
        self.rotation[:] = rotation
        self.velocity.fill(0.0)
        self.angular_velocity.fill(0.0)
        self.smoothed_acceleration.fill(0.0)
        self.smoothed_angular_acceleration.fill(0.0)

    def reset(self) -> None:
        """Return to the canonical launch pose with zero motion and cleared filters."""
        self._restore_launch_pose()
        self.reset_count += 1

    def set_kite_type(self, kite_type: KiteType) -> None:
        """Swap the physical properties without touching the pose."""
        validate_positive(kite_type.mass, "mass")
        validate_positive(kite_type.area, "area")
        self.mass = float(kite_type.mass)
        self.area = float(kite_type.area)
        self.wingspan = float(kite_type.wingspan)
        self.drag_coefficient = float(kite_type.drag_coefficient)
        self.lift_coefficient = float(kite_type.lift_coefficient)

    # -------------------------------------------------------------------------
    # Force / torque application
    # -------------------------------------------------------------------------

    def apply_force(self, force: ArrayLike, dt: float) -> bool:
        """
        Integrate a force over one sub-step.

        Parameters
        ----------
        force : array-like
            Force in world frame [N] (3,)
        dt : float
            Sub-step length [s]

        Returns
        -------
        bool
            True if the update was applied, False if it was rejected or
            the state had to be reset.

        Notes
        -----
        Filter stage, in order:
        1. ``a_raw = F / m``
        2. ``a_s = alpha * a_raw + (1 - alpha) * a_s``
        3. ``v += a_s * dt``, then ``v *= max(0, 1 - c * dt)``
        4. clamp ``|v|`` to ``max_velocity``
        5. ``p += v * dt``
        """
        f = np.asarray(force, dtype=np.float64)
        if not np.all(np.isfinite(f)):
            self.diagnostics.emit(
                DiagnosticKind.INVALID_FORCE,
                f"Rejected non-finite force {f}",
                force=f.copy(),
            )
            return False

        cfg = self.filter
        a_raw = f / self.mass
        alpha = cfg.smoothing_factor
        self.smoothed_acceleration = alpha * a_raw + (1.0 - alpha) * self.smoothed_acceleration

        v = self.velocity + self.smoothed_acceleration * dt
        v *= max(0.0, 1.0 - cfg.linear_damping * dt)
        self.velocity = clamp_magnitude(v, cfg.max_velocity)
        self.position = self.position + self.velocity * dt

        if not self.is_valid():
            self._recover("force integration")
            return False
        return True

    def apply_torque(self, torque: ArrayLike, dt: float) -> bool:
        """
        Integrate a torque over one sub-step.

        Same filter stage as :meth:`apply_force` with ``tau / I`` per axis,
        ``max_angular_velocity`` and explicit Euler on ``rotation``.

        Returns
        -------
        bool
            True if applied, False if rejected or reset.
        """
        tau = np.asarray(torque, dtype=np.float64)
        if not np.all(np.isfinite(tau)):
            self.diagnostics.emit(
                DiagnosticKind.INVALID_TORQUE,
                f"Rejected non-finite torque {tau}",
                torque=tau.copy(),
            )
            return False

        cfg = self.filter
        alpha_raw = tau / self.moment_of_inertia
        a = cfg.angular_smoothing_factor
        self.smoothed_angular_acceleration = (
            a * alpha_raw + (1.0 - a) * self.smoothed_angular_acceleration
        )

        w = self.angular_velocity + self.smoothed_angular_acceleration * dt
        w *= max(0.0, 1.0 - cfg.angular_damping * dt)
        self.angular_velocity = clamp_magnitude(w, cfg.max_angular_velocity)
        self.rotation = self.rotation + self.angular_velocity * dt

        if not self.is_valid():
            self._recover("torque integration")
            return False
        return True

    def _recover(self, stage: str) -> None:
        self.diagnostics.emit(
            DiagnosticKind.STATE_RESET,
            f"Non-finite kite state after {stage}; resetting to launch pose",
            position=self.position.copy(),
            rotation=self.rotation.copy(),
        )
        self.reset()

    def is_valid(self) -> bool:
        """True when every state and filter component is finite."""
        return all(
            bool(np.all(np.isfinite(arr)))
            for arr in (
                self.position, self.velocity, self.rotation, self.angular_velocity,
                self.smoothed_acceleration, self.smoothed_angular_acceleration,
            )
        )

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    def bridle_point(self) -> NDArray[np.float64]:
        """Bridle connection point in world frame [m]."""
        return self.position + self.bridle_connection_point

    def orientation_quaternion(self) -> NDArray[np.float64]:
        """Attitude as a scalar-last quaternion ``[x, y, z, w]`` for renderers."""
        return euler_to_quaternion(self.rotation)

    @property
    def altitude(self) -> float:
        return float(self.position[1])

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def kinetic_energy(self) -> float:
        """
        Total kinetic energy [J].

        ``0.5 * m * |v|² + 0.5 * Σ I_i * ω_i²`` with the diagonal inertia.
        """
        t_trans = 0.5 * self.mass * np.dot(self.velocity, self.velocity)
        t_rot = 0.5 * np.dot(self.moment_of_inertia, self.angular_velocity ** 2)
        return float(t_trans + t_rot)

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Plain-Python copy of the dynamic state (filters included)."""
        return {
            "position": self.position.tolist(),
            "velocity": self.velocity.tolist(),
            "rotation": self.rotation.tolist(),
            "angular_velocity": self.angular_velocity.tolist(),
            "smoothed_acceleration": self.smoothed_acceleration.tolist(),
            "smoothed_angular_acceleration": self.smoothed_angular_acceleration.tolist(),
            "mass": self.mass,
            "area": self.area,
            "wingspan": self.wingspan,
            "drag_coefficient": self.drag_coefficient,
            "lift_coefficient": self.lift_coefficient,
        }

    def restore(self, data: dict[str, Any]) -> None:
        """
        Load a :meth:`snapshot`.

        Raises
        ------
        ValueError
            If a vector is malformed or non-finite, or mass or area is not
            positive. The state is left unchanged in that case.
        """
        values = self._parse_snapshot(data)
        for key, value in values.items():
            setattr(self, key, value)

    @staticmethod
    def _parse_snapshot(data: dict[str, Any]) -> dict[str, Any]:
        """Validated copy of the snapshot values; nothing is assigned."""
        values: dict[str, Any] = {}
        for key in (
            "position", "velocity", "rotation", "angular_velocity",
            "smoothed_acceleration", "smoothed_angular_acceleration",
        ):
            if key in data:
                vec = as_vector(data[key])
                validate_finite_vector(vec, key)
                values[key] = vec
        for key in ("mass", "area", "wingspan", "drag_coefficient", "lift_coefficient"):
            if key in data:
                values[key] = float(data[key])
        if "mass" in values:
            validate_positive(values["mass"], "mass")
        if "area" in values:
            validate_positive(values["area"], "area")
        return values
