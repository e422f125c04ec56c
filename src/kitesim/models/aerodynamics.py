"""
Lift and drag on the kite sail.

The sail is treated as a flat plate whose normal is derived from pitch and
yaw (see :func:`kitesim.utils.orientation.surface_normal`). The angle of
attack is the angle between the relative airflow and that normal.

Lift curve:
    Cl(a) = Cl_max * sin(2 * a * (pi/4) / a_opt)         a <= 1.3 * a_opt
    Cl(a) = Cl(1.3 * a_opt) * (pi/2 - a) / (pi/2 - 1.3 * a_opt)   past stall

so that lift peaks at ``a_opt`` and falls linearly to zero at 90 degrees.

Drag curve:
    Cd(a) = Cd_min + Cd_base * sin(a)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from kitesim.core.config import AIR_DENSITY
from kitesim.utils.orientation import surface_normal
from kitesim.utils.validation import validate_non_negative, validate_positive
from kitesim.utils.vector import NORMALIZE_EPSILON, UP

OPTIMAL_AOA = 0.26  # rad, about 15°
STALL_RATIO = 1.3  # stall onset as a multiple of the optimal AoA
MAX_LIFT_COEFFICIENT = 1.2
MIN_DRAG_COEFFICIENT = 0.05


@dataclass
class AeroForces:
    """
    Result of :meth:`AerodynamicModel.compute_forces`.

    Attributes
    ----------
    lift : NDArray[np.float64]
        Lift force [N] (3,)
    drag : NDArray[np.float64]
        Drag force [N] (3,)
    angle_of_attack : float
        Angle between relative airflow and sail normal [rad]
    relative_velocity : NDArray[np.float64]
        Wind velocity minus kite velocity [m/s] (3,)
    lift_coefficient, drag_coefficient : float
        Coefficients used for this evaluation [-]
    """
    lift: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    drag: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    angle_of_attack: float = 0.0
    relative_velocity: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    lift_coefficient: float = 0.0
    drag_coefficient: float = 0.0

    @property
    def total(self) -> NDArray[np.float64]:
        return self.lift + self.drag


class AerodynamicModel:
    """
    Flat-plate lift/drag model with a stall curve.

    Parameters
    ----------
    rho : float
        Air density [kg/m³]
    optimal_aoa : float
        Angle of attack of peak lift [rad]
    stall_ratio : float
        Stall onset as a multiple of ``optimal_aoa`` [-]
    min_drag : float
        Drag coefficient at zero angle of attack [-]
    max_lift : float | None
        Peak lift coefficient. If None, the kite's ``lift_coefficient`` is used.

    Examples
    --------
    >>> aero = AerodynamicModel()
    >>> forces = aero.compute_forces(kite, wind.state)
    >>> forces.angle_of_attack
    """

    def __init__(
        self,
        rho: float = AIR_DENSITY,
        optimal_aoa: float = OPTIMAL_AOA,
        stall_ratio: float = STALL_RATIO,
        min_drag: float = MIN_DRAG_COEFFICIENT,
        max_lift: float | None = None,
    ) -> None:
        validate_non_negative(rho, "rho")
        validate_positive(optimal_aoa, "optimal_aoa")
        validate_positive(stall_ratio, "stall_ratio")
        if optimal_aoa * stall_ratio >= np.pi / 2:
            raise ValueError(
                f"Stall onset {optimal_aoa * stall_ratio} rad must be below pi/2"
            )
        self.rho = float(rho)
        self.optimal_aoa = float(optimal_aoa)
        self.stall_ratio = float(stall_ratio)
        self.min_drag = float(min_drag)
        self.max_lift = None if max_lift is None else float(max_lift)
        self.last_forces = AeroForces()

    @property
    def stall_angle(self) -> float:
        return self.optimal_aoa * self.stall_ratio

    def _attached_lift(self, aoa: float, max_lift: float) -> float:
        return max_lift * np.sin(2.0 * aoa * (np.pi / 4.0) / self.optimal_aoa)

    def lift_coefficient(self, aoa: float, max_lift: float = MAX_LIFT_COEFFICIENT) -> float:
        """
        Lift coefficient at angle of attack ``aoa`` [rad].

        Zero at 0 and at or beyond pi/2, peak ``max_lift`` at ``optimal_aoa``
        and strictly decreasing between the optimum and pi/2.
        """
        aoa = abs(float(aoa))
        stall = self.stall_angle
        if aoa <= stall:
            return float(self._attached_lift(aoa, max_lift))
        if aoa >= np.pi / 2:
            return 0.0
        onset = self._attached_lift(stall, max_lift)
        stall_factor = 1.0 - (aoa - stall) / (np.pi / 2 - stall)
        return float(onset * stall_factor)

    def drag_coefficient(self, aoa: float, base_drag: float) -> float:
        """``min_drag + base_drag * sin(aoa)``"""
        return float(self.min_drag + base_drag * np.sin(aoa))

    def compute_forces(self, kite: Any, wind: Any, include_drag: bool = True) -> AeroForces:
        """
        Lift and drag for the current kite pose and wind.

        Parameters
        ----------
        kite : KiteState
            Read only: velocity, rotation, area and coefficients.
        wind : WindState
            Read only: ``velocity``.
        include_drag : bool
            If False, the drag vector is zero (coefficients still reported).

        Returns
        -------
        AeroForces
            All-zero forces when the relative airflow is below 1e-4 m/s.

        Notes
        -----
        Drag points opposite the relative airflow. Lift is perpendicular to
        the airflow, in the plane spanned by airflow and sail normal:
        ``rel_hat x normalize(rel_hat x normal)``; straight up when the
        airflow is parallel to the normal.
        """
        rel = np.asarray(wind.velocity, dtype=np.float64) - kite.velocity
        speed = float(np.linalg.norm(rel))
        if not np.isfinite(speed) or speed < NORMALIZE_EPSILON:
            self.last_forces = AeroForces(relative_velocity=rel)
            return self.last_forces

        rel_hat = rel / speed
        normal = surface_normal(kite.rotation)
        aoa = float(np.arccos(np.clip(np.dot(rel_hat, normal), -1.0, 1.0)))

        max_lift = self.max_lift if self.max_lift is not None else kite.lift_coefficient
        cl = self.lift_coefficient(aoa, max_lift)
        cd = self.drag_coefficient(aoa, kite.drag_coefficient)

        side = np.cross(rel_hat, normal)
        side_norm = np.linalg.norm(side)
        if side_norm < NORMALIZE_EPSILON:
            lift_dir = UP.copy()
        else:
            lift_dir = np.cross(rel_hat, side / side_norm)

        # F = 0.5 * rho * v^2 * C * A
        q_area = 0.5 * self.rho * speed ** 2 * kite.area
        lift = lift_dir * (q_area * cl)
        drag = -rel_hat * (q_area * cd) if include_drag else np.zeros(3)

        self.last_forces = AeroForces(
            lift=lift,
            drag=drag,
            angle_of_attack=aoa,
            relative_velocity=rel,
            lift_coefficient=cl,
            drag_coefficient=cd,
        )
        return self.last_forces
