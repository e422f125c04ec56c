"""
Two-line tether and bridle model.

Each control line is an ideal massless spring between one of the operator's
hands and the kite's single bridle connection point. Lines only pull: a slack
line carries no force. Asymmetric line tension is the sole steering input
and enters as an explicit yaw torque.

Force law per line:
    effective = nominal * (1 - 0.3 * input)
    strain    = max(0, distance / effective - 1)
    tension   = k * strain * (1 + strain)
    force     = tension**0.8 * 5.0 * direction(bridle -> hand)

The net force is damped by ``-c * v`` and magnitude-clamped.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from kitesim.core.events import DiagnosticChannel, DiagnosticKind
from kitesim.utils.validation import clamp, validate_non_negative, validate_positive
from kitesim.utils.vector import UP, as_vector, clamp_magnitude, normalize

# Line geometry
OVERALL_LENGTH_RANGE = 0.5  # ±50% of the base length
DIFFERENTIAL_LENGTH_RANGE = 0.2  # ±20% split between lines
INPUT_SHORTENING = 0.3  # full input shortens a line by 30%

# Operator hands relative to the operator position [m]
LEFT_HAND_OFFSET = (-0.5, 1.0, 0.0)
RIGHT_HAND_OFFSET = (0.5, 1.0, 0.0)

EPSILON_DIRECTION = 1e-4


@dataclass
class TetherState:
    """
    Line configuration and control inputs.

    Attributes
    ----------
    base_line_length : float
        Nominal line length before adjustments [m]
    left_line_length, right_line_length : float
        Derived per-line nominal lengths [m]
    line_elasticity : float
        Spring coefficient ``k`` of the tension law [N]
    operator_position : NDArray[np.float64]
        Fixed operator ground position [m]
    left_input, right_input : float
        Steering inputs (0-1); higher pulls the line in
    overall_length_adjustment : float
        -1 (shorter) to 1 (longer)
    differential_length_adjustment : float
        -1 (right shorter) to 1 (left shorter)
    """
    base_line_length: float = 30.0
    left_line_length: float = 30.0
    right_line_length: float = 30.0
    line_elasticity: float = 0.05
    operator_position: NDArray[np.float64] = field(
        default_factory=lambda: np.array([0.0, 0.0, -10.0])
    )
    left_input: float = 0.5
    right_input: float = 0.5
    overall_length_adjustment: float = 0.0
    differential_length_adjustment: float = 0.0

    def __post_init__(self) -> None:
        validate_positive(self.base_line_length, "base_line_length")
        validate_non_negative(self.line_elasticity, "line_elasticity")
        self.operator_position = as_vector(self.operator_position)
        self.left_input = clamp(self.left_input, 0.0, 1.0)
        self.right_input = clamp(self.right_input, 0.0, 1.0)
        self.overall_length_adjustment = clamp(self.overall_length_adjustment, -1.0, 1.0)
        self.differential_length_adjustment = clamp(
            self.differential_length_adjustment, -1.0, 1.0
        )


@dataclass
class TetherResult:
    """
    Output of :meth:`TetherModel.compute_force_and_torque`.

    ``valid`` is False when a degenerate or non-finite geometry forced a
    zero result.
    """
    force: NDArray[np.float64]
    torque: NDArray[np.float64]
    left_tension: float = 0.0
    right_tension: float = 0.0
    left_distance: float = 0.0
    right_distance: float = 0.0
    left_hand: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    right_hand: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    bridle_point: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    valid: bool = True

    @classmethod
    def zero(cls) -> TetherResult:
        return cls(force=np.zeros(3), torque=np.zeros(3), valid=False)


class TetherModel:
    """
    Computes line tension, net pull and steering torque on the kite.

    Parameters
    ----------
    state : TetherState | None
        Line configuration; a default one is created if None.
    force_scale : float
        Multiplier of the ``tension**0.8`` force response [-]
    force_exponent : float
        Exponent of the tension-to-force response [-]
    max_force : float
        Net force magnitude clamp [N]
    damping : float
        Velocity damping subtracted from the net force [N·s/m]
    steering_sensitivity : float
        Yaw torque per unit of tension difference [m]
    ground_boost_height : float
        Below this bridle altitude the tension is boosted, up to 2x at
        the ground [m]. Set to 0 to disable.
    diagnostics : DiagnosticChannel | None
        Channel for degenerate geometry reports.

    Examples
    --------
    >>> tether = TetherModel()
    >>> tether.set_left_input(1.0)
    >>> tether.compute_line_geometry()
    >>> result = tether.compute_force_and_torque(kite)
    """

    def __init__(
        self,
        state: TetherState | None = None,
        force_scale: float = 5.0,
        force_exponent: float = 0.8,
        max_force: float = 20.0,
        damping: float = 0.8,
        steering_sensitivity: float = 0.5,
        ground_boost_height: float = 5.0,
        diagnostics: DiagnosticChannel | None = None,
    ) -> None:
        validate_positive(max_force, "max_force")
        validate_non_negative(damping, "damping")
        self.state = state if state is not None else TetherState()
        self.force_scale = float(force_scale)
        self.force_exponent = float(force_exponent)
        self.max_force = float(max_force)
        self.damping = float(damping)
        self.steering_sensitivity = float(steering_sensitivity)
        self.ground_boost_height = float(ground_boost_height)
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticChannel()
        self.last_result: TetherResult | None = None
        self.compute_line_geometry()

    # -------------------------------------------------------------------------
    # Control inputs
    # -------------------------------------------------------------------------

    def set_left_input(self, value: float) -> None:
        self.state.left_input = clamp(value, 0.0, 1.0)

    def set_right_input(self, value: float) -> None:
        self.state.right_input = clamp(value, 0.0, 1.0)

    def set_overall_line_length(self, adjustment: float) -> None:
        self.state.overall_length_adjustment = clamp(adjustment, -1.0, 1.0)
        self.compute_line_geometry()

    def set_differential_line_length(self, adjustment: float) -> None:
        self.state.differential_length_adjustment = clamp(adjustment, -1.0, 1.0)
        self.compute_line_geometry()

    # -------------------------------------------------------------------------
    # Geometry
    # -------------------------------------------------------------------------

    def compute_line_geometry(self) -> tuple[float, float]:
        """
        Derive per-line nominal lengths from the length adjustments.

        Returns
        -------
        tuple[float, float]
            ``(left_line_length, right_line_length)`` [m]
        """
        s = self.state
        base = s.base_line_length * (1.0 + s.overall_length_adjustment * OVERALL_LENGTH_RANGE)
        diff = s.differential_length_adjustment * DIFFERENTIAL_LENGTH_RANGE
        s.left_line_length = base * (1.0 - diff)
        s.right_line_length = base * (1.0 + diff)
        return s.left_line_length, s.right_line_length

    def hand_points(self) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
        """World positions of the operator's left and right hands [m]."""
        op = self.state.operator_position
        return op + np.asarray(LEFT_HAND_OFFSET), op + np.asarray(RIGHT_HAND_OFFSET)

    def line_endpoints(self, kite: Any) -> dict[str, NDArray[np.float64]]:
        """Hand points and bridle point for drawing the lines."""
        left, right = self.hand_points()
        return {"left_hand": left, "right_hand": right, "bridle": kite.bridle_point()}

    # -------------------------------------------------------------------------
    # Tension
    # -------------------------------------------------------------------------

    def compute_tension(self, distance: float, nominal_length: float, line_input: float) -> float:
        """
        Tension of one line.

        Parameters
        ----------
        distance : float
            Current hand-to-bridle distance [m]
        nominal_length : float
            Line length after adjustments [m]
        line_input : float
            Steering input (0-1); shortens the line by up to 30%

        Returns
        -------
        float
            Non-negative tension [N]; zero while the line is slack.
        """
        effective = nominal_length * (1.0 - clamp(line_input, 0.0, 1.0) * INPUT_SHORTENING)
        if effective <= 0:
            return 0.0
        strain = max(0.0, distance / effective - 1.0)
        return self.state.line_elasticity * strain * (1.0 + strain)

    def _force_response(self, tension: float) -> float:
        return tension ** self.force_exponent * self.force_scale if tension > 0 else 0.0

    def _ground_boost(self, altitude: float) -> float:
        h = self.ground_boost_height
        if h <= 0:
            return 1.0
        return max(1.0, 2.0 * (1.0 - min(1.0, altitude / h)))

    # -------------------------------------------------------------------------
    # Force and torque
    # -------------------------------------------------------------------------

    def compute_force_and_torque(self, kite: Any) -> TetherResult:
        """
        Net tether force and steering torque at the bridle point.

        Parameters
        ----------
        kite : KiteState
            Read only: position, velocity and bridle connection point.

        Returns
        -------
        TetherResult
            Zero force/torque with ``valid=False`` if any intermediate value
            is non-finite.

        Notes
        -----
        ``torque = arm x pull + (0, (T_right - T_left) * sensitivity, 0)``
        where ``pull`` is the undamped sum of the line forces. Positive yaw
        turns the kite toward the right-hand (+X) line.
        """
        s = self.state
        bridle = kite.bridle_point()
        if not np.all(np.isfinite(bridle)) or not np.all(np.isfinite(kite.velocity)):
            self.diagnostics.emit(
                DiagnosticKind.TETHER_DEGENERATE,
                f"Non-finite kite position {kite.position}; tether force zeroed",
            )
            self.last_result = TetherResult.zero()
            return self.last_result

        left_hand, right_hand = self.hand_points()
        left_vec = left_hand - bridle
        right_vec = right_hand - bridle
        left_distance = float(np.linalg.norm(left_vec))
        right_distance = float(np.linalg.norm(right_vec))

        boost = self._ground_boost(float(bridle[1]))
        left_tension = self.compute_tension(left_distance, s.left_line_length, s.left_input) * boost
        right_tension = self.compute_tension(right_distance, s.right_line_length, s.right_input) * boost

        left_dir = _direction(left_vec)
        right_dir = _direction(right_vec)
        pull = (left_dir * self._force_response(left_tension)
                + right_dir * self._force_response(right_tension))

        arm = kite.bridle_connection_point
        torque = np.cross(arm, pull)
        torque[1] += (right_tension - left_tension) * self.steering_sensitivity

        force = pull - kite.velocity * self.damping
        force = clamp_magnitude(force, self.max_force)

        if not (np.all(np.isfinite(force)) and np.all(np.isfinite(torque))):
            self.diagnostics.emit(
                DiagnosticKind.TETHER_DEGENERATE,
                "Non-finite tether force; zeroed",
                left_tension=left_tension,
                right_tension=right_tension,
            )
            self.last_result = TetherResult.zero()
            return self.last_result

        self.last_result = TetherResult(
            force=force,
            torque=torque,
            left_tension=left_tension,
            right_tension=right_tension,
            left_distance=left_distance,
            right_distance=right_distance,
            left_hand=left_hand,
            right_hand=right_hand,
            bridle_point=bridle,
        )
        return self.last_result

    def snapshot(self) -> dict[str, Any]:
        s = self.state
        return {
            "left_input": s.left_input,
            "right_input": s.right_input,
            "overall_length_adjustment": s.overall_length_adjustment,
            "differential_length_adjustment": s.differential_length_adjustment,
        }

    def restore(self, data: dict[str, Any]) -> None:
        if "left_input" in data:
            self.set_left_input(data["left_input"])
        if "right_input" in data:
            self.set_right_input(data["right_input"])
        if "overall_length_adjustment" in data:
            self.set_overall_line_length(data["overall_length_adjustment"])
        if "differential_length_adjustment" in data:
            self.set_differential_line_length(data["differential_length_adjustment"])
        self.compute_line_geometry()


def _direction(v: NDArray[np.float64]) -> NDArray[np.float64]:
    """Unit vector along ``v``; straight up when ``v`` is degenerate."""
    if np.linalg.norm(v) < EPSILON_DIRECTION:
        return UP.copy()
    return normalize(v)
