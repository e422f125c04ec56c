"""
Time-varying wind field.

Wind speed is the base speed modulated by a sinusoidal gust, additive random
turbulence and a user scale factor. Direction is the base direction with a
small random wobble. The random source is an injected
``numpy.random.Generator``; with ``turbulence = 0`` the field is fully
deterministic and the gust can be checked against its closed form.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from kitesim.utils.validation import clamp, validate_non_negative
from kitesim.utils.vector import as_vector, normalize

# Floor on current speed as a fraction of base speed
MIN_SPEED_FRACTION = 0.1
# Direction wobble per unit of turbulence
DIRECTION_JITTER = 0.1


@dataclass
class WindState:
    """
    Wind parameters and current values.

    Attributes
    ----------
    base_speed : float
        Mean wind speed [m/s]
    base_direction : NDArray[np.float64]
        Unit vector the wind blows toward
    current_speed : float
        Speed after gust/turbulence/user scale [m/s]
    current_direction : NDArray[np.float64]
        Unit vector after turbulence wobble
    gust_strength : float
        Gust amplitude as a fraction of base speed [-]
    gust_frequency : float
        Angular frequency of the gust oscillation [rad/s]
    turbulence : float
        Random variation amplitude (0-1)
    user_scale : float
        Control-layer speed multiplier (0-1)
    clock : float
        Wind clock [s], advanced by ``WindField.update``
    """
    base_speed: float = 5.0
    base_direction: NDArray[np.float64] = field(
        default_factory=lambda: np.array([0.0, 0.0, 1.0])
    )
    current_speed: float = 5.0
    current_direction: NDArray[np.float64] = field(
        default_factory=lambda: np.array([0.0, 0.0, 1.0])
    )
    gust_strength: float = 0.2
    gust_frequency: float = 0.2
    turbulence: float = 0.1
    user_scale: float = 1.0
    clock: float = 0.0

    def __post_init__(self) -> None:
        validate_non_negative(self.base_speed, "base_speed")
        validate_non_negative(self.turbulence, "turbulence")
        self.base_direction = _unit(self.base_direction, "base_direction")
        self.current_direction = _unit(self.current_direction, "current_direction")
        self.user_scale = clamp(self.user_scale, 0.0, 1.0)

    @property
    def floor_speed(self) -> float:
        """Lowest speed the field will report [m/s]."""
        return MIN_SPEED_FRACTION * self.base_speed

    @property
    def velocity(self) -> NDArray[np.float64]:
        """Current wind velocity vector [m/s]."""
        return self.current_direction * self.current_speed


class WindField:
    """
    Advances a :class:`WindState` once per host frame.

    Parameters
    ----------
    state : WindState | None
        State to drive. A default state is created if None.
    rng : np.random.Generator | None
        Noise source for turbulence. Takes precedence over ``seed``.
    seed : int | None
        Seed for ``np.random.default_rng`` when ``rng`` is not given.

    Examples
    --------
    >>> wind = WindField(seed=42)
    >>> wind.set_scale(0.5)
    >>> wind.update(1 / 60)
    >>> v = wind.state.velocity
    """

    def __init__(
        self,
        state: WindState | None = None,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> None:
        self.state = state if state is not None else WindState()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.last_gust_factor = 0.0
        self.last_turbulence_factor = 0.0

    def update(self, dt: float) -> None:
        """
        Advance the wind clock and recompute current speed and direction.

        ``speed = max(0.1 * base, base * (1 + gust + turbulence) * user_scale)``
        where ``gust = sin(clock * f) * gust_strength`` and ``turbulence`` is
        uniform in ``[-turbulence / 2, turbulence / 2]``.
        """
        s = self.state
        s.clock += float(dt)

        gust = np.sin(s.clock * s.gust_frequency) * s.gust_strength
        turbulence = (self.rng.random() - 0.5) * s.turbulence
        self.last_gust_factor = float(gust)
        self.last_turbulence_factor = float(turbulence)

        variation = 1.0 + gust + turbulence
        s.current_speed = float(max(s.floor_speed, s.base_speed * variation * s.user_scale))

        jitter = (self.rng.random(3) - 0.5) * (s.turbulence * DIRECTION_JITTER)
        direction = normalize(s.base_direction + jitter)
        if not np.any(direction):
            direction = s.base_direction.copy()
        s.current_direction = direction

    def set_scale(self, scale: float) -> None:
        """Set the user wind multiplier, clamped to [0, 1]."""
        self.state.user_scale = clamp(scale, 0.0, 1.0)

    def set_direction(self, direction: ArrayLike) -> None:
        """
        Set base (and current) direction.

        Raises
        ------
        ValueError
            If ``direction`` has no usable length
        """
        unit = _unit(direction, "wind direction")
        self.state.base_direction = unit
        self.state.current_direction = unit.copy()

    def set_variation(
        self,
        gust_strength: float | None = None,
        gust_frequency: float | None = None,
        turbulence: float | None = None,
    ) -> None:
        """Update gust and turbulence parameters; ``None`` leaves a value unchanged."""
        if gust_strength is not None:
            self.state.gust_strength = float(gust_strength)
        if gust_frequency is not None:
            self.state.gust_frequency = float(gust_frequency)
        if turbulence is not None:
            validate_non_negative(turbulence, "turbulence")
            self.state.turbulence = float(turbulence)

    def snapshot(self) -> dict[str, Any]:
        s = self.state
        return {
            "base_speed": s.base_speed,
            "base_direction": s.base_direction.tolist(),
            "current_speed": s.current_speed,
            "current_direction": s.current_direction.tolist(),
            "gust_strength": s.gust_strength,
            "gust_frequency": s.gust_frequency,
            "turbulence": s.turbulence,
            "user_scale": s.user_scale,
            "clock": s.clock,
            "rng_state": self.rng.bit_generator.state,
        }

    def restore(self, data: dict[str, Any]) -> None:
        s = self.state
        for key in ("base_speed", "current_speed", "gust_strength",
                    "gust_frequency", "turbulence", "user_scale", "clock"):
            if key in data:
                setattr(s, key, float(data[key]))
        if "base_direction" in data:
            s.base_direction = _unit(data["base_direction"], "base_direction")
        if "current_direction" in data:
            s.current_direction = as_vector(data["current_direction"])
        if "rng_state" in data:
            self.rng.bit_generator.state = data["rng_state"]


def _unit(v: ArrayLike, name: str) -> NDArray[np.float64]:
    unit = normalize(as_vector(v))
    if not np.any(unit):
        raise ValueError(f"{name} must be a non-zero finite vector, got {v}")
    return unit
