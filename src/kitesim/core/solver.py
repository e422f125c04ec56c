"""
Fixed-timestep accumulator loop.

Host frames arrive with irregular ``delta_time``. The accumulator converts
them into a whole number of fixed sub-steps, carrying the remainder over to
the next frame, and bounds the work done per frame so a stalled host cannot
trigger a spiral of death.
"""
from __future__ import annotations

import math
from collections.abc import Callable

from kitesim.core.config import PhysicsConfig
from kitesim.core.events import DiagnosticChannel, DiagnosticKind


class FixedStepAccumulator:
    """
    Clamped accumulator driving a fixed-step callback.

    Parameters
    ----------
    config : PhysicsConfig
        Read on every call (``fixed_time_step``, ``max_delta_time``,
        ``max_substeps``, ``time_scale``), so runtime config changes apply
        from the next frame.
    diagnostics : DiagnosticChannel | None
        Receives ``ACCUMULATOR_OVERLOAD`` and ``INVALID_TIMESTEP`` events.

    Attributes
    ----------
    accumulator : float
        Scaled time not yet consumed by sub-steps [s]. Always in
        ``[0, fixed_time_step)`` after a call that did not overload.
    total_substeps : int
        Sub-steps executed since construction or :meth:`reset`
    overload_count : int
        Number of frames that hit ``max_substeps`` and were drained

    Examples
    --------
    >>> acc = FixedStepAccumulator(PhysicsConfig())
    >>> acc.advance(1 / 60, lambda dt: None)
    2
    """

    def __init__(
        self,
        config: PhysicsConfig,
        diagnostics: DiagnosticChannel | None = None,
    ) -> None:
        self.config = config
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticChannel()
        self.accumulator = 0.0
        self.total_substeps = 0
        self.overload_count = 0

    def reset(self) -> None:
        self.accumulator = 0.0
        self.total_substeps = 0
        self.overload_count = 0

    def advance(self, delta_time: float, step: Callable[[float], None]) -> int:
        """
        Consume one host frame.

        Parameters
        ----------
        delta_time : float
            Host frame time [s]. Clamped to ``max_delta_time`` and then
            multiplied by ``time_scale``.
        step : Callable[[float], None]
            Called once per sub-step with ``fixed_time_step``.

        Returns
        -------
        int
            Number of sub-steps executed (``<= max_substeps``)

        Notes
        -----
        If the sub-step bound is reached with more than one step still
        pending, the accumulator is drained to exactly zero and an
        ``ACCUMULATOR_OVERLOAD`` diagnostic is emitted. Simulated time then
        lags wall time instead of the frame taking ever longer.
        """
        cfg = self.config
        dt_in = float(delta_time)
        if not math.isfinite(dt_in) or dt_in < 0.0:
            self.diagnostics.emit(
                DiagnosticKind.INVALID_TIMESTEP,
                f"Ignored invalid frame time {delta_time}",
                delta_time=dt_in,
            )
            return 0

        h = cfg.fixed_time_step
        self.accumulator += min(dt_in, cfg.max_delta_time) * cfg.time_scale

        steps = 0
        while self.accumulator >= h and steps < cfg.max_substeps:
            step(h)
            self.accumulator -= h
            steps += 1

        self.total_substeps += steps

        if steps >= cfg.max_substeps and self.accumulator > h:
            dropped = self.accumulator
            self.accumulator = 0.0
            self.overload_count += 1
            self.diagnostics.emit(
                DiagnosticKind.ACCUMULATOR_OVERLOAD,
                f"Physics overloaded, drained {dropped:.4f}s from the accumulator",
                dropped=dropped,
                substeps=steps,
            )

        return steps
