"""
Kite simulation orchestrator.

Owns the kite state, wind field, tether and aerodynamic models, advances
them with a fixed-timestep accumulator, and exposes the control surface used
by the host's input layer (line inputs, wind scale, force switches) with
optional logging and automatic output organization.
"""
from __future__ import annotations

import math
from dataclasses import asdict, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from kitesim.core.config import FilterConfig, PhysicsConfig, SimulationConfig
from kitesim.core.events import DiagnosticChannel, DiagnosticKind
from kitesim.core.solver import FixedStepAccumulator
from kitesim.core.telemetry import FlightTelemetry
from kitesim.dynamics.body import KiteState
from kitesim.dynamics.forces import Force, Gravity, GroundContact, Stabilizer, steering_torque
from kitesim.dynamics.tether import TetherModel, TetherState
from kitesim.logger import CSVLogger
from kitesim.models.aerodynamics import AerodynamicModel, AeroForces
from kitesim.models.kite_types import get_kite_type
from kitesim.models.wind import WindField, WindState
from kitesim.utils.io import load_simulation_config, save_simulation_history
from kitesim.utils.validation import validate_non_negative
from kitesim.utils.vector import is_finite

# Default output directory
DEFAULT_OUTPUT_DIR = Path("output")
DEFAULT_FRAME_DT = 1.0 / 60.0


class KiteSimulation:
    """
    Container and orchestrator for the two-line kite simulation.

    Parameters
    ----------
    physics : PhysicsConfig | None
        Stepper and force-stage configuration; copied
    filter_config : FilterConfig | None
        Integration filter of the kite state; copied
    kite_type : str
        Preset key, see :data:`kitesim.models.kite_types.KITE_TYPES`
    kite_params : dict | None
        Keyword overrides for :class:`KiteState`
    wind_params : dict | None
        Keyword arguments for :class:`WindState`
    tether_params : dict | None
        Keyword arguments for :class:`TetherState`
    seed : int | None
        Seed of the wind noise generator
    rng : np.random.Generator | None
        Wind noise generator; takes precedence over ``seed``
    diagnostics : DiagnosticChannel | None
        Channel receiving all recovery events
    simulation_name : str | None
        If given, logging is enabled immediately
    output_dir : Path | str | None
        Base directory for outputs. Defaults to "./output".
    auto_timestamp : bool
        Append a timestamp to the output folder name
    auto_save_plots : bool
        Generate plots at the end of :meth:`run` (logging only)

    Attributes
    ----------
    kite : KiteState
    wind : WindField
    tether : TetherModel
    aero : AerodynamicModel
    telemetry : FlightTelemetry
    t : float
        Simulated time [s]
    is_running : bool
        Idle/running state; ``update`` is a no-op while idle
    force_breakdown : dict[str, NDArray]
        Force contributions of the last sub-step, by source

    Notes
    -----
    **Sub-step order:** line geometry, gravity, aerodynamics, tether,
    stabilizer, apply force, apply torque, ground collision, validity check.

    **Output Organization:**
    When logging is enabled, creates:
        output_dir/
            simulation_name_20260109_101530/
                logs/
                    simulation.csv
                    telemetry.csv
                plots/
                    flight_path.png
                    line_tension.png
                    wind_aoa.png

    Examples
    --------
    >>> sim = KiteSimulation(seed=1)
    >>> sim.set_right_input(1.0)
    >>> sim.update(1 / 60)
    2
    >>> sim.kite.position
    """

    def __init__(
        self,
        physics: PhysicsConfig | None = None,
        filter_config: FilterConfig | None = None,
        kite_type: str = "standard",
        kite_params: dict[str, Any] | None = None,
        wind_params: dict[str, Any] | None = None,
        tether_params: dict[str, Any] | None = None,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        diagnostics: DiagnosticChannel | None = None,
        simulation_name: str | None = None,
        output_dir: Path | str | None = None,
        auto_timestamp: bool = True,
        auto_save_plots: bool = False,
    ) -> None:
        # Copies; the control setters mutate these in place
        self.config = replace(physics) if physics is not None else PhysicsConfig()
        self.filter = replace(filter_config) if filter_config is not None else FilterConfig()
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticChannel()
        self.diagnostics.clock = lambda: self.t
        self.t = 0.0
        self.is_running = True

        self.kite_type = kite_type
        tether_state = TetherState(**(tether_params or {}))
        kite_kwargs = dict(
            line_length=tether_state.base_line_length,
            operator_position=tether_state.operator_position,
        )
        kite_kwargs.update(kite_params or {})
        self.kite = KiteState.from_kite_type(
            get_kite_type(kite_type),
            filter_config=self.filter,
            diagnostics=self.diagnostics,
            **kite_kwargs,
        )
        self.wind = WindField(WindState(**(wind_params or {})), rng=rng, seed=seed)
        self.tether = TetherModel(tether_state, diagnostics=self.diagnostics)
        self.aero = AerodynamicModel()
        self.telemetry = FlightTelemetry()
        self.accumulator = FixedStepAccumulator(self.config, self.diagnostics)
        self._build_force_models()

        self.force_breakdown: dict[str, NDArray[np.float64]] = {}
        self.last_torque = np.zeros(3)

        # Output configuration
        self._simulation_name = simulation_name
        self._output_dir = Path(output_dir) if output_dir else DEFAULT_OUTPUT_DIR
        self._auto_timestamp = auto_timestamp
        self._auto_save_plots = auto_save_plots
        self.output_path: Path | None = None
        self.logger: CSVLogger | None = None

        if simulation_name is not None:
            self.enable_logging(simulation_name)

    @classmethod
    def from_config(
        cls,
        config: SimulationConfig | str | Path,
        **kwargs: Any,
    ) -> KiteSimulation:
        """
        Build a simulation from a :class:`SimulationConfig` or a YAML path.

        ``kwargs`` are passed to the constructor (e.g. ``simulation_name``).
        """
        if not isinstance(config, SimulationConfig):
            config = load_simulation_config(config)
        return cls(
            physics=config.physics,
            filter_config=config.filter,
            kite_type=config.kite_type,
            kite_params=dict(config.kite),
            wind_params=dict(config.wind),
            tether_params=dict(config.tether),
            seed=config.seed,
            **kwargs,
        )

    def _build_force_models(self) -> None:
        self.gravity: Force = Gravity(self.config.gravity)
        self.stabilizer: Force = Stabilizer.from_config(self.config)
        self.ground = GroundContact.from_config(self.config)

    # --- Logging ---

    def enable_logging(self, name: str | None = None, output_dir: Path | str | None = None) -> Path:
        """
        Enable data logging with automatic output organization.

        Creates ``output/<name>_<timestamp>/logs/simulation.csv`` and
        ``plots/``.

        Raises
        ------
        ValueError
            If no simulation name available
        """
        if name is not None:
            self._simulation_name = name
        if output_dir is not None:
            self._output_dir = Path(output_dir)

        if self._simulation_name is None:
            raise ValueError(
                "Simulation name required for logging. "
                "Either pass name to __init__ or to enable_logging()."
            )

        if self._auto_timestamp:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            folder_name = f"{self._simulation_name}_{timestamp}"
        else:
            folder_name = self._simulation_name

        self.output_path = self._output_dir / folder_name

        logs_dir = self.output_path / "logs"
        plots_dir = self.output_path / "plots"
        logs_dir.mkdir(parents=True, exist_ok=True)
        plots_dir.mkdir(parents=True, exist_ok=True)

        self.logger = CSVLogger(str(logs_dir / "simulation.csv"))

        print(f"[KiteSimulation] Logging enabled: {self.output_path}")
        print(f"        Logs: {logs_dir}")
        print(f"        Plots: {plots_dir}")

        return self.output_path

    def disable_logging(self) -> None:
        """Disable logging and close any open log files."""
        if self.logger is not None:
            self.logger.close()
            self.logger = None
            print("[KiteSimulation] Logging disabled")

    # --- Control surface ---

    def set_left_input(self, value: float) -> None:
        self.tether.set_left_input(value)

    def set_right_input(self, value: float) -> None:
        self.tether.set_right_input(value)

    def set_overall_line_length(self, adjustment: float) -> None:
        self.tether.set_overall_line_length(adjustment)

    def set_differential_line_length(self, adjustment: float) -> None:
        self.tether.set_differential_line_length(adjustment)

    def set_wind_speed_scale(self, scale: float) -> None:
        self.wind.set_scale(scale)

    def set_wind_direction(self, direction: ArrayLike) -> None:
        self.wind.set_direction(direction)

    def set_wind_variation(
        self,
        gust_strength: float | None = None,
        gust_frequency: float | None = None,
        turbulence: float | None = None,
    ) -> None:
        self.wind.set_variation(gust_strength, gust_frequency, turbulence)

    def set_time_scale(self, scale: float) -> None:
        validate_non_negative(scale, "time_scale")
        self.config.time_scale = float(scale)

    def set_physics_running(self, running: bool) -> None:
        self.is_running = bool(running)

    def set_force_enabled(self, category: str, enabled: bool) -> None:
        """
        Toggle a force category.

        Raises
        ------
        ValueError
            If ``category`` is not one of gravity, wind, drag, collisions, tether
        """
        self.config.set_enabled(category, enabled)

    def change_kite_type(self, name: str) -> None:
        """Swap to another preset; the current pose is kept."""
        self.kite.set_kite_type(get_kite_type(name))
        self.kite_type = name

    def get_physics_config(self) -> dict[str, Any]:
        """Copy of the physics configuration as a plain dictionary."""
        return asdict(self.config)

    def update_physics_config(self, **changes: Any) -> None:
        """
        Update physics configuration values in place.

        Raises
        ------
        ValueError
            On unknown keys or invalid values; the configuration is left
            unchanged in that case.
        """
        validated = self._validated_physics(changes)
        for f in fields(PhysicsConfig):
            setattr(self.config, f.name, getattr(validated, f.name))
        self._build_force_models()

    def _validated_physics(self, changes: dict[str, Any]) -> PhysicsConfig:
        known = {f.name for f in fields(PhysicsConfig)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(
                f"Unknown physics config keys: {sorted(unknown)}. "
                f"Valid options: {sorted(known)}"
            )
        return replace(self.config, **changes)

    def reset(self) -> None:
        """
        Return the kite to its launch pose.

        Clears the accumulator, telemetry and simulated time. Wind and line
        inputs are kept.
        """
        self.kite.reset()
        self.accumulator.accumulator = 0.0
        self.telemetry.reset()
        self.t = 0.0
        self.force_breakdown.clear()

    # --- Read accessors ---

    @property
    def wind_state(self) -> WindState:
        return self.wind.state

    def line_endpoints(self) -> dict[str, NDArray[np.float64]]:
        """Operator hand points and bridle point for drawing the lines."""
        return self.tether.line_endpoints(self.kite)

    # --- Fixed-Step Integration ---

    def update(self, delta_time: float) -> int:
        """
        Advance by one host frame.

        Parameters
        ----------
        delta_time : float
            Host frame time [s]

        Returns
        -------
        int
            Number of fixed sub-steps executed (0 while idle)

        Notes
        -----
        The wind is updated once per frame, before the sub-steps, with the
        clamped and scaled frame time. Nothing is raised to the caller; bad
        frame times and numerical trouble are reported on ``diagnostics``.
        """
        if not self.is_running:
            return 0

        cfg = self.config
        dt = float(delta_time)
        if math.isfinite(dt) and dt >= 0.0:
            self.wind.update(min(dt, cfg.max_delta_time) * cfg.time_scale)

        steps = self.accumulator.advance(dt, self.step)
        self.telemetry.update(
            self.kite,
            self.wind.state,
            steps * cfg.fixed_time_step,
            aero=self.aero.last_forces,
            tether=self.tether.last_result,
        )
        return steps

    def step(self, dt: float | None = None) -> None:
        """
        Advance by one fixed sub-step.

        Parameters
        ----------
        dt : float | None
            Sub-step length [s]; ``fixed_time_step`` if None.

        Notes
        -----
        Performs:
        1. Refresh line geometry
        2. Sum gravity, aerodynamics, tether and stabilizer forces
        3. Apply the force, then the steering torque
        4. Ground collision response
        5. Reset the kite if the force or state is non-finite
        6. Log state (if enabled)
        """
        cfg = self.config
        h = cfg.fixed_time_step if dt is None else float(dt)
        kite = self.kite
        self.force_breakdown.clear()

        # 1) Line geometry
        self.tether.compute_line_geometry()

        # 2) Forces
        total = np.zeros(3, dtype=np.float64)
        if cfg.enable_gravity:
            self.force_breakdown["gravity"] = self.gravity.compute(kite, self.t)
            total += self.force_breakdown["gravity"]

        if cfg.enable_wind:
            aero = self.aero.compute_forces(kite, self.wind.state, include_drag=cfg.enable_drag)
            self.force_breakdown["lift"] = aero.lift
            self.force_breakdown["drag"] = aero.drag
            total += aero.total
        else:
            self.aero.last_forces = AeroForces()

        tether_torque = np.zeros(3, dtype=np.float64)
        if cfg.enable_tether:
            result = self.tether.compute_force_and_torque(kite)
            self.force_breakdown["tether"] = result.force
            total += result.force
            tether_torque = result.torque

        self.force_breakdown["stabilizer"] = self.stabilizer.compute(kite, self.t)
        total += self.force_breakdown["stabilizer"]
        self.force_breakdown["total"] = total

        # 3) Integrate
        kite.apply_force(total, h)
        self.last_torque = steering_torque(tether_torque, kite, cfg)
        kite.apply_torque(self.last_torque, h)

        # 4) Ground
        if cfg.enable_collisions:
            self.ground.resolve(kite, h)

        # 5) Validity
        if not (is_finite(total) and kite.is_valid()):
            self.diagnostics.emit(
                DiagnosticKind.STATE_RESET,
                "Non-finite force or kite state after sub-step; resetting to launch pose",
                force=total.copy(),
            )
            kite.reset()

        self.t += h

        # 6) Log
        if self.logger is not None:
            self.logger.log(self)

    def run(
        self,
        duration: float,
        frame_dt: float = DEFAULT_FRAME_DT,
        log_interval: float = 1.0,
    ) -> None:
        """
        Drive the simulation with constant host frames.

        Parameters
        ----------
        duration : float
            Wall-clock duration to emulate [s]
        frame_dt : float
            Host frame time [s]
        log_interval : float
            Interval [s] for printing progress to terminal. Set to <= 0 to disable.
        """
        if not frame_dt > 0:
            raise ValueError(f"frame_dt must be positive, got {frame_dt}")
        n_frames = int(round(float(duration) / frame_dt))
        last_log_time = self.t

        if self.logger is not None:
            self.logger.log(self)

        print(
            f"[KiteSimulation] Starting: {duration}s duration, "
            f"frame_dt={frame_dt:.4f}s, step={self.config.fixed_time_step:.5f}s"
        )

        try:
            for _ in range(n_frames):
                self.update(frame_dt)

                if log_interval > 0 and (self.t - last_log_time) >= log_interval:
                    k = self.kite
                    print(
                        f"[KiteSimulation] t={self.t:6.2f}s | altitude={k.altitude:7.2f}m, "
                        f"speed={k.speed:6.2f}m/s, wind={self.wind.state.current_speed:5.2f}m/s"
                    )
                    last_log_time = self.t
        finally:
            if self.logger:
                self.logger.flush()
                if self.telemetry.history:
                    self.save_telemetry()

            if self._auto_save_plots and self.logger is not None:
                print("[KiteSimulation] Auto-generating plots...")
                self.save_plots()

        s = self.telemetry.sample
        print(
            f"[KiteSimulation] Finished at t={self.t:.3f}s | "
            f"loops CW={s.loops_cw}, CCW={s.loops_ccw}"
        )

    # --- Snapshot ---

    def snapshot(self) -> dict[str, Any]:
        """
        Complete dynamic state as JSON-compatible data.

        Restoring it into a simulation with the same configuration and
        continuing with the same frame times reproduces the uninterrupted run
        exactly, wind noise included.
        """
        physics = asdict(self.config)
        physics["restoring_torque"] = list(physics["restoring_torque"])
        return {
            "t": self.t,
            "kite_type": self.kite_type,
            "is_running": self.is_running,
            "accumulator": self.accumulator.accumulator,
            "physics": physics,
            "kite": self.kite.snapshot(),
            "wind": self.wind.snapshot(),
            "tether": self.tether.snapshot(),
        }

    def restore(self, data: dict[str, Any]) -> None:
        """
        Load a :meth:`snapshot`.

        Raises
        ------
        ValueError
            If the snapshot holds malformed or non-finite values. The
            simulation is left unchanged in that case.
        """
        if "kite_type" in data:
            get_kite_type(data["kite_type"])
        if "physics" in data:
            self._validated_physics(data["physics"])
        KiteState._parse_snapshot(data.get("kite", {}))
        t = float(data.get("t", self.t))
        accumulator = float(data.get("accumulator", 0.0))

        previous = self.snapshot()
        try:
            self._apply_snapshot(data)
        except (ValueError, TypeError, KeyError):
            self._apply_snapshot(previous)
            raise
        self.t = t
        self.accumulator.accumulator = accumulator
        self.is_running = bool(data.get("is_running", self.is_running))

    def _apply_snapshot(self, data: dict[str, Any]) -> None:
        if "kite_type" in data:
            self.kite_type = data["kite_type"]
        if "physics" in data:
            self.update_physics_config(**data["physics"])
        self.kite.restore(data.get("kite", {}))
        self.wind.restore(data.get("wind", {}))
        self.tether.restore(data.get("tether", {}))

    # --- Telemetry export ---

    def save_telemetry(self, filepath: Path | str | None = None) -> Path:
        """
        Write the per-frame telemetry history to CSV.

        Parameters
        ----------
        filepath : Path | str | None
            Destination; defaults to ``<output>/logs/telemetry.csv`` when
            logging is enabled.

        Raises
        ------
        RuntimeError
            If no path is given and logging is not enabled
        ValueError
            If no frames have been recorded yet
        """
        if filepath is None:
            if self.output_path is None:
                raise RuntimeError(
                    "No telemetry path given and logging is not enabled."
                )
            filepath = self.output_path / "logs" / "telemetry.csv"
        return save_simulation_history(list(self.telemetry.history), filepath)

    # --- Plotting ---

    def save_plots(self, show: bool = False) -> None:
        """
        Generate and save standard analysis plots from logged data.

        Raises
        ------
        RuntimeError
            If logging is not enabled or no data logged yet
        """
        if self.logger is None or self.output_path is None:
            raise RuntimeError(
                "Logging must be enabled to save plots. Call enable_logging()."
            )

        import matplotlib.pyplot as plt

        from kitesim.visualization.plotting import (
            plot_flight_path,
            plot_line_tension,
            plot_wind_and_aoa,
        )

        self.logger.flush()
        csv_path = self.output_path / "logs" / "simulation.csv"
        plots_dir = self.output_path / "plots"

        if not csv_path.exists():
            raise RuntimeError(
                f"No log file found at {csv_path}. "
                "Has the simulation been run yet?"
            )

        operator = tuple(self.tether.state.operator_position)
        figures = [
            plot_flight_path(
                str(csv_path),
                save_path=str(plots_dir / "flight_path.png"),
                show=show,
                operator_position=operator,
            ),
            plot_line_tension(str(csv_path), save_path=str(plots_dir / "line_tension.png"), show=show),
            plot_wind_and_aoa(str(csv_path), save_path=str(plots_dir / "wind_aoa.png"), show=show),
        ]
        for fig in figures:
            plt.close(fig)

        print(f"[KiteSimulation] Plots saved to: {plots_dir}")
