# src/kitesim/utils/io.py
"""
File I/O: YAML configuration, flight logs and state snapshots.

Configuration layout::

    seed: 42
    kite_type: standard
    physics:
      fixed_time_step: 0.008333
      enable_collisions: true
    filter:
      smoothing_factor: 0.15
    kite:
      bridle_connection_point: [0.0, -0.25, 0.0]
    wind:
      base_speed: 5.0
    tether:
      base_line_length: 30.0
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd
import yaml

from kitesim.core.config import (
    FilterConfig,
    PhysicsConfig,
    SimulationConfig,
    config_field_names,
)
from kitesim.dynamics.tether import TetherState
from kitesim.models.kite_types import get_kite_type
from kitesim.models.wind import WindState

TOP_LEVEL_KEYS = {"seed", "kite_type", "physics", "filter", "kite", "wind", "tether"}
KITE_KEYS = {
    "mass", "area", "drag_coefficient", "lift_coefficient", "wingspan",
    "moment_of_inertia", "bridle_connection_point", "line_length",
    "elevation_angle", "operator_position",
}


def save_simulation_history(history: list[dict[str, Any]], filepath: str | Path) -> Path:
    """
    Saves a list of state dictionaries to a CSV file.

    Args:
        history: List of dicts, e.g., [{'t': 0.1, 'altitude': 20.0}, ...]
        filepath: Destination path (e.g., 'results/run1.csv')
    """
    if not history:
        raise ValueError("Simulation history is empty. Nothing to save.")

    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)

    df = pd.DataFrame(history)
    df.to_csv(path, index=False)
    print(f"Simulation results saved to {path.absolute()}")
    return path


def load_flight_log(filepath: str | Path) -> pd.DataFrame:
    """
    Read a CSV written by :class:`kitesim.logger.CSVLogger`.

    Raises
    ------
    ValueError
        If the first column is not the time column ``t``
    """
    df = pd.read_csv(filepath)
    if df.columns.empty or df.columns[0] != "t":
        raise ValueError(f"First column of {filepath} must be time 't'.")
    return df


def _check_keys(section: str, data: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(data) - allowed
    if unknown:
        raise ValueError(
            f"Unknown keys in '{section}': {sorted(unknown)}. "
            f"Valid options: {sorted(allowed)}"
        )


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    data = raw.get(name) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Section '{name}' must be a mapping, got {type(data).__name__}")
    return data


def parse_simulation_config(raw: dict[str, Any]) -> SimulationConfig:
    """
    Build a :class:`SimulationConfig` from a plain dictionary.

    Raises
    ------
    ValueError
        On unknown sections or keys, unknown kite type, or invalid values
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration must be a mapping, got {type(raw).__name__}")
    _check_keys("<root>", raw, TOP_LEVEL_KEYS)

    physics = _section(raw, "physics")
    filt = _section(raw, "filter")
    kite = _section(raw, "kite")
    wind = _section(raw, "wind")
    tether = _section(raw, "tether")

    _check_keys("physics", physics, config_field_names(PhysicsConfig))
    _check_keys("filter", filt, config_field_names(FilterConfig))
    _check_keys("kite", kite, KITE_KEYS)
    _check_keys("wind", wind, config_field_names(WindState))
    _check_keys("tether", tether, config_field_names(TetherState))

    kite_type = str(raw.get("kite_type", "standard"))
    get_kite_type(kite_type)

    seed = raw.get("seed")
    return SimulationConfig(
        physics=PhysicsConfig(**physics),
        filter=FilterConfig(**filt),
        kite_type=kite_type,
        kite=dict(kite),
        wind=dict(wind),
        tether=dict(tether),
        seed=None if seed is None else int(seed),
    )


def load_simulation_config(filepath: str | Path) -> SimulationConfig:
    """
    Load simulation settings from a YAML file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValueError
        If the YAML is malformed or holds unknown keys
    """
    path = Path(filepath)
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
    return parse_simulation_config(raw or {})


def save_snapshot(snapshot: dict[str, Any], filepath: str | Path) -> Path:
    """Write a :meth:`KiteSimulation.snapshot` dictionary as JSON."""
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, indent=2)
    return path


def load_snapshot(filepath: str | Path) -> dict[str, Any]:
    """Read a snapshot written by :func:`save_snapshot`."""
    with open(Path(filepath), "r", encoding="utf-8") as f:
        return json.load(f)


__all__ = [
    "load_flight_log",
    "load_simulation_config",
    "load_snapshot",
    "parse_simulation_config",
    "save_simulation_history",
    "save_snapshot",
]
