"""
CSV logging for simulation state with performance optimization.

Buffers data in memory and writes in batches to minimize I/O overhead.
Implements context manager protocol for safe resource handling.
"""
from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, TextIO

import numpy as np

AXES = ("x", "y", "z")
ANGLES = ("pitch", "yaw", "roll")

VALID_FIELDS = ("p", "v", "r", "w", "wind", "tether", "aero")
DEFAULT_FIELDS = list(VALID_FIELDS)


def _field_columns(sim: Any, field: str) -> list[tuple[str, float]]:
    """(column name, value) pairs for one logged field."""
    kite = sim.kite
    if field == "p":
        return [(f"kite.p_{a}", v) for a, v in zip(AXES, kite.position)]
    if field == "v":
        return [(f"kite.v_{a}", v) for a, v in zip(AXES, kite.velocity)]
    if field == "r":
        return [(f"kite.r_{a}", v) for a, v in zip(ANGLES, kite.rotation)]
    if field == "w":
        return [(f"kite.w_{a}", v) for a, v in zip(ANGLES, kite.angular_velocity)]
    if field == "wind":
        ws = sim.wind.state
        cols = [("wind.speed", ws.current_speed)]
        cols += [(f"wind.v_{a}", v) for a, v in zip(AXES, ws.velocity)]
        return cols
    if field == "tether":
        res = sim.tether.last_result
        force = res.force if res is not None else np.zeros(3)
        cols = [
            ("tether.left_tension", res.left_tension if res is not None else 0.0),
            ("tether.right_tension", res.right_tension if res is not None else 0.0),
        ]
        cols += [(f"tether.f_{a}", v) for a, v in zip(AXES, force)]
        return cols
    if field == "aero":
        af = sim.aero.last_forces
        cols = [("aero.aoa", af.angle_of_attack)]
        cols += [(f"aero.lift_{a}", v) for a, v in zip(AXES, af.lift)]
        cols += [(f"aero.drag_{a}", v) for a, v in zip(AXES, af.drag)]
        return cols
    raise ValueError(f"Invalid field: {field}")


class CSVLogger:
    """
    Buffered CSV logger for kite simulation data.

    Parameters
    ----------
    filepath : str | Path
        Output CSV file path
    buffer_size : int
        Number of rows to buffer before writing. Higher = fewer writes but more memory.
    fields : list[str] | None
        Groups of columns to log. Default: all of
        "p" (position), "v" (velocity), "r" (rotation), "w" (angular velocity),
        "wind" (speed and velocity), "tether" (tensions and net force),
        "aero" (angle of attack, lift, drag)

    Notes
    -----
    1. Context manager (recommended):
    >>> with CSVLogger("output.csv") as logger:
    ...     for _ in range(num_frames):
    ...         sim.update(1 / 60)
    ...         logger.log(sim)

    2. Manual management:
    >>> logger = CSVLogger("output.csv", fields=["p", "v"])
    >>> logger.log(sim)
    >>> logger.close()  # Important!

    3. Auto-managed:
    >>> sim.enable_logging("session")
    >>> sim.run(duration=10.0)
    """

    def __init__(
        self,
        filepath: str | Path,
        buffer_size: int = 1000,
        fields: list[str] | None = None
    ) -> None:
        self.filepath = Path(filepath)
        self.buffer_size = buffer_size
        self.fields = fields if fields is not None else list(DEFAULT_FIELDS)

        invalid = set(self.fields) - set(VALID_FIELDS)
        if invalid:
            raise ValueError(
                f"Invalid fields: {invalid}. Valid options: {set(VALID_FIELDS)}"
            )

        self._buffer: list[list[str]] = []
        self._file: TextIO | None = None
        self._writer: Any = None  # csv.writer is a function, not a type
        self._header_written = False

        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    def __enter__(self) -> CSVLogger:
        """Open file for writing."""
        self._file = open(self.filepath, "w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close file, flushing any remaining data."""
        self.close()

    def _columns(self, sim: Any) -> list[tuple[str, float]]:
        cols: list[tuple[str, float]] = []
        for field in self.fields:
            cols.extend(_field_columns(sim, field))
        return cols

    def _write_header(self, sim: Any) -> None:
        hdr = ["t"] + [name for name, _ in self._columns(sim)]
        if self._writer:
            self._writer.writerow(hdr)
            if self._file:
                self._file.flush()
        self._header_written = True

    def log(self, sim: Any) -> None:
        """
        Log current simulation state to buffer.

        Automatically opens the file on first call if not using the context
        manager. Writes to disk when the buffer is full.
        """
        if self._file is None:
            self.__enter__()

        if not self._header_written:
            self._write_header(sim)

        row = [f"{sim.t:.10f}"]
        row.extend(f"{float(v):.10e}" for _, v in self._columns(sim))
        self._buffer.append(row)

        if len(self._buffer) >= self.buffer_size:
            self.flush()

    def flush(self) -> None:
        """Write buffered data to disk and clear buffer."""
        if self._writer and self._buffer:
            self._writer.writerows(self._buffer)
            if self._file:
                self._file.flush()
            self._buffer.clear()

    def close(self) -> None:
        """Flush remaining data and close file."""
        self.flush()
        if self._file:
            self._file.close()
            self._file = None
            self._writer = None
