from __future__ import annotations
import os
import csv
from typing import Dict, Tuple, List, Iterable
import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401  (registers 3D projection)


def _load_csv(filepath: str) -> Tuple[np.ndarray, Dict[str, np.ndarray], List[str]]:
    """
    Load a CSV produced by CSVLogger.

    Returns
    -------
    t : (N,) array
        Time vector.
    cols : dict[str, np.ndarray]
        Mapping column_name -> (N,) array.
    headers : list[str]
        Column headers in order (first one should be 't').
    """
    with open(filepath, "r", newline="") as f:
        reader = csv.reader(f)
        headers = next(reader)
    data = np.loadtxt(filepath, delimiter=",", skiprows=1, dtype=float)
    if data.ndim == 1:  # single row edge case
        data = data[None, :]
    if headers[0] != "t":
        raise ValueError("First column must be time 't'.")
    cols: Dict[str, np.ndarray] = {}
    for j, name in enumerate(headers):
        cols[name] = data[:, j]
    return cols["t"], cols, headers


def _get_components(cols: Dict[str, np.ndarray], names: Iterable[str]) -> List[np.ndarray]:
    out = []
    for name in names:
        if name not in cols:
            raise KeyError(f"Column '{name}' not found in CSV.")
        out.append(cols[name])
    return out


def _finish(fig: Figure, save_path: str | None, show: bool) -> Figure:
    fig.tight_layout()
    if save_path:
        os.makedirs(os.path.dirname(save_path) or ".", exist_ok=True)
        fig.savefig(save_path, dpi=180, bbox_inches="tight")
    if show:
        plt.show()
    return fig


def plot_flight_path(
    csv_path: str,
    save_path: str | None = None,
    show: bool = True,
    operator_position: Tuple[float, float, float] | None = (0.0, 0.0, -10.0),
) -> Figure:
    """
    Plot the kite's 3D flight path and altitude over time.

    Parameters
    ----------
    csv_path : str
        Path to logger CSV (needs the "p" field).
    save_path : str | None
        If given, save the figure to this path (png/svg).
    show : bool
        Whether to call plt.show().
    operator_position : tuple | None
        Marked in the 3D view if given.

    Returns
    -------
    fig : Figure

    Notes
    -----
    The world frame is Y-up; the 3D axes are drawn Z-up so the plot reads
    naturally, i.e. (x, z, y).
    """
    t, cols, _ = _load_csv(csv_path)
    px, py, pz = _get_components(cols, ["kite.p_x", "kite.p_y", "kite.p_z"])

    fig = plt.figure(figsize=(10, 6))
    gs = fig.add_gridspec(2, 2, height_ratios=[2.0, 1.0])
    ax3d = fig.add_subplot(gs[0, :], projection="3d")
    axy = fig.add_subplot(gs[1, :])

    ax3d.plot(px, pz, py, lw=2.0, color="#1a73e8")
    ax3d.scatter(px[0], pz[0], py[0], color="#34a853", s=40, label="start")
    ax3d.scatter(px[-1], pz[-1], py[-1], color="#ea4335", s=40, label="end")
    if operator_position is not None:
        ox, oy, oz = operator_position
        ax3d.scatter(ox, oz, oy, color="k", marker="^", s=50, label="operator")
    ax3d.set_xlabel("x [m]"); ax3d.set_ylabel("z [m]"); ax3d.set_zlabel("altitude [m]")
    ax3d.set_title("Kite flight path")
    ax3d.legend(loc="best")

    axy.plot(t, py, color="#1a73e8", lw=2)
    axy.set_xlabel("t [s]"); axy.set_ylabel("altitude [m]")
    axy.grid(True, alpha=0.3)
    axy.set_title("Altitude vs time")

    return _finish(fig, save_path, show)


def plot_line_tension(
    csv_path: str,
    save_path: str | None = None,
    show: bool = True,
) -> Figure:
    """
    Plot left/right line tension and the net tether force magnitude.

    Needs the "tether" logger field.
    """
    t, cols, _ = _load_csv(csv_path)
    left, right = _get_components(cols, ["tether.left_tension", "tether.right_tension"])
    fx, fy, fz = _get_components(cols, ["tether.f_x", "tether.f_y", "tether.f_z"])
    fmag = np.sqrt(fx**2 + fy**2 + fz**2)

    fig, axs = plt.subplots(2, 1, figsize=(10, 6), sharex=True)
    axs[0].plot(t, left, label="left", color="#1a73e8")
    axs[0].plot(t, right, label="right", color="#ea4335")
    axs[0].set_ylabel("tension [N]")
    axs[0].set_title("Line tension")
    axs[0].legend(loc="best")
    axs[0].grid(True, alpha=0.3)

    axs[1].plot(t, fmag, color="#34a853")
    axs[1].set_xlabel("t [s]"); axs[1].set_ylabel("|F| [N]")
    axs[1].set_title("Net tether force")
    axs[1].grid(True, alpha=0.3)

    return _finish(fig, save_path, show)


def plot_wind_and_aoa(
    csv_path: str,
    save_path: str | None = None,
    show: bool = True,
) -> Figure:
    """
    Plot wind speed and angle of attack (degrees) over time.

    Needs the "wind" and "aero" logger fields.
    """
    t, cols, _ = _load_csv(csv_path)
    (speed,) = _get_components(cols, ["wind.speed"])
    (aoa,) = _get_components(cols, ["aero.aoa"])

    fig, axs = plt.subplots(2, 1, figsize=(10, 6), sharex=True)
    axs[0].plot(t, speed, color="#1a73e8")
    axs[0].set_ylabel("wind speed [m/s]")
    axs[0].set_title("Wind")
    axs[0].grid(True, alpha=0.3)

    axs[1].plot(t, np.degrees(aoa), color="#ea4335")
    axs[1].set_xlabel("t [s]"); axs[1].set_ylabel("AoA [deg]")
    axs[1].set_title("Angle of attack")
    axs[1].grid(True, alpha=0.3)

    return _finish(fig, save_path, show)
