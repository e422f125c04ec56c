"""
Structured diagnostics for the physics core.

Numerical trouble inside a step is recovered locally and never raised to
the host frame loop. Instead every recovery is reported as a
:class:`DiagnosticEvent` on a :class:`DiagnosticChannel`. Hosts subscribe
callbacks to surface or suppress them; with no subscriber attached the
channel falls back to ``warnings.warn(..., RuntimeWarning)``.

Examples
--------
>>> channel = DiagnosticChannel()
>>> seen = []
>>> channel.subscribe(seen.append)
>>> channel.emit(DiagnosticKind.STATE_RESET, "kite reset", time=1.5)
>>> seen[0].kind is DiagnosticKind.STATE_RESET
True
"""
from __future__ import annotations

import warnings
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_HISTORY = 256


class DiagnosticKind(Enum):
    """Category of a recovered numerical problem."""
    INVALID_FORCE = "invalid_force"
    INVALID_TORQUE = "invalid_torque"
    STATE_RESET = "state_reset"
    TETHER_DEGENERATE = "tether_degenerate"
    ACCUMULATOR_OVERLOAD = "accumulator_overload"
    INVALID_TIMESTEP = "invalid_timestep"


@dataclass(frozen=True)
class DiagnosticEvent:
    """
    One diagnostic record.

    Attributes
    ----------
    kind : DiagnosticKind
        Problem category
    message : str
        Human-readable description
    time : float | None
        Simulation time [s] when the event fired, if known
    data : dict
        Extra values relevant to the event (offending vectors, counts, ...)
    """
    kind: DiagnosticKind
    message: str
    time: float | None = None
    data: dict[str, Any] = field(default_factory=dict)


Subscriber = Callable[[DiagnosticEvent], None]


class DiagnosticChannel:
    """
    Observer-style event channel with a bounded history.

    Parameters
    ----------
    history_size : int
        Number of most recent events retained in ``history``.
    warn_when_unobserved : bool
        If True (default), emit a ``RuntimeWarning`` for events nobody
        subscribed to.
    """

    def __init__(
        self,
        history_size: int = DEFAULT_HISTORY,
        warn_when_unobserved: bool = True,
    ) -> None:
        self._subscribers: list[Subscriber] = []
        self.history: deque[DiagnosticEvent] = deque(maxlen=int(history_size))
        self.warn_when_unobserved = bool(warn_when_unobserved)
        self.clock: Callable[[], float] | None = None

    def subscribe(self, fn: Subscriber) -> None:
        if fn not in self._subscribers:
            self._subscribers.append(fn)

    def unsubscribe(self, fn: Subscriber) -> None:
        if fn in self._subscribers:
            self._subscribers.remove(fn)

    def emit(
        self,
        kind: DiagnosticKind,
        message: str,
        time: float | None = None,
        **data: Any,
    ) -> DiagnosticEvent:
        """Build, record and dispatch an event."""
        if time is None and self.clock is not None:
            time = self.clock()
        event = DiagnosticEvent(kind=kind, message=message, time=time, data=data)
        self.history.append(event)

        if self._subscribers:
            for fn in list(self._subscribers):
                fn(event)
        elif self.warn_when_unobserved:
            warnings.warn(f"[{kind.value}] {message}", RuntimeWarning, stacklevel=3)
        return event

    def count(self, kind: DiagnosticKind) -> int:
        """Number of retained events of the given kind."""
        return sum(1 for e in self.history if e.kind is kind)

    def clear(self) -> None:
        self.history.clear()
