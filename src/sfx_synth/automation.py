"""Breakpoint automation for time-varying parameters (gain, frequency, cutoff)."""

from __future__ import annotations

from bisect import bisect_right
from typing import Literal, NamedTuple

import numpy as np

EventKind = Literal["set", "linear", "exponential"]


class _Event(NamedTuple):
    kind: EventKind
    time: float
    value: float


class Automation:
    """An ordered list of value events rendered to one value per sample.

    ``set`` events step to a value at their time and hold it. Ramp events
    interpolate from the previous event's (time, value) up to their own;
    before the first event the default value holds. Events must be scheduled
    in non-decreasing time order.
    """

    def __init__(self, default: float = 0.0) -> None:
        self.default = float(default)
        self._events: list[_Event] = []

    @property
    def events(self) -> list[tuple[str, float, float]]:
        return [tuple(e) for e in self._events]

    def _append(self, kind: EventKind, value: float, time: float) -> Automation:
        time = float(time)
        if time < 0.0:
            raise ValueError(f"event time must be >= 0, got {time}")
        if self._events and time < self._events[-1].time:
            raise ValueError(
                f"event at t={time} scheduled before previous event at t={self._events[-1].time}"
            )
        self._events.append(_Event(kind, time, float(value)))
        return self

    def set_value_at_time(self, value: float, time: float) -> Automation:
        return self._append("set", value, time)

    def linear_ramp_to_value_at_time(self, value: float, time: float) -> Automation:
        return self._append("linear", value, time)

    def exponential_ramp_to_value_at_time(self, value: float, time: float) -> Automation:
        if value <= 0.0:
            raise ValueError(f"exponential ramp target must be > 0, got {value}")
        return self._append("exponential", value, time)

    def _previous(self, index: int) -> tuple[float, float]:
        if index == 0:
            return 0.0, self.default
        prev = self._events[index - 1]
        return prev.time, prev.value

    @staticmethod
    def _interp(
        kind: EventKind, t: np.ndarray, t0: float, v0: float, t1: float, v1: float
    ) -> np.ndarray:
        frac = (t - t0) / (t1 - t0)
        if kind == "linear":
            return v0 + (v1 - v0) * frac
        if v0 <= 0.0:
            raise ValueError(f"exponential ramp cannot start from {v0}")
        return v0 * (v1 / v0) ** frac

    def value_at(self, time: float) -> float:
        times = [e.time for e in self._events]
        k = bisect_right(times, time)
        if k < len(self._events) and self._events[k].kind != "set":
            t0, v0 = self._previous(k)
            ev = self._events[k]
            return float(self._interp(ev.kind, np.asarray(time), t0, v0, ev.time, ev.value))
        return self._previous(k)[1]

    def cancel_and_hold_at_time(self, time: float) -> Automation:
        """Drop every event after ``time`` and hold the value reached there.

        A ramp in progress at ``time`` is shortened so the curve up to
        ``time`` is unchanged.
        """
        value = self.value_at(time)
        times = [e.time for e in self._events]
        k = bisect_right(times, time)
        crossing = self._events[k] if k < len(self._events) else None
        del self._events[k:]
        if crossing is not None and crossing.kind != "set":
            self._events.append(_Event(crossing.kind, float(time), value))
        else:
            self._events.append(_Event("set", float(time), value))
        return self

    def render(self, n: int, sample_rate: float) -> np.ndarray:
        """Return ``n`` float64 values sampled at ``t = i / sample_rate``."""
        t = np.arange(n, dtype=np.float64) / sample_rate
        out = np.full(n, self.default, dtype=np.float64)
        if not self._events or n == 0:
            return out

        event_times = np.array([e.time for e in self._events])
        seg = np.searchsorted(event_times, t, side="right")
        for k in np.unique(seg):
            k = int(k)
            mask = seg == k
            t0, v0 = self._previous(k)
            if k < len(self._events) and self._events[k].kind != "set":
                ev = self._events[k]
                out[mask] = self._interp(ev.kind, t[mask], t0, v0, ev.time, ev.value)
            else:
                out[mask] = v0
        return out
