"""Excitation sources: periodic oscillators, noise, pulse and additive tables."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Callable

import numpy as np

from sfx_synth.automation import Automation
from sfx_synth.errors import EncodingError
from sfx_synth.models import DEFAULT_HARMONICS, FREQ_EPSILON, N_HARMONICS, ParameterSet

logger = logging.getLogger(__name__)

TABLE_SIZE = 4096
SWEEP_THRESHOLD = 1.0  # Hz; smaller start/end differences step instead of ramping


def frequency_automation(params: ParameterSet) -> Automation:
    """Oscillator frequency: start at t=0, reach the end frequency at ``duration``."""
    start = max(FREQ_EPSILON, params.frequency_start)
    end = max(FREQ_EPSILON, params.frequency_end)
    auto = Automation(default=start)
    auto.set_value_at_time(start, 0.0)
    if abs(start - end) > SWEEP_THRESHOLD:
        auto.exponential_ramp_to_value_at_time(end, params.duration)
    else:
        auto.set_value_at_time(end, params.duration)
    return auto


def phase_curve(freq: np.ndarray, sample_rate: float) -> np.ndarray:
    """Integrate a per-sample frequency curve into cycle position in [0, 1)."""
    if freq.size == 0:
        return freq.copy()
    increments = freq / sample_rate
    phase = np.concatenate(([0.0], np.cumsum(increments[:-1])))
    return np.mod(phase, 1.0)


# ---------------------------------------------------------------------------
# Periodic shapes (phase in cycles, all start at zero)
# ---------------------------------------------------------------------------


def _sine(p: np.ndarray) -> np.ndarray:
    return np.sin(2.0 * np.pi * p)


def _square(p: np.ndarray) -> np.ndarray:
    return np.where(p < 0.5, 1.0, -1.0)


def _sawtooth(p: np.ndarray) -> np.ndarray:
    return 2.0 * np.mod(p + 0.5, 1.0) - 1.0


def _triangle(p: np.ndarray) -> np.ndarray:
    return 1.0 - 4.0 * np.abs(np.mod(p + 0.25, 1.0) - 0.5)


_SHAPES: dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "sine": _sine,
    "square": _square,
    "sawtooth": _sawtooth,
    "triangle": _triangle,
}


# ---------------------------------------------------------------------------
# Additive wavetable
# ---------------------------------------------------------------------------


def build_wavetable(harmonics: Sequence[float], size: int = TABLE_SIZE) -> np.ndarray:
    """One cycle of the weighted sum of sine partials, normalized to unit peak.

    ``harmonics[k]`` is the amplitude of partial ``k + 1``. Short sequences
    are zero-padded. Raises EncodingError when no partial is usable.
    """
    try:
        coeffs = np.asarray(list(harmonics)[:N_HARMONICS], dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"harmonics are not numeric: {e}") from e
    coeffs = np.pad(coeffs, (0, N_HARMONICS - coeffs.size))
    if not np.all(np.isfinite(coeffs)):
        raise EncodingError("harmonics contain non-finite values")
    if not np.any(coeffs):
        raise EncodingError("all harmonics are zero")

    x = np.arange(size, dtype=np.float64) / size
    table = np.zeros(size, dtype=np.float64)
    for k, amp in enumerate(coeffs):
        if amp != 0.0:
            table += amp * np.sin(2.0 * np.pi * (k + 1) * x)

    peak = float(np.max(np.abs(table)))
    if peak == 0.0:
        raise EncodingError("harmonics cancel to silence")
    return table / peak


def _table_lookup(table: np.ndarray, p: np.ndarray) -> np.ndarray:
    size = table.size
    wrapped = np.append(table, table[0])
    return np.interp(p * size, np.arange(size + 1), wrapped)


def _custom_table(params: ParameterSet) -> np.ndarray:
    try:
        return build_wavetable(params.harmonics)
    except EncodingError as e:
        logger.warning("custom waveform unusable (%s); falling back to fundamental", e)
        return build_wavetable(DEFAULT_HARMONICS)


# ---------------------------------------------------------------------------
# Source generation
# ---------------------------------------------------------------------------


def _noise(
    params: ParameterSet, n: int, sample_rate: float, rng: np.random.Generator
) -> np.ndarray:
    length = math.ceil(params.note_length * sample_rate)
    data = rng.uniform(-1.0, 1.0, length)
    out = np.zeros(n, dtype=np.float64)
    m = min(n, length)
    out[:m] = data[:m]
    return out


def _pulse(params: ParameterSet, phase: np.ndarray, sample_rate: float) -> np.ndarray:
    # Phase offset is fixed from the start frequency, so the duty cycle drifts
    # while the frequency sweeps.
    saw = _sawtooth(phase)
    offset = (1.0 / max(FREQ_EPSILON, params.frequency_start)) * params.pulse_width
    d = int(round(offset * sample_rate))
    delayed = np.zeros_like(saw)
    if 0 < d < saw.size:
        delayed[d:] = saw[:-d]
    elif d == 0:
        delayed = saw.copy()
    return 0.5 * (saw - delayed)


def generate_source(
    params: ParameterSet,
    n: int,
    sample_rate: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Render ``n`` samples of the raw excitation signal.

    The source stops at ``duration + release``; later samples are zero.
    """
    if params.waveform == "noise":
        out = _noise(params, n, sample_rate, rng)
    else:
        freq = frequency_automation(params).render(n, sample_rate)
        phase = phase_curve(freq, sample_rate)
        if params.waveform == "pulse":
            out = _pulse(params, phase, sample_rate)
        elif params.waveform == "custom":
            out = _table_lookup(_custom_table(params), phase)
        else:
            out = _SHAPES.get(params.waveform, _sine)(phase)

    stop = min(n, int(round(params.note_length * sample_rate)))
    out[stop:] = 0.0
    return out
