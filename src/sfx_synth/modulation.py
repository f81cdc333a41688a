"""Filter cutoff modulation: envelope follow and LFO."""

from __future__ import annotations

import numpy as np

from sfx_synth.automation import Automation
from sfx_synth.models import MIN_RAMP, ParameterSet

CUTOFF_MIN = 20.0
CUTOFF_MAX = 22000.0


def _clamp_cutoff(freq: float) -> float:
    return min(max(freq, CUTOFF_MIN), CUTOFF_MAX)


def cutoff_automation(params: ParameterSet) -> Automation:
    """Cutoff breakpoints: flat ``filter_freq``, or an exponential mini-ADSR.

    The envelope shares the amplitude envelope's timings and peaks at
    ``filter_freq + filter_mod_env_depth``. Every breakpoint is clamped to
    [CUTOFF_MIN, CUTOFF_MAX].
    """
    base = _clamp_cutoff(params.filter_freq)
    auto = Automation(default=base)
    auto.set_value_at_time(base, 0.0)
    if not params.env_mod_active:
        return auto

    depth = params.filter_mod_env_depth
    peak = _clamp_cutoff(base + depth)
    settle = _clamp_cutoff(base + depth * params.sustain)
    t_peak = max(params.attack, MIN_RAMP)
    t_settle = t_peak + max(params.decay, MIN_RAMP)

    auto.exponential_ramp_to_value_at_time(peak, t_peak)
    auto.exponential_ramp_to_value_at_time(settle, t_settle)
    if params.duration < t_settle:
        auto.cancel_and_hold_at_time(params.duration)
    else:
        auto.set_value_at_time(settle, params.duration)
    auto.exponential_ramp_to_value_at_time(
        base, params.duration + max(params.release, MIN_RAMP)
    )
    return auto


def lfo_curve(params: ParameterSet, n: int, sample_rate: float) -> np.ndarray:
    """Sine vibrato in Hz to add to the cutoff; zeros when the LFO is off."""
    if not params.lfo_active:
        return np.zeros(n, dtype=np.float64)
    t = np.arange(n, dtype=np.float64) / sample_rate
    return params.filter_mod_lfo_depth * np.sin(2.0 * np.pi * params.filter_mod_lfo_rate * t)


def cutoff_curve(params: ParameterSet, n: int, sample_rate: float) -> np.ndarray:
    """Per-sample cutoff in Hz (envelope breakpoints plus LFO, additive)."""
    return cutoff_automation(params).render(n, sample_rate) + lfo_curve(params, n, sample_rate)
