"""ADSR master-gain automation."""

from __future__ import annotations

import numpy as np

from sfx_synth.automation import Automation
from sfx_synth.models import MIN_RAMP, ParameterSet


def adsr_automation(params: ParameterSet) -> Automation:
    """Linear ADSR: 0 -> volume -> sustain*volume, hold, -> 0 at release end.

    Zero-length segments are stretched to MIN_RAMP. If the note ends before
    decay finishes, release starts from the level reached at ``duration``.
    """
    peak = params.volume
    level = params.sustain * params.volume
    t_peak = max(params.attack, MIN_RAMP)
    t_settle = t_peak + max(params.decay, MIN_RAMP)

    auto = Automation(default=0.0)
    auto.set_value_at_time(0.0, 0.0)
    auto.linear_ramp_to_value_at_time(peak, t_peak)
    auto.linear_ramp_to_value_at_time(level, t_settle)
    if params.duration < t_settle:
        auto.cancel_and_hold_at_time(params.duration)
    else:
        auto.set_value_at_time(level, params.duration)
    auto.linear_ramp_to_value_at_time(0.0, params.duration + max(params.release, MIN_RAMP))
    return auto


def gain_curve(params: ParameterSet, n: int, sample_rate: float) -> np.ndarray:
    return adsr_automation(params).render(n, sample_rate)
