from __future__ import annotations

import numpy as np
import pytest

from sfx_synth import ParameterSet

SR = 44100


@pytest.fixture
def sine_params() -> ParameterSet:
    """Plain 440 Hz sine, no modulation or effects."""
    return ParameterSet(
        waveform="sine",
        frequency_start=440.0,
        frequency_end=440.0,
        duration=0.2,
        attack=0.01,
        decay=0.05,
        sustain=0.6,
        release=0.1,
        volume=0.6,
        filter_type="lowpass",
        filter_freq=8000.0,
        q_factor=0.5,
    )


@pytest.fixture
def sweep_params() -> ParameterSet:
    """Descending sine sweep with an instant, fully sustained envelope."""
    return ParameterSet(
        waveform="sine",
        frequency_start=1000.0,
        frequency_end=100.0,
        duration=0.5,
        attack=0.0,
        decay=0.0,
        sustain=1.0,
        release=0.0,
        volume=1.0,
        filter_freq=20000.0,
        q_factor=0.5,
    )


@pytest.fixture
def noise_params() -> ParameterSet:
    """Noise burst through every effect stage."""
    return ParameterSet.model_validate(
        {
            "waveform": "noise",
            "duration": 0.2,
            "attack": 0.0,
            "decay": 0.1,
            "sustain": 0.3,
            "release": 0.1,
            "volume": 0.8,
            "filterType": "lowpass",
            "filterFreq": 1500,
            "qFactor": 2,
            "distortion": 0.5,
            "delayTime": 0.05,
            "delayFeedback": 0.5,
            "reverb": 0.3,
        }
    )


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
