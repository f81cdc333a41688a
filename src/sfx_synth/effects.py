"""Effects pipeline: modulated biquad, waveshaper, feedback delay, convolution reverb.

Stages are plain tagged records applied over whole sample buffers. The
filter and waveshaper run in series (inserts); delay and reverb are parallel
sends whose wet outputs join the dry signal at the master bus.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Literal

import numba
import numpy as np

from sfx_synth.modulation import cutoff_curve
from sfx_synth.models import ParameterSet

logger = logging.getLogger(__name__)

StageTag = Literal["filter", "distortion", "delay", "reverb"]
Processor = Callable[[np.ndarray], np.ndarray]

CURVE_SIZE = 44100
OVERSAMPLE = 4
DELAY_WET = 0.3
REVERB_WET_SCALE = 0.5
IMPULSE_SECONDS = 2.5
IMPULSE_DECAY = 3.0
IMPULSE_CHANNELS = 2


# ---------------------------------------------------------------------------
# Biquad filter
# ---------------------------------------------------------------------------


def biquad_coefficients(
    filter_type: str,
    freq: np.ndarray | float,
    q: float,
    sample_rate: float,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Audio EQ Cookbook coefficients (b0, b1, b2, a1, a2), normalized by a0.

    ``freq`` may be a per-sample array; the returned arrays match its shape.
    """
    freq = np.clip(np.asarray(freq, dtype=np.float64), 10.0, 0.49 * sample_rate)
    w0 = 2.0 * np.pi * freq / sample_rate
    cos_w0 = np.cos(w0)
    alpha = np.sin(w0) / (2.0 * q)

    if filter_type == "lowpass":
        b0 = (1.0 - cos_w0) / 2.0
        b1 = 1.0 - cos_w0
        b2 = b0
    elif filter_type == "highpass":
        b0 = (1.0 + cos_w0) / 2.0
        b1 = -(1.0 + cos_w0)
        b2 = b0
    elif filter_type == "bandpass":
        b0 = alpha
        b1 = np.zeros_like(w0)
        b2 = -alpha
    elif filter_type == "allpass":
        b0 = 1.0 - alpha
        b1 = -2.0 * cos_w0
        b2 = 1.0 + alpha
    else:
        raise ValueError(f"Unknown filter type: {filter_type}")

    a0 = 1.0 + alpha
    a1 = -2.0 * cos_w0
    a2 = 1.0 - alpha
    return b0 / a0, b1 / a0, b2 / a0, a1 / a0, a2 / a0


@numba.njit
def _biquad_kernel(signal, b0, b1, b2, a1, a2):
    """Direct Form II Transposed biquad, one coefficient set per sample."""
    n = len(signal)
    out = np.empty(n, dtype=np.float64)
    z1 = 0.0
    z2 = 0.0
    for i in range(n):
        x = signal[i]
        y = b0[i] * x + z1
        z1 = b1[i] * x - a1[i] * y + z2
        z2 = b2[i] * x - a2[i] * y
        out[i] = y
    return out


def biquad_filter(
    signal: np.ndarray,
    b0: np.ndarray,
    b1: np.ndarray,
    b2: np.ndarray,
    a1: np.ndarray,
    a2: np.ndarray,
) -> np.ndarray:
    """Filter ``signal``; scalar coefficients are broadcast to every sample."""
    n = signal.size
    cols = [
        np.ascontiguousarray(np.broadcast_to(np.asarray(c, dtype=np.float64), (n,)))
        for c in (b0, b1, b2, a1, a2)
    ]
    return _biquad_kernel(np.ascontiguousarray(signal, dtype=np.float64), *cols)


def modulated_filter(params: ParameterSet, sample_rate: float) -> Processor:
    def process(signal: np.ndarray) -> np.ndarray:
        cutoff = cutoff_curve(params, signal.size, sample_rate)
        coeffs = biquad_coefficients(params.filter_type, cutoff, params.q_factor, sample_rate)
        return biquad_filter(signal, *coeffs)

    return process


# ---------------------------------------------------------------------------
# Waveshaping distortion
# ---------------------------------------------------------------------------


def distortion_curve(amount: float, n_points: int = CURVE_SIZE) -> np.ndarray:
    """Soft-clip transfer curve sampled at ``x_i = 2i/N - 1``."""
    k = amount * 100.0
    x = np.arange(n_points, dtype=np.float64) * 2.0 / n_points - 1.0
    return (3.0 + k) * x * (20.0 * np.pi / 180.0) / (np.pi + k * np.abs(x))


def _halfband_kernel(factor: int, taps: int = 63) -> np.ndarray:
    """Windowed-sinc lowpass at the original Nyquist, unit DC gain."""
    m = np.arange(taps, dtype=np.float64) - (taps - 1) / 2.0
    h = np.sinc(m / factor) * np.hamming(taps)
    return h / np.sum(h)


def waveshape(signal: np.ndarray, curve: np.ndarray, oversample: int = OVERSAMPLE) -> np.ndarray:
    """Map ``signal`` through ``curve`` (spanning [-1, 1]) at ``oversample`` x rate."""
    grid = np.linspace(-1.0, 1.0, curve.size)
    if oversample <= 1:
        return np.interp(signal, grid, curve)

    kernel = _halfband_kernel(oversample)
    up = np.zeros(signal.size * oversample, dtype=np.float64)
    up[::oversample] = signal * oversample
    up = np.convolve(up, kernel, mode="same")[: up.size]
    shaped = np.interp(up, grid, curve)
    down = np.convolve(shaped, kernel, mode="same")[: shaped.size]
    return down[::oversample][: signal.size]


def distortion(params: ParameterSet) -> Processor:
    curve = distortion_curve(params.distortion)

    def process(signal: np.ndarray) -> np.ndarray:
        return waveshape(signal, curve)

    return process


# ---------------------------------------------------------------------------
# Feedback delay
# ---------------------------------------------------------------------------


class FeedbackDelayLine:
    """Circular delay buffer whose output is written back into its input.

    ``y[n] = x[n - D] + feedback * y[n - D]``. Feedback must stay below 1 so
    the recirculating energy decays.
    """

    def __init__(self, delay_samples: int, feedback: float) -> None:
        if delay_samples < 1:
            raise ValueError(f"delay must be at least 1 sample, got {delay_samples}")
        if not 0.0 <= feedback < 1.0:
            raise ValueError(f"feedback must be in [0, 1), got {feedback}")
        self.buffer = np.zeros(delay_samples, dtype=np.float64)
        self.feedback = feedback
        self._pos = 0

    @property
    def delay_samples(self) -> int:
        return self.buffer.size

    def process(self, signal: np.ndarray) -> np.ndarray:
        """Run ``signal`` through the line, up to one delay length per step."""
        d = self.buffer.size
        out = np.empty(signal.size, dtype=np.float64)
        i = 0
        while i < signal.size:
            m = min(d - self._pos, signal.size - i)
            span = slice(self._pos, self._pos + m)
            read = self.buffer[span].copy()
            out[i : i + m] = read
            self.buffer[span] = signal[i : i + m] + self.feedback * read
            self._pos = (self._pos + m) % d
            i += m
        return out


def feedback_delay(params: ParameterSet, sample_rate: float) -> Processor:
    delay_samples = max(1, int(round(params.delay_time * sample_rate)))
    feedback = params.effective_feedback

    def process(signal: np.ndarray) -> np.ndarray:
        return FeedbackDelayLine(delay_samples, feedback).process(signal)

    return process


# ---------------------------------------------------------------------------
# Convolution reverb
# ---------------------------------------------------------------------------


def impulse_response(
    sample_rate: float,
    rng: np.random.Generator,
    seconds: float = IMPULSE_SECONDS,
    decay: float = IMPULSE_DECAY,
    channels: int = IMPULSE_CHANNELS,
) -> np.ndarray:
    """Decaying noise impulse, shape ``(channels, length)``."""
    length = int(sample_rate * seconds)
    envelope = (1.0 - np.arange(length, dtype=np.float64) / length) ** decay
    return rng.uniform(-1.0, 1.0, (channels, length)) * envelope


def normalization_scale(impulse: np.ndarray, sample_rate: float) -> float:
    """Gain that calibrates an impulse response to unity perceived loudness.

    RMS power over all channels (floored at 0.000125), -58 dB calibration,
    referenced to 44.1 kHz.
    """
    power = math.sqrt(float(np.sum(impulse**2)) / impulse.size)
    if not math.isfinite(power) or power < 0.000125:
        power = 0.000125
    scale = 1.0 / power
    scale *= 10.0 ** (-58.0 / 20.0)
    scale *= 44100.0 / sample_rate
    return scale


def fft_convolve(signal: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Linear convolution truncated to ``len(signal)``."""
    if signal.size == 0 or kernel.size == 0:
        return np.zeros(signal.size, dtype=np.float64)
    size = signal.size + kernel.size - 1
    nfft = 1 << (size - 1).bit_length()
    spectrum = np.fft.rfft(signal, nfft) * np.fft.rfft(kernel, nfft)
    return np.fft.irfft(spectrum, nfft)[: signal.size]


def convolution_reverb(sample_rate: float, rng: np.random.Generator) -> Processor:
    impulse = impulse_response(sample_rate, rng)
    # stereo response on a mono bus: channels are summed and halved on downmix
    kernel = impulse.mean(axis=0) * normalization_scale(impulse, sample_rate)

    def process(signal: np.ndarray) -> np.ndarray:
        return fft_convolve(signal, kernel)

    return process


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def _bypass(signal: np.ndarray) -> np.ndarray:
    return signal


@dataclass(frozen=True)
class Stage:
    tag: StageTag
    enabled: bool
    process: Processor = _bypass
    gain: float = 1.0


@dataclass
class Pipeline:
    inserts: list[Stage] = field(default_factory=list)
    sends: list[Stage] = field(default_factory=list)

    @property
    def stages(self) -> list[Stage]:
        return self.inserts + self.sends

    def active_tags(self) -> list[StageTag]:
        return [s.tag for s in self.stages if s.enabled]

    def process(self, signal: np.ndarray) -> np.ndarray:
        """Run inserts in order, then sum dry and every enabled send's wet output."""
        dry = signal
        for stage in self.inserts:
            if stage.enabled:
                dry = stage.process(dry)
        bus = dry.copy()
        for stage in self.sends:
            if stage.enabled:
                bus += stage.gain * stage.process(dry)
        return bus


def build_pipeline(
    params: ParameterSet, sample_rate: float, rng: np.random.Generator
) -> Pipeline:
    """Assemble the ordered stages for ``params``; disabled stages are bypassed."""
    distort_on = params.distortion > 0.0
    delay_on = params.delay_time > 0.0
    reverb_on = params.reverb > 0.0

    inserts = [
        Stage("filter", True, modulated_filter(params, sample_rate)),
        Stage("distortion", distort_on, distortion(params) if distort_on else _bypass),
    ]
    sends = [
        Stage(
            "delay",
            delay_on,
            feedback_delay(params, sample_rate) if delay_on else _bypass,
            DELAY_WET,
        ),
        Stage(
            "reverb",
            reverb_on,
            convolution_reverb(sample_rate, rng) if reverb_on else _bypass,
            params.reverb * REVERB_WET_SCALE,
        ),
    ]
    pipeline = Pipeline(inserts, sends)
    logger.debug("pipeline stages: %s", ", ".join(pipeline.active_tags()))
    return pipeline
