"""Offline renderer: ParameterSet -> mono float sample buffer."""

from __future__ import annotations

import logging
import struct
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from sfx_synth.effects import build_pipeline
from sfx_synth.envelope import gain_curve
from sfx_synth.errors import RenderError
from sfx_synth.models import ParameterSet, RenderConfig
from sfx_synth.sources import generate_source

logger = logging.getLogger(__name__)

WAVE_FORMAT_IEEE_FLOAT = 3


@dataclass(frozen=True)
class RenderedBuffer:
    """Mono float32 samples in [-1, 1] at a fixed sample rate."""

    samples: np.ndarray
    sample_rate: int

    def __len__(self) -> int:
        return int(self.samples.size)

    @property
    def duration(self) -> float:
        return self.samples.size / self.sample_rate

    @property
    def peak(self) -> float:
        return float(np.max(np.abs(self.samples))) if self.samples.size else 0.0

    def to_wav_bytes(self) -> bytes:
        """Mono IEEE-float RIFF/WAVE image of the samples."""
        data = np.asarray(self.samples, dtype="<f4").tobytes()
        block_align = 4
        fmt = struct.pack(
            "<HHIIHH",
            WAVE_FORMAT_IEEE_FLOAT,
            1,
            self.sample_rate,
            self.sample_rate * block_align,
            block_align,
            8 * block_align,
        )
        riff_size = 4 + (8 + len(fmt)) + (8 + len(data))
        return b"".join(
            [
                b"RIFF" + struct.pack("<I", riff_size) + b"WAVE",
                b"fmt " + struct.pack("<I", len(fmt)) + fmt,
                b"data" + struct.pack("<I", len(data)) + data,
            ]
        )

    def write_wav(self, path: str | Path) -> Path:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(self.to_wav_bytes())
        return out


def render_length(params: ParameterSet, sample_rate: int) -> int:
    """Samples covering note, release and any delay/reverb tail."""
    return max(1, int(round(params.total_length * sample_rate)))


def _resolve_rng(rng: np.random.Generator | None, config: RenderConfig) -> np.random.Generator:
    if rng is not None:
        return rng
    return np.random.default_rng(config.seed)


def render(
    params: ParameterSet | Mapping[str, Any],
    config: RenderConfig | None = None,
    *,
    rng: np.random.Generator | None = None,
) -> RenderedBuffer:
    """Render one sound.

    ``rng`` drives the noise source and the reverb impulse; when omitted a
    generator is seeded from ``config.seed`` (fresh entropy if that is None).
    Raises RenderError on any internal failure; a partial buffer is never
    returned.
    """
    if not isinstance(params, ParameterSet):
        params = ParameterSet.model_validate(params)
    config = config or RenderConfig()
    sr = config.sample_rate
    generator = _resolve_rng(rng, config)
    n = render_length(params, sr)
    logger.debug(
        "rendering %s: %d samples at %d Hz (%.3fs note, %.3fs tail)",
        params.waveform,
        n,
        sr,
        params.note_length,
        params.tail_length,
    )

    try:
        source = generate_source(params, n, sr, generator)
        pipeline = build_pipeline(params, sr, generator)
        bus = pipeline.process(source)
        out = bus * gain_curve(params, n, sr)
    except (ValueError, ArithmeticError) as e:
        raise RenderError(f"render failed: {e}") from e

    if out.size != n:
        raise RenderError(f"render produced {out.size} samples, expected {n}")
    if not np.all(np.isfinite(out)):
        raise RenderError("render produced non-finite samples")

    samples = np.clip(out, -1.0, 1.0).astype(np.float32)
    return RenderedBuffer(samples=samples, sample_rate=sr)
